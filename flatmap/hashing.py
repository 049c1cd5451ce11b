"""Order-sensitive content digest for maps and sets.

The collections are mutable and therefore unhashable. `fingerprint` gives a
stable digest of their current contents instead: blake2b over the msgpack
encoding of the fields (or members) in iteration order.

Python treats ``1``, ``1.0`` and ``True`` as equal, while msgpack encodes them
differently, so numbers are brought to one canonical form before packing:
booleans become ints and integral floats become ints. Dict values are packed
with their items sorted by encoded key. Equal collections store equal elements
in the same order, so they share a fingerprint.
"""
from __future__ import annotations

from hashlib import blake2b
from typing import Any, Union

from .map import Map
from .serialization import packb
from .set import Set

__all__ = ["fingerprint"]

# Range of integers msgpack can carry.
_INT_MIN = -(2**63)
_INT_MAX = 2**64 - 1


def _canonical(obj: Any) -> Any:
    if isinstance(obj, bool):
        return int(obj)
    if isinstance(obj, float):
        if obj.is_integer() and _INT_MIN <= obj <= _INT_MAX:
            return int(obj)
        return obj
    if isinstance(obj, tuple):
        return tuple(_canonical(item) for item in obj)
    if isinstance(obj, list):
        return [_canonical(item) for item in obj]
    if isinstance(obj, dict):
        items = [(_canonical(k), _canonical(v)) for k, v in obj.items()]
        items.sort(key=lambda kv: packb(kv[0]))
        return dict(items)
    return obj


def fingerprint(obj: Union[Map[Any, Any], Set[Any]], digest_size: int = 16) -> bytes:
    if isinstance(obj, Map):
        blob = b"M" + packb([[_canonical(k), _canonical(v)] for k, v in obj.items()])
    elif isinstance(obj, Set):
        blob = b"S" + packb([_canonical(m) for m in obj])
    else:
        raise TypeError(f"cannot fingerprint {type(obj).__name__}")
    return blake2b(blob, digest_size=digest_size).digest()
