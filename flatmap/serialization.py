"""msgpack encoding for :class:`~flatmap.map.Map` and :class:`~flatmap.set.Set`.

Both collections are written as a msgpack *array* in iteration order:

    • Map – ``[[key, value], [key, value], …]``
    • Set – ``[member, member, …]``

An array (rather than a msgpack map) keeps the order explicit and allows keys
that msgpack maps cannot carry, e.g. lists. Tuples travel as an extension type
(code ``1``) so that composite keys come back as tuples, not lists.

Decoding either re-validates the payload by inserting every element (later
duplicates win), or, with ``trusted=True``, adopts the sequence after a
single linear check that it is strictly increasing (``ValueError``
otherwise).
"""
from __future__ import annotations

import logging
from typing import Any

import msgpack

from .locator import SCAN_LIMIT
from .map import Map
from .set import Set

__all__ = ["pack_map", "pack_set", "packb", "unpack_map", "unpack_set", "unpackb"]

logger = logging.getLogger(__name__)

_TUPLE_EXT = 1


def _default(obj: Any) -> msgpack.ExtType:
    if isinstance(obj, tuple):
        return msgpack.ExtType(_TUPLE_EXT, packb(list(obj)))
    raise TypeError(f"cannot serialize object of type {type(obj).__name__}")


def _ext_hook(code: int, data: bytes) -> Any:
    if code == _TUPLE_EXT:
        return tuple(unpackb(data))
    return msgpack.ExtType(code, data)


def packb(obj: Any) -> bytes:
    return msgpack.packb(obj, default=_default, use_bin_type=True, strict_types=True)


def unpackb(blob: bytes) -> Any:
    return msgpack.unpackb(blob, raw=False, ext_hook=_ext_hook)


def pack_map(obj: Map[Any, Any]) -> bytes:
    return packb([[k, v] for k, v in obj.items()])


def pack_set(obj: Set[Any]) -> bytes:
    return packb(list(obj))


def _unpack_array(blob: bytes, kind: str) -> list[Any]:
    data = unpackb(blob)
    if not isinstance(data, list):
        raise TypeError(f"expected a msgpack array for a {kind}, got {type(data).__name__}")
    return data


def unpack_map(blob: bytes, *, trusted: bool = False, scan_limit: int = SCAN_LIMIT) -> Map[Any, Any]:
    pairs = _unpack_array(blob, "Map")
    for pair in pairs:
        if not isinstance(pair, list) or len(pair) != 2:
            raise TypeError(f"expected [key, value] pairs, got {pair!r}")
    logger.debug("decoding Map of %d fields (trusted=%s)", len(pairs), trusted)
    if trusted:
        return Map.from_sorted(((k, v) for k, v in pairs), scan_limit=scan_limit)
    obj: Map[Any, Any] = Map(capacity=len(pairs), scan_limit=scan_limit)
    for key, value in pairs:
        obj.insert(key, value)
    return obj


def unpack_set(blob: bytes, *, trusted: bool = False, scan_limit: int = SCAN_LIMIT) -> Set[Any]:
    members = _unpack_array(blob, "Set")
    logger.debug("decoding Set of %d members (trusted=%s)", len(members), trusted)
    if trusted:
        return Set.from_sorted(members, scan_limit=scan_limit)
    obj: Set[Any] = Set(capacity=len(members), scan_limit=scan_limit)
    for member in members:
        obj.insert(member)
    return obj
