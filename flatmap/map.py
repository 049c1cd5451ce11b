"""Ordered key/value map stored in one sorted list.

`Map` keeps its fields in a single contiguous list sorted by key instead of a
tree or a hash table. Lookups bisect the list down to a small window and scan
the rest (see :mod:`flatmap.locator`); inserts and removals shift the tail of
the list. For collections of up to a few hundred keys that is usually cheaper
than chasing tree nodes, and iteration is always in key order.

Keys only need a total order (``<`` and ``==``); they are never hashed.

Complexities:
    • lookup          – O(log n) comparisons
    • insert / remove – O(log n) comparisons + O(n) shift
    • merge_with      – O(n + m) comparisons
    • iterate         – O(n)

The map is not thread-safe. Entries, drains and iterators borrow the map and
raise :class:`~flatmap.buffer.BorrowError` on aliasing access (see
:mod:`flatmap.buffer`).
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any, Generic, Optional, TypeVar, Union

from .buffer import Drain, Iter, OrderedBuffer
from .entry import OccupiedEntry, VacantEntry
from .field import Field
from .locator import SCAN_LIMIT, Location, compare, locate, validate_scan_limit
from .merge import (
    Difference,
    Filter,
    Intersection,
    Resolver,
    Union as UnionIter,
    merge_fields,
)

__all__ = ["Map"]

K = TypeVar("K")
V = TypeVar("V")

_NOTHING: Any = object()


class Map(Generic[K, V]):
    """Sorted mapping from keys to values.

    Parameters
    ----------
    items:
        Optional mapping or iterable of ``(key, value)`` pairs. Later
        duplicates replace earlier ones.
    capacity:
        Number of fields to reserve up front.
    scan_limit:
        Window size at which lookups switch from bisection to a linear scan.
    default_factory:
        Zero-argument callable used by ``entry(key).or_default()``.
    """

    __slots__ = ("_buffer", "_scan_limit", "default_factory")

    def __init__(
        self,
        items: Union[Mapping[K, V], Iterable[tuple[K, V]], None] = None,
        *,
        capacity: int = 0,
        scan_limit: int = SCAN_LIMIT,
        default_factory: Optional[Callable[[], V]] = None,
    ):
        self._buffer: OrderedBuffer[K, V] = OrderedBuffer(capacity)
        self._scan_limit = validate_scan_limit(scan_limit)
        self.default_factory = default_factory
        if items is not None:
            pairs = items.items() if isinstance(items, Mapping) else items
            for key, value in pairs:
                self.insert(key, value)

    @classmethod
    def with_capacity(cls, capacity: int, **kwargs: Any) -> "Map[K, V]":
        return cls(capacity=capacity, **kwargs)

    @classmethod
    def from_sorted(cls, pairs: Iterable[tuple[K, V]], **kwargs: Any) -> "Map[K, V]":
        """Build from pairs already in strictly increasing key order.

        The order is checked in a single pass instead of locating every key;
        ``ValueError`` is raised on the first key that is not greater than
        its predecessor.
        """
        fields: list[Field[K, V]] = []
        for key, value in pairs:
            if fields and compare(fields[-1].key, key) >= 0:
                raise ValueError(
                    f"keys are not strictly increasing at position {len(fields)}: "
                    f"{fields[-1].key!r} then {key!r}"
                )
            fields.append(Field(key, value))
        obj: Map[K, V] = cls(**kwargs)
        obj._buffer.replace_all(fields)
        return obj

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def scan_limit(self) -> int:
        return self._scan_limit

    @property
    def capacity(self) -> int:
        return self._buffer.capacity

    def __len__(self) -> int:
        return len(self._buffer)

    def is_empty(self) -> bool:
        return len(self._buffer) == 0

    def __bool__(self) -> bool:
        return len(self._buffer) > 0

    # ------------------------------------------------------------------
    # Lookup 🔍
    # ------------------------------------------------------------------
    def locate(self, key: Any) -> Location:
        return locate(self._buffer.fields, key, self._scan_limit)

    def contains(self, key: Any) -> bool:
        return self.locate(key).found

    __contains__ = contains

    def get_field(self, key: Any) -> Optional[Field[K, V]]:
        found, index = self.locate(key)
        return self._buffer.fields[index] if found else None

    def get(self, key: Any, default: Any = None) -> Any:
        field = self.get_field(key)
        return default if field is None else field.value

    def __getitem__(self, key: Any) -> V:
        field = self.get_field(key)
        if field is None:
            raise KeyError(key)
        return field.value

    def field(self, index: int) -> Optional[Field[K, V]]:
        """Field at position `index`, or None when out of range."""
        fields = self._buffer.fields
        if 0 <= index < len(fields):
            return fields[index]
        return None

    # ------------------------------------------------------------------
    # Mutation API
    # ------------------------------------------------------------------
    def insert(self, key: K, value: V) -> Optional[Field[K, V]]:
        """Store `value` under `key`.

        Returns the replaced field when the key was present, else None.
        """
        entry = self.entry(key)
        if entry.occupied:
            return entry.replace_field(Field(key, value))
        entry.insert(value)
        return None

    def insert_with(self, key: K, value: Callable[[], V]) -> Optional[K]:
        """Insert ``value()`` under `key` only if the key is absent.

        When the key is present the map is unchanged, `value` is not called,
        and `key` is handed back. Returns None after an insert. The map stays
        exclusively borrowed while `value` runs.
        """
        entry = self.entry(key)
        if entry.occupied:
            entry.release()
            return key
        try:
            produced = value()
        except BaseException:
            entry.release()
            raise
        entry.insert(produced)
        return None

    def __setitem__(self, key: K, value: V) -> None:
        self.insert(key, value)

    def remove(self, key: Any) -> Optional[Field[K, V]]:
        found, index = self.locate(key)
        if not found:
            return None
        return self._buffer.remove_at(index)

    def __delitem__(self, key: Any) -> None:
        if self.remove(key) is None:
            raise KeyError(key)

    def remove_by_index(self, index: int) -> Field[K, V]:
        if not 0 <= index < len(self._buffer):
            raise IndexError(f"field index {index} out of range for map of length {len(self._buffer)}")
        return self._buffer.remove_at(index)

    def pop(self, key: Any, default: Any = _NOTHING) -> Any:
        field = self.remove(key)
        if field is not None:
            return field.value
        if default is _NOTHING:
            raise KeyError(key)
        return default

    def clear(self) -> None:
        self._buffer.clear()

    def shrink_to(self, min_capacity: int) -> None:
        self._buffer.shrink_to(min_capacity)

    def shrink_to_fit(self) -> None:
        self._buffer.shrink_to_fit()

    def entry(
        self, key: Any, *, to_owned: Optional[Callable[[Any], K]] = None
    ) -> Union[OccupiedEntry[K, V], VacantEntry[K, V]]:
        """Locate `key` once and return a cursor for reading or mutating it.

        `to_owned` converts a lookup key into the key to store and runs only
        if a vacant entry is filled.
        """
        borrow = self._buffer.borrow_exclusive()
        try:
            found, index = locate(borrow.fields, key, self._scan_limit)
        except Exception:
            borrow.release()
            raise
        if found:
            return OccupiedEntry(borrow, index, self.default_factory)
        return VacantEntry(borrow, index, key, to_owned, self.default_factory)

    def drain(self) -> Drain[K, V]:
        """Remove and yield fields in key order.

        Closing the drain early keeps the fields it has not yielded.
        """
        return self._buffer.drain()

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------
    def merge_with(
        self,
        other: "Map[K, V]",
        resolver: Resolver,
        filter: Optional[Filter] = None,
    ) -> None:
        """Merge the fields of `other` into this map in one linear pass.

        * key only in ``self``  – kept unchanged
        * key only in `other`   – inserted as-is, or ``filter(key, value)``
          when a filter is given
        * key in both           – ``resolver(key, mine, theirs)``

        Returning :data:`~flatmap.merge.DROP` from `resolver` or `filter`
        leaves the key out. `other` is not modified.
        """
        merged = merge_fields(self._buffer.fields, other._buffer.fields, resolver, filter)
        self._buffer.replace_all(merged)

    def merged_with(
        self,
        other: "Map[K, V]",
        resolver: Resolver,
        filter: Optional[Filter] = None,
    ) -> "Map[K, V]":
        """Like `merge_with`, but returns a new map and leaves ``self`` as is."""
        result = self.copy()
        result.merge_with(other, resolver, filter)
        return result

    def union(self, other: "Map[K, V]") -> UnionIter[K, V]:
        return UnionIter(self._buffer, other._buffer)

    def intersection(self, other: "Map[K, V]") -> Intersection[K, V]:
        return Intersection(self._buffer, other._buffer)

    def difference(self, other: "Map[K, V]") -> Difference[K, V]:
        return Difference(self._buffer, other._buffer)

    # ------------------------------------------------------------------
    # Iteration helpers (ordered)
    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[K]:
        return self.keys()

    def __reversed__(self) -> Iterator[K]:
        return Iter(self._buffer, lambda f: f.key, reverse=True)

    def keys(self) -> Iterator[K]:
        return Iter(self._buffer, lambda f: f.key)

    def values(self) -> Iterator[V]:
        return Iter(self._buffer, lambda f: f.value)

    def items(self) -> Iterator[tuple[K, V]]:
        return Iter(self._buffer, Field.into_parts)

    def fields(self) -> Iterator[Field[K, V]]:
        return Iter(self._buffer, lambda f: f)

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------
    def copy(self) -> "Map[K, V]":
        obj: Map[K, V] = type(self)(scan_limit=self._scan_limit, default_factory=self.default_factory)
        obj._buffer = OrderedBuffer.from_fields(
            [Field(f.key, f.value) for f in self._buffer.fields], self._buffer.capacity
        )
        return obj

    __copy__ = copy

    def to_bytes(self) -> bytes:
        from .serialization import pack_map

        return pack_map(self)

    @classmethod
    def from_bytes(cls, blob: bytes, *, trusted: bool = False) -> "Map[Any, Any]":
        from .serialization import unpack_map

        return unpack_map(blob, trusted=trusted)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Map):
            return NotImplemented
        return self._buffer.fields == other._buffer.fields

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        body = ", ".join(f"{f.key!r}: {f.value!r}" for f in self._buffer.fields)
        return f"{type(self).__name__}({{{body}}})"
