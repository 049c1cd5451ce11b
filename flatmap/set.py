"""Ordered collection of unique members, built on :class:`~flatmap.map.Map`.

Each member is stored as the key of a field whose value is always ``None``;
lookups, ordering and borrowing are exactly those of the map.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any, Generic, Optional, TypeVar

from .field import Field
from .locator import SCAN_LIMIT
from .map import Map
from .merge import Difference, Intersection, Union

__all__ = ["Set"]

T = TypeVar("T")


def _nothing() -> None:
    return None


class _Members(Generic[T]):
    """Projects a map cursor onto plain members."""

    __slots__ = ("_inner",)

    def __init__(self, inner: Any):
        self._inner = inner

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        item = next(self._inner)
        return item.key if isinstance(item, Field) else item[0]

    def close(self) -> None:
        self._inner.close()

    def __enter__(self) -> "_Members[T]":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class Set(Generic[T]):
    """Sorted set of unique members.

    >>> s = Set([42, 1, 42])
    >>> len(s), s.member(0), s.member(1)
    (2, 1, 42)
    """

    __slots__ = ("_map",)

    def __init__(
        self,
        members: Optional[Iterable[T]] = None,
        *,
        capacity: int = 0,
        scan_limit: int = SCAN_LIMIT,
    ):
        self._map: Map[T, None] = Map(capacity=capacity, scan_limit=scan_limit)
        if members is not None:
            for member in members:
                self.insert(member)

    @classmethod
    def with_capacity(cls, capacity: int, **kwargs: Any) -> "Set[T]":
        return cls(capacity=capacity, **kwargs)

    @classmethod
    def from_sorted(cls, members: Iterable[T], **kwargs: Any) -> "Set[T]":
        """Build from members already in strictly increasing order."""
        obj: Set[T] = cls(**kwargs)
        obj._map = Map.from_sorted(
            ((m, None) for m in members),
            capacity=obj._map.capacity,
            scan_limit=obj._map.scan_limit,
        )
        return obj

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def capacity(self) -> int:
        return self._map.capacity

    def __len__(self) -> int:
        return len(self._map)

    def is_empty(self) -> bool:
        return self._map.is_empty()

    def __bool__(self) -> bool:
        return bool(self._map)

    # ------------------------------------------------------------------
    # Query API
    # ------------------------------------------------------------------
    def contains(self, member: Any) -> bool:
        return self._map.contains(member)

    __contains__ = contains

    def get(self, member: Any) -> Optional[T]:
        """The stored member equal to `member`, if any."""
        field = self._map.get_field(member)
        return None if field is None else field.key

    def member(self, index: int) -> Optional[T]:
        field = self._map.field(index)
        return None if field is None else field.key

    # ------------------------------------------------------------------
    # Mutation API
    # ------------------------------------------------------------------
    def insert(self, member: T) -> bool:
        """Add `member`; False (and no change) if an equal member exists."""
        return self._map.insert_with(member, _nothing) is None

    add = insert

    def replace(self, member: T) -> Optional[T]:
        """Add `member`, overwriting and returning an equal stored member."""
        previous = self._map.insert(member, None)
        return None if previous is None else previous.key

    def remove(self, member: Any) -> Optional[T]:
        field = self._map.remove(member)
        return None if field is None else field.key

    discard = remove

    def remove_member(self, index: int) -> Optional[T]:
        """Remove the member at `index`; None when `index` is out of range."""
        if not 0 <= index < len(self._map):
            return None
        return self._map.remove_by_index(index).key

    def clear(self) -> None:
        self._map.clear()

    def shrink_to(self, min_capacity: int) -> None:
        self._map.shrink_to(min_capacity)

    def shrink_to_fit(self) -> None:
        self._map.shrink_to_fit()

    def drain(self) -> _Members[T]:
        """Remove and yield members in order; closing early keeps the rest."""
        return _Members(self._map.drain())

    # ------------------------------------------------------------------
    # Set algebra (lazy, single pass)
    # ------------------------------------------------------------------
    def union(self, other: "Set[T]") -> _Members[T]:
        return _Members(Union(self._map._buffer, other._map._buffer))

    def intersection(self, other: "Set[T]") -> _Members[T]:
        return _Members(Intersection(self._map._buffer, other._map._buffer))

    def difference(self, other: "Set[T]") -> _Members[T]:
        return _Members(Difference(self._map._buffer, other._map._buffer))

    # ------------------------------------------------------------------
    # Iteration & misc
    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[T]:
        return self._map.keys()

    def __reversed__(self) -> Iterator[T]:
        return reversed(self._map)

    def copy(self) -> "Set[T]":
        obj: Set[T] = type(self)(scan_limit=self._map.scan_limit)
        obj._map = self._map.copy()
        return obj

    __copy__ = copy

    def to_bytes(self) -> bytes:
        from .serialization import pack_set

        return pack_set(self)

    @classmethod
    def from_bytes(cls, blob: bytes, *, trusted: bool = False) -> "Set[Any]":
        from .serialization import unpack_set

        return unpack_set(blob, trusted=trusted)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Set):
            return NotImplemented
        return self._map == other._map

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if not self._map:
            return f"{type(self).__name__}()"
        body = ", ".join(repr(f.key) for f in self._map._buffer.fields)
        return f"{type(self).__name__}({{{body}}})"
