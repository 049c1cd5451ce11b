"""Occupied/vacant cursors returned by :meth:`flatmap.map.Map.entry`.

An entry remembers where the locator placed its key, so the follow-up
mutation never searches again. To keep that position valid the entry holds
an exclusive borrow of the map's buffer: until the entry is consumed (by
``insert``, ``replace``, ``remove`` or any ``or_*`` call), released, used as a
context manager, or dropped, every other access to the map raises
:class:`~flatmap.buffer.BorrowError`.

    m = Map()
    m.entry("hits").or_insert(0)           # -> 0
    with m.entry("hits") as e:
        e.and_modify(lambda n: n + 1)
"""
from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, Optional, TypeVar, Union

from .buffer import ExclusiveBorrow
from .field import Field
from .locator import EQUAL, compare

__all__ = ["Entry", "OccupiedEntry", "VacantEntry"]

K = TypeVar("K")
V = TypeVar("V")


class _BaseEntry(Generic[K, V]):
    __slots__ = ("_borrow", "_index", "_default_factory")

    occupied: bool = False

    def __init__(
        self,
        borrow: ExclusiveBorrow[K, V],
        index: int,
        default_factory: Optional[Callable[[], V]] = None,
    ):
        self._borrow = borrow
        self._index = index
        self._default_factory = default_factory

    @property
    def index(self) -> int:
        return self._index

    @property
    def active(self) -> bool:
        return self._borrow.active

    def release(self) -> None:
        """Give up the entry without mutating the map."""
        self._borrow.release()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.release()

    def _resolve_factory(self, factory: Optional[Callable[[], V]]) -> Callable[[], V]:
        factory = factory or self._default_factory
        if factory is None:
            raise TypeError("or_default() needs a factory or a map created with default_factory")
        return factory


class OccupiedEntry(_BaseEntry[K, V]):
    """Entry for a key the map already holds."""

    __slots__ = ()

    occupied = True

    @property
    def field(self) -> Field[K, V]:
        return self._borrow.fields[self._index]

    @property
    def key(self) -> K:
        return self.field.key

    def get(self) -> V:
        return self.field.value

    def set(self, value: V) -> None:
        """Overwrite the value in place; the entry stays usable."""
        self.field.value = value

    def and_modify(self, update: Callable[[V], V]) -> "OccupiedEntry[K, V]":
        field = self.field
        field.value = update(field.value)
        return self

    def replace(self, value: V) -> V:
        field = self.field
        previous = field.value
        field.value = value
        self.release()
        return previous

    def replace_field(self, field: Field[K, V]) -> Field[K, V]:
        """Swap the whole stored field (its key must compare equal)."""
        assert compare(field.key, self.key) == EQUAL, "replacement key differs"
        previous = self._borrow.replace_at(self._index, field)
        self.release()
        return previous

    def remove(self) -> Field[K, V]:
        removed = self._borrow.remove_at(self._index)
        self.release()
        return removed

    def into_value(self) -> V:
        value = self.field.value
        self.release()
        return value

    def or_insert(self, value: V) -> V:
        return self.into_value()

    def or_insert_with(self, contents: Callable[[], V]) -> V:
        return self.into_value()

    def or_default(self, factory: Optional[Callable[[], V]] = None) -> V:
        return self.into_value()

    def __repr__(self) -> str:
        if not self.active:
            return "OccupiedEntry(<released>)"
        return f"OccupiedEntry(index={self._index}, key={self.key!r})"


class VacantEntry(_BaseEntry[K, V]):
    """Entry for a missing key, remembering where it would be inserted.

    The key used for the search is kept as-is; `to_owned` (when given) turns
    it into the stored key only once a value is actually inserted.
    """

    __slots__ = ("_key", "_to_owned")

    def __init__(
        self,
        borrow: ExclusiveBorrow[K, V],
        index: int,
        key: Any,
        to_owned: Optional[Callable[[Any], K]] = None,
        default_factory: Optional[Callable[[], V]] = None,
    ):
        super().__init__(borrow, index, default_factory)
        self._key = key
        self._to_owned = to_owned

    @property
    def key(self) -> Any:
        return self._key

    def insert(self, value: V) -> V:
        key = self._to_owned(self._key) if self._to_owned else self._key
        self._borrow.insert_at(self._index, Field(key, value))
        self.release()
        return value

    def and_modify(self, update: Callable[[V], V]) -> "VacantEntry[K, V]":
        return self

    def or_insert(self, value: V) -> V:
        return self.insert(value)

    def or_insert_with(self, contents: Callable[[], V]) -> V:
        try:
            value = contents()
        except BaseException:
            self.release()
            raise
        return self.insert(value)

    def or_default(self, factory: Optional[Callable[[], V]] = None) -> V:
        return self.insert(self._resolve_factory(factory)())

    def __repr__(self) -> str:
        state = "" if self.active else ", <released>"
        return f"VacantEntry(index={self._index}, key={self._key!r}{state})"


Entry = Union[OccupiedEntry[K, V], VacantEntry[K, V]]
