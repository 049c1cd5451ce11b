"""The stored unit of every collection: an owned *key/value* pair."""
from __future__ import annotations

from typing import Any, Generic, TypeVar

__all__ = ["Field"]

K = TypeVar("K")
V = TypeVar("V")


class Field(Generic[K, V]):
    """A key and its value.

    The key is fixed once the field is created; replacing a key means removing
    the field and inserting a new one. The value may be reassigned in place.
    """

    __slots__ = ("_key", "value")

    def __init__(self, key: K, value: V):
        self._key = key
        self.value = value

    @property
    def key(self) -> K:
        return self._key

    def into_parts(self) -> tuple[K, V]:
        return self._key, self.value

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Field):
            return NotImplemented
        return self._key == other._key and self.value == other.value

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Field(key={self._key!r}, value={self.value!r})"
