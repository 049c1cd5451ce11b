"""Two-cursor algorithms over a pair of sorted field lists.

`merge_fields` combines two sorted lists in a single linear pass, the merge
step of merge sort specialised so that a key found on both sides is resolved
into one field instead of being kept twice:

    • key only on the left   – the left field passes through unchanged
    • key only on the right  – copied as-is, or run through `filter`
    • key on both sides      – ``resolver(key, left_value, right_value)``

A resolver or filter returning `DROP` removes the key from the result. The
output is built front to back, so dropping a key never leaves a hole to patch.

`Union`, `Intersection` and `Difference` walk the same two cursors lazily.
They are single-pass, cannot be restarted, may be abandoned at any point and
hold a shared borrow on both buffers until exhausted, closed or collected.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Generic, NamedTuple, Optional, TypeVar

from .buffer import OrderedBuffer
from .field import Field
from .locator import EQUAL, LESS, compare

__all__ = [
    "DROP",
    "MISSING",
    "Difference",
    "Intersection",
    "Union",
    "Unioned",
    "drop_shared",
    "keep_left",
    "keep_right",
    "merge_fields",
]

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


class _Sentinel:
    __slots__ = ("_name",)

    def __init__(self, name: str):
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __bool__(self) -> bool:
        return False


DROP: Any = _Sentinel("DROP")
MISSING: Any = _Sentinel("MISSING")

Resolver = Callable[[Any, Any, Any], Any]
Filter = Callable[[Any, Any], Any]


def keep_left(key: Any, left: Any, right: Any) -> Any:
    return left


def keep_right(key: Any, left: Any, right: Any) -> Any:
    return right


def drop_shared(key: Any, left: Any, right: Any) -> Any:
    return DROP


def merge_fields(
    left: list[Field[K, V]],
    right: list[Field[K, V]],
    resolver: Resolver,
    filter: Optional[Filter] = None,
) -> list[Field[K, V]]:
    """Merge two strictly sorted field lists into a new one.

    Neither input is modified. Left-only fields are reused as-is; every other
    field in the result is new.
    """
    merged: list[Field[K, V]] = []
    i = j = 0
    n_left, n_right = len(left), len(right)
    dropped = 0

    def take_right(field: Field[K, V]) -> None:
        nonlocal dropped
        value = filter(field.key, field.value) if filter is not None else field.value
        if value is DROP:
            dropped += 1
        else:
            merged.append(Field(field.key, value))

    while i < n_left and j < n_right:
        lf, rf = left[i], right[j]
        order = compare(lf.key, rf.key)
        if order == LESS:
            merged.append(lf)
            i += 1
        elif order == EQUAL:
            value = resolver(lf.key, lf.value, rf.value)
            if value is DROP:
                dropped += 1
            elif value is lf.value:
                merged.append(lf)
            else:
                merged.append(Field(lf.key, value))
            i += 1
            j += 1
        else:
            take_right(rf)
            j += 1

    merged.extend(left[i:])
    for rf in right[j:]:
        take_right(rf)

    logger.debug(
        "merged %d + %d fields into %d (%d dropped)", n_left, n_right, len(merged), dropped
    )
    return merged


class Unioned(NamedTuple):
    """One key of a union; the side that lacks it holds `MISSING`."""

    key: Any
    left: Any
    right: Any

    @property
    def in_left(self) -> bool:
        return self.left is not MISSING

    @property
    def in_right(self) -> bool:
        return self.right is not MISSING

    def map_both(self, merge: Callable[[Any, Any, Any], Any]) -> tuple[Any, Any]:
        """Collapse to ``(key, value)``, calling `merge` only for shared keys."""
        if self.left is MISSING:
            return self.key, self.right
        if self.right is MISSING:
            return self.key, self.left
        return self.key, merge(self.key, self.left, self.right)


class _TwoCursor(Generic[K, V]):
    __slots__ = ("_left", "_right", "_i", "_j")

    def __init__(self, left: OrderedBuffer[K, V], right: OrderedBuffer[K, V]):
        self._left = left.borrow_shared()
        try:
            self._right = right.borrow_shared()
        except Exception:
            self._left.release()
            raise
        self._i = 0
        self._j = 0

    def __iter__(self):
        return self

    def __next__(self):
        if not self._left.active:
            raise StopIteration
        item = self._step(self._left.fields, self._right.fields)
        if item is None:
            self.close()
            raise StopIteration
        return item

    def _step(self, left: list[Field[K, V]], right: list[Field[K, V]]):
        raise NotImplementedError

    def close(self) -> None:
        self._left.release()
        self._right.release()


class Union(_TwoCursor[K, V]):
    """Every key of either side once, as `Unioned` items in key order."""

    __slots__ = ()

    def _step(self, left: list[Field[K, V]], right: list[Field[K, V]]) -> Optional[Unioned]:
        if self._i < len(left):
            lf = left[self._i]
            if self._j < len(right):
                rf = right[self._j]
                order = compare(lf.key, rf.key)
                if order == EQUAL:
                    self._i += 1
                    self._j += 1
                    return Unioned(lf.key, lf.value, rf.value)
                if order != LESS:
                    self._j += 1
                    return Unioned(rf.key, MISSING, rf.value)
            self._i += 1
            return Unioned(lf.key, lf.value, MISSING)
        if self._j < len(right):
            rf = right[self._j]
            self._j += 1
            return Unioned(rf.key, MISSING, rf.value)
        return None


class Intersection(_TwoCursor[K, V]):
    """``(key, left_value, right_value)`` for keys present on both sides."""

    __slots__ = ()

    def _step(self, left: list[Field[K, V]], right: list[Field[K, V]]) -> Optional[tuple[Any, Any, Any]]:
        while self._i < len(left) and self._j < len(right):
            lf, rf = left[self._i], right[self._j]
            order = compare(lf.key, rf.key)
            if order == LESS:
                self._i += 1
            elif order == EQUAL:
                self._i += 1
                self._j += 1
                return lf.key, lf.value, rf.value
            else:
                self._j += 1
        return None


class Difference(_TwoCursor[K, V]):
    """``(key, value)`` for keys of the left side missing from the right."""

    __slots__ = ()

    def _step(self, left: list[Field[K, V]], right: list[Field[K, V]]) -> Optional[tuple[Any, Any]]:
        while self._i < len(left):
            lf = left[self._i]
            if self._j >= len(right):
                self._i += 1
                return lf.key, lf.value
            order = compare(lf.key, right[self._j].key)
            if order == LESS:
                self._i += 1
                return lf.key, lf.value
            if order == EQUAL:
                self._i += 1
            self._j += 1
        return None

