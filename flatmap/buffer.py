"""Sorted contiguous storage shared by :class:`~flatmap.map.Map` and
:class:`~flatmap.set.Set`.

The buffer is a plain Python ``list`` of :class:`~flatmap.field.Field`
objects kept in strictly increasing key order. It never searches: every index
handed to :meth:`OrderedBuffer.insert_at` / :meth:`OrderedBuffer.remove_at`
was produced by the locator, so bounds are asserted rather than reported.

Python lists hide their allocation, so the buffer keeps a *logical* capacity
that follows the usual growth rules:

    • growing past capacity  – ``max(2 * capacity, needed, _MIN_GROWTH)``
    • ``shrink_to(n)``        – ``max(len, n)`` if that is smaller
    • ``shrink_to_fit()``     – ``len``
    • ``clear()``             – capacity unchanged

Borrowing
---------
Entries, drains and lazy iterators hold a *borrow* of the buffer for as long
as they live. A borrow is either shared (any number of readers) or exclusive
(a single writer). While a borrow is active, access that would alias it
raises :class:`BorrowError`:

    • any write while any borrow is held (except through the exclusive guard)
    • any read while an exclusive borrow is held

A guard is released by :meth:`release`, by leaving its ``with`` block or
when it is garbage collected.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

from .field import Field

__all__ = [
    "BorrowError",
    "Drain",
    "ExclusiveBorrow",
    "Iter",
    "OrderedBuffer",
    "SharedBorrow",
]

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")
T = TypeVar("T")

_MIN_GROWTH = 4  # smallest capacity after the first reallocation


class BorrowError(RuntimeError):
    """The buffer was accessed in a way that aliases an active borrow."""


class OrderedBuffer(Generic[K, V]):
    """Strictly sorted list of fields with a logical capacity."""

    __slots__ = ("_fields", "_capacity", "_readers", "_writer")

    def __init__(self, capacity: int = 0):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self._fields: list[Field[K, V]] = []
        self._capacity = capacity
        self._readers = 0
        self._writer = False

    @classmethod
    def with_capacity(cls, capacity: int) -> "OrderedBuffer[K, V]":
        return cls(capacity)

    @classmethod
    def from_fields(cls, fields: list[Field[K, V]], capacity: int = 0) -> "OrderedBuffer[K, V]":
        """Adopt an already sorted list without copying it."""
        buf: OrderedBuffer[K, V] = cls(max(capacity, len(fields)))
        buf._fields = fields
        return buf

    # ------------------------------------------------------------------
    # Borrow checks 🔒
    # ------------------------------------------------------------------
    def _check_read(self) -> None:
        if self._writer:
            raise BorrowError("buffer is exclusively borrowed")

    def _check_write(self) -> None:
        if self._writer:
            raise BorrowError("buffer is exclusively borrowed")
        if self._readers:
            raise BorrowError(f"buffer has {self._readers} active shared borrow(s)")

    @property
    def borrowed(self) -> bool:
        return self._writer or self._readers > 0

    def borrow_shared(self) -> "SharedBorrow[K, V]":
        self._check_read()
        return SharedBorrow(self)

    def borrow_exclusive(self) -> "ExclusiveBorrow[K, V]":
        self._check_write()
        return ExclusiveBorrow(self)

    # ------------------------------------------------------------------
    # Query API
    # ------------------------------------------------------------------
    @property
    def fields(self) -> list[Field[K, V]]:
        """The backing list. Callers must treat it as read-only."""
        self._check_read()
        return self._fields

    @property
    def capacity(self) -> int:
        self._check_read()
        return self._capacity

    def __len__(self) -> int:
        self._check_read()
        return len(self._fields)

    # ------------------------------------------------------------------
    # Mutation API
    # ------------------------------------------------------------------
    def insert_at(self, index: int, field: Field[K, V]) -> None:
        self._check_write()
        self._insert_at(index, field)

    def remove_at(self, index: int) -> Field[K, V]:
        self._check_write()
        return self._remove_at(index)

    def replace_at(self, index: int, field: Field[K, V]) -> Field[K, V]:
        """Swap the field at `index` for one with an equal key."""
        self._check_write()
        return self._replace_at(index, field)

    def replace_all(self, fields: list[Field[K, V]]) -> None:
        """Adopt `fields` (already sorted) as the new contents."""
        self._check_write()
        self._fields = fields
        self._reserve(0)

    def clear(self) -> None:
        self._check_write()
        self._fields.clear()

    def shrink_to(self, min_capacity: int) -> None:
        self._check_write()
        target = max(len(self._fields), min_capacity)
        if target < self._capacity:
            logger.debug("shrinking buffer capacity %d -> %d", self._capacity, target)
            self._capacity = target

    def shrink_to_fit(self) -> None:
        self.shrink_to(0)

    def drain(self) -> "Drain[K, V]":
        return Drain(self.borrow_exclusive())

    # ------------------------------------------------------------------
    # Unchecked internals (used directly by the exclusive guard)
    # ------------------------------------------------------------------
    def _reserve(self, additional: int) -> None:
        needed = len(self._fields) + additional
        if needed > self._capacity:
            grown = max(self._capacity * 2, needed, _MIN_GROWTH)
            logger.debug("growing buffer capacity %d -> %d", self._capacity, grown)
            self._capacity = grown

    def _insert_at(self, index: int, field: Field[K, V]) -> None:
        assert 0 <= index <= len(self._fields), f"insert index {index} out of range"
        self._reserve(1)
        self._fields.insert(index, field)

    def _remove_at(self, index: int) -> Field[K, V]:
        assert 0 <= index < len(self._fields), f"remove index {index} out of range"
        return self._fields.pop(index)

    def _replace_at(self, index: int, field: Field[K, V]) -> Field[K, V]:
        assert 0 <= index < len(self._fields), f"replace index {index} out of range"
        previous = self._fields[index]
        self._fields[index] = field
        return previous

    def __repr__(self) -> str:  # pragma: no cover
        return f"OrderedBuffer(len={len(self._fields)}, capacity={self._capacity})"


class _Borrow(Generic[K, V]):
    __slots__ = ("_buffer", "_active")

    def __init__(self, buffer: OrderedBuffer[K, V]):
        self._buffer = buffer
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def _check_active(self) -> None:
        if not self._active:
            raise BorrowError("borrow has already been released")

    @property
    def fields(self) -> list[Field[K, V]]:
        self._check_active()
        return self._buffer._fields

    def release(self) -> None:
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.release()

    def __del__(self) -> None:
        if getattr(self, "_active", False):
            self.release()


class SharedBorrow(_Borrow[K, V]):
    """Read access that forbids writers until released."""

    __slots__ = ()

    def __init__(self, buffer: OrderedBuffer[K, V]):
        super().__init__(buffer)
        buffer._readers += 1

    def release(self) -> None:
        if self._active:
            self._active = False
            self._buffer._readers -= 1


class ExclusiveBorrow(_Borrow[K, V]):
    """Sole read/write access to a buffer until released."""

    __slots__ = ()

    def __init__(self, buffer: OrderedBuffer[K, V]):
        super().__init__(buffer)
        buffer._writer = True

    def release(self) -> None:
        if self._active:
            self._active = False
            self._buffer._writer = False

    def insert_at(self, index: int, field: Field[K, V]) -> None:
        self._check_active()
        self._buffer._insert_at(index, field)

    def remove_at(self, index: int) -> Field[K, V]:
        self._check_active()
        return self._buffer._remove_at(index)

    def replace_at(self, index: int, field: Field[K, V]) -> Field[K, V]:
        self._check_active()
        return self._buffer._replace_at(index, field)

    def remove_prefix(self, count: int) -> None:
        self._check_active()
        assert 0 <= count <= len(self._buffer._fields)
        del self._buffer._fields[:count]


class Iter(Generic[K, V, T]):
    """Single-pass iterator over a buffer that holds a shared borrow.

    Each field is passed through `project` before being returned. Fields come
    in key order, or back to front when `reverse` is set. The borrow is
    dropped when the iterator is exhausted, closed or collected.
    """

    __slots__ = ("_borrow", "_project", "_front", "_back", "_reverse")

    def __init__(
        self,
        buffer: OrderedBuffer[K, V],
        project: Callable[[Field[K, V]], T],
        reverse: bool = False,
    ):
        self._borrow = buffer.borrow_shared()
        self._project = project
        self._front = 0
        self._back = len(self._borrow.fields)
        self._reverse = reverse

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        if not self._borrow.active:
            raise StopIteration
        if self._front >= self._back:
            self._borrow.release()
            raise StopIteration
        if self._reverse:
            self._back -= 1
            field = self._borrow.fields[self._back]
        else:
            field = self._borrow.fields[self._front]
            self._front += 1
        return self._project(field)

    def __reversed__(self) -> "Iter[K, V, T]":
        """Fields not yet yielded, in the opposite direction.

        The new iterator takes over the window; this one is closed.
        """
        twin: Iter[K, V, T] = Iter(self._borrow._buffer, self._project, not self._reverse)
        if self._borrow.active:
            twin._front, twin._back = self._front, self._back
        else:
            twin._borrow.release()
        self.close()
        return twin

    def __length_hint__(self) -> int:
        if not self._borrow.active:
            return 0
        return self._back - self._front

    def close(self) -> None:
        self._borrow.release()


class Drain(Generic[K, V]):
    """Removes fields front to back as they are yielded.

    Closing a drain early keeps the fields that were not yet yielded, so the
    buffer always holds exactly the unconsumed, still sorted, suffix.
    """

    __slots__ = ("_borrow", "_taken")

    def __init__(self, borrow: ExclusiveBorrow[K, V]):
        self._borrow = borrow
        self._taken = 0

    def __iter__(self) -> "Drain[K, V]":
        return self

    def __next__(self) -> Field[K, V]:
        if not self._borrow.active:
            raise StopIteration
        fields = self._borrow.fields
        if self._taken >= len(fields):
            self.close()
            raise StopIteration
        field = fields[self._taken]
        self._taken += 1
        return field

    def __len__(self) -> int:
        if not self._borrow.active:
            return 0
        return len(self._borrow.fields) - self._taken

    def close(self) -> None:
        if self._borrow.active:
            self._borrow.remove_prefix(self._taken)
            self._taken = 0
            self._borrow.release()

    def __enter__(self) -> "Drain[K, V]":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __del__(self) -> None:
        if hasattr(self, "_borrow"):
            self.close()
