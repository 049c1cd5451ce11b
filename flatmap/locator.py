"""Key lookup over a sorted list of fields.

`locate` narrows the search window by bisection until it holds at most
`scan_limit` fields and then walks the remaining window linearly. For the
small collections this package targets, the last few comparisons dominate the
cost and a sequential walk over adjacent list slots beats further halving.

The threshold only affects speed. For any sorted input and any
``scan_limit >= 0`` the result equals that of `bisect_locate`, the plain
binary search kept here as the reference implementation.

Complexities:
    • bisection phase – O(log(n / scan_limit)) comparisons
    • scan phase      – at most scan_limit comparisons
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any, NamedTuple

from .field import Field

__all__ = ["SCAN_LIMIT", "Location", "bisect_locate", "compare", "locate", "validate_scan_limit"]

SCAN_LIMIT = 8  # window size at which bisection hands over to the scan

LESS = -1
EQUAL = 0
GREATER = 1


def compare(a: Any, b: Any) -> int:
    """Order `a` relative to `b` as LESS, EQUAL or GREATER."""
    if a < b:
        return LESS
    if a == b:
        return EQUAL
    return GREATER


class Location(NamedTuple):
    """Outcome of a lookup.

    ``found`` is true when ``fields[index]`` holds the key; otherwise
    ``index`` is where the key would be inserted to keep the order.
    """

    found: bool
    index: int

    @classmethod
    def found_at(cls, index: int) -> "Location":
        return cls(True, index)

    @classmethod
    def insert_at(cls, index: int) -> "Location":
        return cls(False, index)


def validate_scan_limit(scan_limit: int) -> int:
    if scan_limit < 0:
        raise ValueError(f"scan_limit must be >= 0, got {scan_limit}")
    return scan_limit


def locate(fields: Sequence[Field[Any, Any]], key: Any, scan_limit: int = SCAN_LIMIT) -> Location:
    low, high = 0, len(fields)
    while high - low > scan_limit:
        mid = low + (high - low) // 2
        order = compare(fields[mid].key, key)
        if order == LESS:
            low = mid + 1
        elif order == EQUAL:
            return Location.found_at(mid)
        else:
            high = mid
    for index in range(low, high):
        order = compare(fields[index].key, key)
        if order == LESS:
            continue
        if order == EQUAL:
            return Location.found_at(index)
        return Location.insert_at(index)
    return Location.insert_at(high)


def bisect_locate(fields: Sequence[Field[Any, Any]], key: Any) -> Location:
    """Textbook binary search; same contract as `locate`."""
    lo, hi = 0, len(fields)
    while lo < hi:
        mid = (lo + hi) // 2
        if fields[mid].key < key:
            lo = mid + 1
        else:
            hi = mid
    if lo < len(fields) and fields[lo].key == key:
        return Location.found_at(lo)
    return Location.insert_at(lo)
