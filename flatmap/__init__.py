"""flatmap: ordered maps and sets stored in a single sorted list.

`flatmap.Map` and `flatmap.Set` keep their elements in one contiguous list
sorted by key. Lookups use a bisect-then-scan search, mutations go through
occupied/vacant entries, and two collections can be merged in one linear pass
with `Map.merge_with`. The package is aimed at small collections (up to a few
hundred entries) where this layout beats trees and hash tables.
"""

from __future__ import annotations

__all__ = [
    "DROP",
    "MISSING",
    "BorrowError",
    "Field",
    "Location",
    "Map",
    "OccupiedEntry",
    "SCAN_LIMIT",
    "Set",
    "Unioned",
    "VacantEntry",
    "drop_shared",
    "fingerprint",
    "keep_left",
    "keep_right",
]

from .buffer import BorrowError
from .entry import OccupiedEntry, VacantEntry
from .field import Field
from .hashing import fingerprint
from .locator import SCAN_LIMIT, Location
from .map import Map
from .merge import DROP, MISSING, Unioned, drop_shared, keep_left, keep_right
from .set import Set
