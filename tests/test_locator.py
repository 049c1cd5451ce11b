"""Unit tests for the hybrid bisect-then-scan locator."""
import random

import pytest

from flatmap.field import Field
from flatmap.locator import Location, bisect_locate, compare, locate


def _fields(keys):
    return [Field(k, None) for k in keys]


@pytest.fixture
def even_fields():
    """Keys 0, 2, 4, ... 98."""
    return _fields(range(0, 100, 2))


def test_compare():
    assert compare(1, 2) == -1
    assert compare(2, 2) == 0
    assert compare(3, 2) == 1
    assert compare("a", "b") == -1


def test_empty():
    """Every key goes to position zero of an empty buffer."""
    assert locate([], 5) == Location.insert_at(0)
    assert locate([], 5, scan_limit=0) == Location.insert_at(0)


def test_found_and_insert_positions(even_fields):
    assert locate(even_fields, 0) == Location(True, 0)
    assert locate(even_fields, 98) == Location(True, 49)
    assert locate(even_fields, 40) == Location(True, 20)
    assert locate(even_fields, -1) == Location(False, 0)
    assert locate(even_fields, 41) == Location(False, 21)
    assert locate(even_fields, 1000) == Location(False, 50)


@pytest.mark.parametrize("scan_limit", [0, 1, 2, 3, 8, 16, 1000])
def test_threshold_does_not_change_result(even_fields, scan_limit):
    """Any scan limit must agree with the plain binary search."""
    for key in range(-2, 102):
        assert locate(even_fields, key, scan_limit) == bisect_locate(even_fields, key)


@pytest.mark.parametrize("seed", range(20))
def test_matches_reference_on_random_buffers(seed):
    rng = random.Random(seed)
    keys = sorted(rng.sample(range(1000), rng.randint(0, 300)))
    fields = _fields(keys)
    scan_limit = rng.randint(0, 32)
    for _ in range(200):
        key = rng.randint(-10, 1010)
        assert locate(fields, key, scan_limit) == bisect_locate(fields, key)


def test_string_keys():
    fields = _fields(["apple", "banana", "cherry"])
    assert locate(fields, "banana") == Location.found_at(1)
    assert locate(fields, "blueberry") == Location.insert_at(2)


def test_location_unpacks():
    found, index = Location.found_at(3)
    assert found is True
    assert index == 3
