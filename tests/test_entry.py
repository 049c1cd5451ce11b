"""Tests for the occupied/vacant entry protocol."""
import pytest

from flatmap import BorrowError, Field, Map, OccupiedEntry, VacantEntry


@pytest.fixture
def counts():
    return Map({"a": 1, "c": 3})


def test_or_insert(counts):
    assert counts.entry("b").or_insert(2) == 2
    assert counts.entry("b").or_insert(99) == 2
    assert list(counts.items()) == [("a", 1), ("b", 2), ("c", 3)]


def test_and_modify_chain(counts):
    value = counts.entry("a").and_modify(lambda v: v + 1).or_insert_with(pytest.fail)
    assert value == 2
    value = counts.entry("z").and_modify(lambda v: pytest.fail("vacant")).or_insert_with(lambda: 26)
    assert value == 26
    assert counts["z"] == 26


def test_or_default_uses_factory_once():
    calls = []

    def factory():
        calls.append(1)
        return []

    m = Map(default_factory=factory)
    m.entry("k").or_default().append(1)
    m.entry("k").or_default().append(2)
    assert m["k"] == [1, 2]
    assert calls == [1]


def test_or_default_explicit_factory(counts):
    assert counts.entry("b").or_default(int) == 0
    assert counts.entry("a").or_default(pytest.fail) == 1


def test_or_default_without_factory(counts):
    entry = counts.entry("b")
    with pytest.raises(TypeError):
        entry.or_default()
    entry.release()
    assert "b" not in counts


def test_occupied_entry_operations(counts):
    entry = counts.entry("a")
    assert isinstance(entry, OccupiedEntry)
    assert entry.occupied
    assert entry.key == "a"
    assert entry.index == 0
    assert entry.get() == 1
    entry.set(10)
    assert entry.get() == 10
    assert entry.replace(11) == 10
    assert not entry.active
    with pytest.raises(BorrowError):
        entry.get()
    assert counts["a"] == 11

    removed = counts.entry("c").remove()
    assert removed == Field("c", 3)
    assert list(counts) == ["a"]


def test_vacant_entry_operations(counts):
    entry = counts.entry("b")
    assert isinstance(entry, VacantEntry)
    assert not entry.occupied
    assert entry.key == "b"
    assert entry.index == 1
    assert entry.insert(2) == 2
    assert not entry.active
    assert counts["b"] == 2


def test_owned_key_conversion_is_lazy():
    """`to_owned` only runs when a vacant entry is filled."""
    conversions = []

    def to_owned(key):
        conversions.append(key)
        return bytes(key)

    m = Map({b"a": 1})
    assert m.entry(bytearray(b"a"), to_owned=to_owned).or_insert(5) == 1
    assert conversions == []

    m.entry(bytearray(b"b"), to_owned=to_owned).or_insert(2)
    assert conversions == [bytearray(b"b")]
    stored = m.field(1).key
    assert type(stored) is bytes
    assert stored == b"b"


def test_entry_holds_exclusive_borrow(counts):
    entry = counts.entry("a")
    with pytest.raises(BorrowError):
        counts.get("a")
    with pytest.raises(BorrowError):
        counts.insert("q", 0)
    with pytest.raises(BorrowError):
        counts.entry("c")
    entry.release()
    assert counts.get("a") == 1


def test_entry_context_manager(counts):
    with counts.entry("a") as entry:
        entry.and_modify(lambda v: v * 100)
    assert counts["a"] == 100
    with counts.entry("b") as entry:
        pass
    assert "b" not in counts


def test_insert_goes_through_entry(counts):
    assert counts.insert("a", 5) == Field("a", 1)
    assert counts.insert("b", 2) is None
    assert list(counts.items()) == [("a", 5), ("b", 2), ("c", 3)]
