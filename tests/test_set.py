"""Tests for the Set adapter."""
import random

import pytest

from flatmap import BorrowError, Set


@pytest.fixture
def evens():
    return Set([6, 2, 4, 0])


@pytest.fixture
def threes():
    return Set([0, 3, 6, 9])


def test_insert_sequence():
    s = Set()
    assert s.insert(42) is True
    assert s.insert(1) is True
    assert s.insert(42) is False
    assert len(s) == 2
    assert s.member(0) == 1
    assert s.member(1) == 42
    assert s.member(2) is None


def test_insert_keeps_stored_member_replace_overwrites():
    s = Set([1])
    assert s.insert(1.0) is False
    assert type(s.get(1.0)) is int
    assert s.replace(1.0) == 1
    assert type(s.member(0)) is float
    assert s.replace(2) is None
    assert list(s) == [1.0, 2]


@pytest.mark.parametrize("seed", range(10))
def test_uniqueness(seed):
    rng = random.Random(seed)
    s = Set()
    model = set()
    for _ in range(300):
        member = rng.randint(0, 50)
        assert s.insert(member) == (member not in model)
        model.add(member)
    assert list(s) == sorted(model)


def test_contains_get_remove(evens):
    assert 4 in evens
    assert evens.contains(0)
    assert 5 not in evens
    assert evens.get(6) == 6
    assert evens.get(5) is None
    assert evens.remove(4) == 4
    assert evens.remove(4) is None
    assert list(evens) == [0, 2, 6]


def test_remove_member(evens):
    assert evens.remove_member(1) == 2
    assert evens.remove_member(3) is None
    assert evens.remove_member(-1) is None
    assert list(evens) == [0, 4, 6]


def test_set_algebra(evens, threes):
    assert list(evens.union(threes)) == [0, 2, 3, 4, 6, 9]
    assert list(evens.intersection(threes)) == [0, 6]
    assert list(evens.difference(threes)) == [2, 4]
    assert list(threes.difference(evens)) == [3, 9]


def test_set_algebra_is_lazy_and_single_pass(evens, threes):
    union = evens.union(threes)
    assert next(union) == 0
    assert next(union) == 2
    with pytest.raises(BorrowError):
        evens.insert(1)
    union.close()
    assert list(union) == []
    assert evens.insert(1)

    diff = evens.difference(threes)
    assert list(diff) == [1, 2, 4]
    assert list(diff) == []


def test_drain_full(evens):
    assert list(evens.drain()) == [0, 2, 4, 6]
    assert evens.is_empty()
    assert len(evens) == 0


def test_drain_partial(evens):
    with evens.drain() as drain:
        assert next(drain) == 0
        assert next(drain) == 2
    assert list(evens) == [4, 6]
    assert evens.insert(5)
    assert list(evens) == [4, 5, 6]


def test_capacity():
    s = Set.with_capacity(10)
    s.insert("a")
    assert s.capacity == 10
    s.shrink_to(0)
    assert s.capacity == 1
    s.clear()
    assert s.capacity == 1
    assert s.is_empty()

    s = Set.with_capacity(10)
    s.insert("a")
    s.shrink_to_fit()
    assert s.capacity == 1


def test_from_sorted():
    assert list(Set.from_sorted([1, 2, 3])) == [1, 2, 3]
    assert Set.from_sorted([1, 2], capacity=100).capacity == 100
    assert Set.from_sorted(range(6), capacity=2).capacity >= 6
    with pytest.raises(ValueError):
        Set.from_sorted([1, 1])


def test_copy_eq_repr(evens):
    clone = evens.copy()
    assert clone == evens
    clone.insert(8)
    assert clone != evens
    assert repr(evens) == "Set({0, 2, 4, 6})"
    assert repr(Set()) == "Set()"
    with pytest.raises(TypeError):
        hash(evens)


def test_reverse_iteration(evens):
    assert list(reversed(evens)) == [6, 4, 2, 0]
    it = reversed(evens)
    assert next(it) == 6
    with pytest.raises(BorrowError):
        evens.insert(8)
    it.close()
    assert evens.insert(8)
