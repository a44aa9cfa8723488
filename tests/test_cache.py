import pytest

from utils.cache import DedupCache


def test_add_and_contains():
    cache = DedupCache()
    cache.add("Hello world.")
    assert "Hello world." in cache
    assert "Other." not in cache


def test_re_adding_does_not_duplicate_or_reorder():
    cache = DedupCache()
    cache.add("a")
    cache.add("b")
    cache.add("a")
    assert len(cache) == 2
    assert list(cache) == ["a", "b"]


def test_trim_drops_oldest_fifty_in_one_pass():
    cache = DedupCache()
    units = [f"unit {i}" for i in range(101)]
    for unit in units[:100]:
        cache.add(unit)
    assert len(cache) == 100

    cache.add(units[100])

    assert len(cache) == 51
    assert list(cache) == units[50:]
    assert "unit 0" not in cache
    assert "unit 49" not in cache


def test_clear_empties_cache():
    cache = DedupCache()
    cache.add("x")
    cache.clear()
    assert len(cache) == 0
    assert "x" not in cache


def test_invalid_trim_rejected():
    with pytest.raises(ValueError):
        DedupCache(capacity=10, trim=20)
