"""Tests for the timed LRU cache."""

import pytest

from cache import TimedLRUCache


class TestCapacity:
    def test_keeps_most_recent_inserts(self, clock):
        cache = TimedLRUCache(capacity=3, ttl=60, clock=clock)
        for i in range(7):
            cache.set(f"k{i}", i)

        assert len(cache) == 3
        assert cache.keys() == ["k4", "k5", "k6"]

    def test_overwrite_does_not_take_new_slot(self, clock):
        cache = TimedLRUCache(capacity=2, ttl=60, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)

        assert len(cache) == 2
        assert cache.get("a") == 10
        assert cache.get("b") == 2

    def test_overwrite_counts_as_touch(self, clock):
        cache = TimedLRUCache(capacity=2, ttl=60, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 3)
        cache.set("c", 4)

        assert "b" not in cache
        assert cache.keys() == ["a", "c"]

    @pytest.mark.parametrize("capacity", [0, -1, 1.5])
    def test_rejects_invalid_capacity(self, capacity):
        with pytest.raises(ValueError):
            TimedLRUCache(capacity=capacity)

    def test_rejects_non_positive_ttl(self):
        with pytest.raises(ValueError):
            TimedLRUCache(capacity=1, ttl=0)


class TestRecency:
    def test_read_protects_from_eviction(self, clock):
        cache = TimedLRUCache(capacity=2, ttl=60, clock=clock)
        cache.set("A", "a")
        cache.set("B", "b")
        assert cache.get("A") == "a"
        cache.set("C", "c")

        assert cache.get("B") is None
        assert cache.get("A") == "a"
        assert cache.get("C") == "c"

    def test_miss_does_not_reorder(self, clock):
        cache = TimedLRUCache(capacity=2, ttl=60, clock=clock)
        cache.set("A", 1)
        cache.set("B", 2)
        cache.get("missing")

        assert cache.keys() == ["A", "B"]

    def test_contains_does_not_touch(self, clock):
        cache = TimedLRUCache(capacity=2, ttl=60, clock=clock)
        cache.set("A", 1)
        cache.set("B", 2)
        assert "A" in cache
        cache.set("C", 3)

        assert "A" not in cache


class TestExpiry:
    def test_hit_before_ttl(self, clock):
        cache = TimedLRUCache(capacity=5, ttl=10, clock=clock)
        cache.set("k", "v")
        clock.advance(9.999)

        assert cache.get("k") == "v"

    def test_miss_exactly_at_ttl(self, clock):
        cache = TimedLRUCache(capacity=5, ttl=10, clock=clock)
        cache.set("k", "v")
        clock.advance(10)

        assert cache.get("k") is None
        assert len(cache) == 0

    def test_miss_after_ttl(self, clock):
        cache = TimedLRUCache(capacity=5, ttl=10, clock=clock)
        cache.set("k", "v")
        clock.advance(60)

        assert "k" not in cache
        assert cache.get("k", "default") == "default"

    def test_per_entry_ttl_override(self, clock):
        cache = TimedLRUCache(capacity=5, ttl=10, clock=clock)
        cache.set("short", 1, ttl=1)
        cache.set("long", 2)
        clock.advance(5)

        assert cache.get("short") is None
        assert cache.get("long") == 2

    def test_overwrite_refreshes_expiry(self, clock):
        cache = TimedLRUCache(capacity=5, ttl=10, clock=clock)
        cache.set("k", 1)
        clock.advance(8)
        cache.set("k", 2)
        clock.advance(8)

        assert cache.get("k") == 2

    def test_hit_does_not_extend_expiry(self, clock):
        cache = TimedLRUCache(capacity=5, ttl=10, clock=clock)
        cache.set("k", 1)
        clock.advance(6)
        assert cache.get("k") == 1
        clock.advance(6)

        assert cache.get("k") is None

    def test_purge_expired(self, clock):
        cache = TimedLRUCache(capacity=5, ttl=10, clock=clock)
        cache.set("old1", 1)
        cache.set("old2", 2)
        clock.advance(5)
        cache.set("fresh", 3)
        clock.advance(5)

        assert cache.purge_expired() == 2
        assert cache.keys() == ["fresh"]


class TestMaintenance:
    def test_delete_and_clear(self, clock):
        cache = TimedLRUCache(capacity=5, ttl=10, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)

        assert cache.delete("a") is True
        assert cache.delete("a") is False
        cache.clear()
        assert len(cache) == 0

    def test_falsy_values_are_hits(self, clock):
        cache = TimedLRUCache(capacity=5, ttl=10, clock=clock)
        cache.set("empty", {})

        assert cache.get("empty", "missing") == {}
