"""Tests for the TTL cache used by the tax schema source."""

from __future__ import annotations

from gst_audit.core.cache import TTLCache


class FakeMonotonic:
    def __init__(self):
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value


class TestTTLCache:
    def test_get_set(self):
        cache = TTLCache()
        cache.set("k", {"a": 1})
        assert cache.get("k") == {"a": 1}

    def test_expiry(self):
        clock = FakeMonotonic()
        cache = TTLCache(default_ttl_seconds=60, clock=clock)
        cache.set("k", "v")
        clock.value += 59
        assert cache.get("k") == "v"
        clock.value += 1
        assert cache.get("k") is None
        assert cache.size() == 0

    def test_lru_eviction(self):
        cache = TTLCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        assert cache.get("a") == 1
        assert cache.get("b") is None
        assert cache.get("c") == 3

    def test_get_or_load_calls_loader_once(self):
        calls = []

        def loader():
            calls.append(1)
            return "loaded"

        cache = TTLCache()
        assert cache.get_or_load("k", loader) == "loaded"
        assert cache.get_or_load("k", loader) == "loaded"
        assert len(calls) == 1

    def test_delete_and_clear(self):
        cache = TTLCache()
        cache.set("a", 1)
        cache.set("b", 2)
        cache.delete("a")
        assert cache.get("a") is None
        cache.clear()
        assert cache.size() == 0
