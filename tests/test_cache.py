"""Id list cache backends."""

import time

import redis

from catalog_search.cache import KEY_PREFIX, InMemoryCache, NullCache, RedisCache, build_cache
from catalog_search.config import Settings


def test_in_memory_cache_round_trip_and_expiry(monkeypatch):
    cache = InMemoryCache()
    cache.set("k", ["a", "b"], ttl=10)
    assert cache.get("k") == ["a", "b"]

    real_time = time.time
    monkeypatch.setattr(time, "time", lambda: real_time() + 11)
    assert cache.get("k") is None


def test_in_memory_cache_evicts_oldest_entry():
    cache = InMemoryCache(max_entries=2)
    cache.set("a", ["1"], ttl=60)
    cache.set("b", ["2"], ttl=60)
    cache.set("c", ["3"], ttl=60)
    assert cache.get("a") is None
    assert cache.get("c") == ["3"]
    assert len(cache) == 2


def test_null_cache_never_stores():
    cache = NullCache()
    cache.set("k", ["a"], ttl=60)
    assert cache.get("k") is None


class StubRedis:
    def __init__(self, fail=False):
        self.store = {}
        self.fail = fail

    def get(self, key):
        if self.fail:
            raise redis.ConnectionError("down")
        return self.store.get(key)

    def setex(self, key, ttl, value):
        if self.fail:
            raise redis.ConnectionError("down")
        self.store[key] = value.encode()


def test_redis_cache_stores_json_lists_under_prefix():
    client = StubRedis()
    cache = RedisCache(client)
    cache.set("search::shirt", ["p1", "p2"], ttl=60)
    assert KEY_PREFIX + "search::shirt" in client.store
    assert cache.get("search::shirt") == ["p1", "p2"]


def test_redis_errors_are_treated_as_misses():
    cache = RedisCache(StubRedis(fail=True))
    cache.set("k", ["a"], ttl=60)
    assert cache.get("k") is None


def test_build_cache_selects_backend():
    assert isinstance(build_cache(Settings(cache_backend="none")), NullCache)
    memory = build_cache(Settings(cache_backend="memory", ids_cache_max_entries=5))
    assert isinstance(memory, InMemoryCache)
    assert memory.max_entries == 5
