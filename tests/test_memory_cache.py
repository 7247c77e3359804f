"""
MemoryCache 测试

测试内容：
1. 基础读写
2. 淘汰策略 (lru / lfu / fifo)
3. TTL 过期
4. 统计信息
"""

import threading
import time

import pytest

from stmtcache.cache.cache_interface import CacheConfig, CacheStats
from stmtcache.cache.memory_cache import MemoryCache


class TestCacheConfig:
    """CacheConfig 校验"""

    def test_defaults_are_valid(self):
        assert CacheConfig().validate() == []

    def test_invalid_values(self):
        errors = CacheConfig(max_size=-1, ttl_seconds=-5, eviction_policy="random").validate()
        assert len(errors) == 3

    def test_from_dict(self):
        config = CacheConfig.from_dict({"max_size": "10", "eviction_policy": "LFU"})
        assert config.max_size == 10
        assert config.eviction_policy == "lfu"
        assert config.ttl_seconds == 0


class TestMemoryCacheBasics:
    """基础读写"""

    @pytest.fixture
    def cache(self):
        return MemoryCache("users", CacheConfig(max_size=3))

    def test_requires_id(self):
        with pytest.raises(ValueError):
            MemoryCache("")

    def test_put_get(self, cache):
        cache.put("k", [1, 2])
        assert cache.get("k") == [1, 2]
        assert cache.size() == 1
        assert "k" in cache

    def test_get_missing(self, cache):
        assert cache.get("missing") is None

    def test_put_none_removes_stale_value(self, cache):
        cache.put("k", [1])
        cache.put("k", None)

        assert cache.get("k") is None
        assert cache.size() == 0

    def test_remove_returns_value(self, cache):
        cache.put("k", "v")
        assert cache.remove("k") == "v"
        assert cache.remove("k") is None

    def test_clear(self, cache):
        cache.put("a", 1)
        cache.put("b", 2)
        cache.clear()
        assert cache.size() == 0

    def test_id_and_repr(self, cache):
        assert cache.id == "users"
        assert "users" in repr(cache)


class TestEviction:
    """淘汰策略"""

    def test_lru_evicts_least_recently_used(self):
        cache = MemoryCache("lru", CacheConfig(max_size=2, eviction_policy="lru"))
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")
        cache.put("c", 3)

        assert cache.get("a") == 1
        assert cache.get("b") is None
        assert cache.get_stats().evictions == 1

    def test_fifo_ignores_reads(self):
        cache = MemoryCache("fifo", CacheConfig(max_size=2, eviction_policy="fifo"))
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")
        cache.put("c", 3)

        assert cache.get("a") is None
        assert cache.get("b") == 2

    def test_lfu_evicts_least_frequently_used(self):
        cache = MemoryCache("lfu", CacheConfig(max_size=2, eviction_policy="lfu"))
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")
        cache.get("a")
        cache.get("b")
        cache.put("c", 3)

        assert cache.get("a") == 1
        assert cache.get("b") is None

    def test_overwrite_does_not_evict(self):
        cache = MemoryCache("lru", CacheConfig(max_size=2))
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("a", 10)

        assert cache.size() == 2
        assert cache.get("a") == 10
        assert cache.get_stats().evictions == 0

    def test_unlimited_size(self):
        cache = MemoryCache("big", CacheConfig(max_size=0))
        for i in range(100):
            cache.put(i, i)
        assert cache.size() == 100


class TestExpiration:
    """TTL 过期"""

    def test_expired_entry_is_a_miss(self):
        cache = MemoryCache("ttl", CacheConfig(ttl_seconds=1))
        cache.put("k", "v")
        assert cache.get("k") == "v"

        time.sleep(1.1)

        assert cache.get("k") is None
        stats = cache.get_stats()
        assert stats.expirations == 1
        assert cache.size() == 0

    def test_cleanup_expired(self):
        cache = MemoryCache("ttl", CacheConfig(ttl_seconds=1))
        cache.put("a", 1)
        cache.put("b", 2)

        time.sleep(1.1)

        assert cache.cleanup_expired() == 2
        assert cache.size() == 0


class TestStats:
    """统计信息"""

    def test_hits_and_misses(self):
        cache = MemoryCache("stats")
        cache.put("k", "v")
        cache.get("k")
        cache.get("k")
        cache.get("missing")

        stats = cache.get_stats()
        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.total_writes == 1
        assert stats.current_size == 1
        assert stats.hit_rate == pytest.approx(2 / 3)

    def test_disabled_stats(self):
        cache = MemoryCache("quiet", CacheConfig(enable_stats=False))
        cache.put("k", "v")
        cache.get("k")
        assert cache.get_stats().hits == 0

    def test_reset_stats(self):
        cache = MemoryCache("stats")
        cache.get("missing")
        cache.reset_stats()
        assert cache.get_stats().misses == 0

    def test_to_dict(self):
        data = CacheStats(hits=1, misses=1).to_dict()
        assert data["hit_rate"] == 0.5
        assert set(data) >= {"hits", "misses", "evictions", "current_size"}


class TestConcurrency:
    """并发读写"""

    def test_concurrent_put_get(self):
        cache = MemoryCache("shared", CacheConfig(max_size=50))
        errors = []

        def worker(offset):
            try:
                for i in range(200):
                    cache.put((offset, i), i)
                    cache.get((offset, i))
            except Exception as e:  # pragma: no cover
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert cache.size() <= 50
