"""
Memory Cache - In-memory shared cache with pluggable eviction
内存共享缓存 - 提供快速内存访问和可配置的驱逐策略

This module provides:
    - Fast in-memory caching with OrderedDict
    - LRU / LFU / FIFO eviction policies
    - Thread-safe operations with RWLock
    - TTL-based expiration

Architecture:
    - Uses OrderedDict for O(1) access and LRU/FIFO ordering
    - Implements read-write lock separation so that many sessions can read
      while a committing session writes
    - Only ever mutated by TransactionalCache.commit()/rollback() when used
      as a statement's shared cache
"""

import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Hashable, Optional

from ..log import log
from .cache_interface import CacheConfig, CacheStats, ICache


class RWLock:
    """
    Read-Write Lock implementation
    读写锁实现 - 允许多个读取者或单个写入者

    Features:
        - Multiple readers can hold the lock simultaneously
        - Writers have exclusive access
        - Writer preference to prevent starvation
    """

    def __init__(self):
        self._read_ready = threading.Condition(threading.Lock())
        self._readers = 0
        self._writers_waiting = 0
        self._writer_active = False

    def acquire_read(self) -> None:
        with self._read_ready:
            while self._writer_active or self._writers_waiting > 0:
                self._read_ready.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._read_ready:
            self._readers -= 1
            if self._readers == 0:
                self._read_ready.notify_all()

    def acquire_write(self) -> None:
        with self._read_ready:
            self._writers_waiting += 1
            try:
                while self._readers > 0 or self._writer_active:
                    self._read_ready.wait()
                self._writer_active = True
            finally:
                self._writers_waiting -= 1

    def release_write(self) -> None:
        with self._read_ready:
            self._writer_active = False
            self._read_ready.notify_all()

    def read_lock(self):
        """Context manager for read lock"""
        return _ReadLockContext(self)

    def write_lock(self):
        """Context manager for write lock"""
        return _WriteLockContext(self)


class _ReadLockContext:

    def __init__(self, rwlock: RWLock):
        self._rwlock = rwlock

    def __enter__(self):
        self._rwlock.acquire_read()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._rwlock.release_read()
        return False


class _WriteLockContext:

    def __init__(self, rwlock: RWLock):
        self._rwlock = rwlock

    def __enter__(self):
        self._rwlock.acquire_write()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._rwlock.release_write()
        return False


@dataclass
class _Slot:
    """Stored value plus bookkeeping for TTL and LFU"""
    value: Any
    created_at: datetime = field(default_factory=datetime.now)
    expires_at: Optional[datetime] = None
    access_count: int = 0

    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return datetime.now() > self.expires_at


class MemoryCache(ICache):
    """
    In-memory shared cache
    内存共享缓存 - 作为语句的二级缓存

    Features:
        - O(1) get/put operations with OrderedDict
        - Eviction when max_size is reached (lru, lfu or fifo)
        - TTL-based expiration
        - Thread-safe with read-write lock separation

    Usage:
        cache = MemoryCache("user.mapper", CacheConfig(max_size=512))
        cache.put(key, rows)
        rows = cache.get(key)
    """

    def __init__(self, cache_id: str, config: Optional[CacheConfig] = None):
        """
        Initialize MemoryCache

        Args:
            cache_id: Identity of the cache, usually the statement namespace
            config: Cache configuration. If None, uses default config.
        """
        if not cache_id:
            raise ValueError("Cache instances require an id")

        self._id = cache_id
        self.config = config or CacheConfig()

        self._cache: "OrderedDict[Hashable, _Slot]" = OrderedDict()
        self._rwlock = RWLock()

        self._stats = CacheStats(max_size=self.config.max_size)
        self._stats_lock = threading.Lock()

        log.info(
            f"Initialized cache {cache_id!r} with max_size={self.config.max_size}, "
            f"ttl={self.config.ttl_seconds}s, eviction={self.config.eviction_policy}",
            tag="MEMORY_CACHE"
        )

    @property
    def id(self) -> str:
        return self._id

    def _count(self, **increments: int) -> None:
        if not self.config.enable_stats:
            return
        with self._stats_lock:
            for name, amount in increments.items():
                setattr(self._stats, name, getattr(self._stats, name) + amount)

    def get(self, key: Hashable) -> Optional[Any]:
        with self._rwlock.read_lock():
            slot = self._cache.get(key)
            expired = slot is not None and slot.is_expired()

        if slot is None:
            self._count(misses=1)
            return None

        if expired:
            with self._rwlock.write_lock():
                if self._cache.get(key) is slot:
                    del self._cache[key]
            self._count(misses=1, expirations=1)
            return None

        # Recency / frequency bookkeeping needs the write lock
        with self._rwlock.write_lock():
            if self._cache.get(key) is slot:
                slot.access_count += 1
                if self.config.eviction_policy == "lru":
                    self._cache.move_to_end(key)

        self._count(hits=1)
        return slot.value

    def put(self, key: Hashable, value: Optional[Any]) -> None:
        # A materialized miss: nothing to store, but a stale value must not survive
        if value is None:
            with self._rwlock.write_lock():
                self._cache.pop(key, None)
            return

        expires_at = None
        if self.config.ttl_seconds > 0:
            expires_at = datetime.now() + timedelta(seconds=self.config.ttl_seconds)

        with self._rwlock.write_lock():
            if key in self._cache:
                self._cache[key] = _Slot(value=value, expires_at=expires_at)
                if self.config.eviction_policy == "lru":
                    self._cache.move_to_end(key)
            else:
                while len(self._cache) >= self.config.max_size > 0:
                    self._evict_one()
                self._cache[key] = _Slot(value=value, expires_at=expires_at)

        self._count(total_writes=1)

    def _evict_one(self) -> None:
        """
        Evict one entry based on eviction policy

        Must be called with write lock held.
        """
        if not self._cache:
            return

        if self.config.eviction_policy == "lfu":
            victim = min(self._cache, key=lambda k: self._cache[k].access_count)
            del self._cache[victim]
        else:
            # lru and fifo both drop the head; they differ in whether get() reorders
            victim, _ = self._cache.popitem(last=False)

        self._count(evictions=1)
        log.debug(f"Evicted entry from {self._id!r}: key={str(victim)[:50]}", tag="MEMORY_CACHE")

    def remove(self, key: Hashable) -> Optional[Any]:
        with self._rwlock.write_lock():
            slot = self._cache.pop(key, None)

        if slot is None:
            return None

        self._count(total_deletes=1)
        return slot.value

    def clear(self) -> None:
        with self._rwlock.write_lock():
            count = len(self._cache)
            self._cache.clear()

        self._count(total_deletes=count)
        log.debug(f"Cleared {count} entries from {self._id!r}", tag="MEMORY_CACHE")

    def size(self) -> int:
        with self._rwlock.read_lock():
            return len(self._cache)

    def get_stats(self) -> CacheStats:
        current_size = self.size()
        with self._stats_lock:
            return CacheStats(
                hits=self._stats.hits,
                misses=self._stats.misses,
                evictions=self._stats.evictions,
                expirations=self._stats.expirations,
                current_size=current_size,
                max_size=self.config.max_size,
                total_writes=self._stats.total_writes,
                total_deletes=self._stats.total_deletes,
            )

    def cleanup_expired(self) -> int:
        """
        Remove expired entries

        Returns:
            Number of entries removed
        """
        with self._rwlock.write_lock():
            expired = [key for key, slot in self._cache.items() if slot.is_expired()]
            for key in expired:
                del self._cache[key]

        if expired:
            self._count(expirations=len(expired), total_deletes=len(expired))
            log.info(f"Cleaned up {len(expired)} expired entries from {self._id!r}", tag="MEMORY_CACHE")

        return len(expired)

    def reset_stats(self) -> None:
        with self._stats_lock:
            self._stats = CacheStats(max_size=self.config.max_size)

    def __contains__(self, key: Hashable) -> bool:
        with self._rwlock.read_lock():
            slot = self._cache.get(key)
            return slot is not None and not slot.is_expired()
