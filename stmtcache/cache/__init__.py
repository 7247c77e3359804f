"""
Cache Module - keys and second level (shared) cache building blocks
缓存模块 - 缓存键与二级缓存组件

Architecture:
    CacheKey                   composite key of one statement invocation
    ICache                     shared cache contract
    MemoryCache                default shared cache (lru / lfu / fifo, TTL)
    BlockingCache              per-key locking decorator
    TransactionalCache         unit-of-work buffer in front of one shared cache
    TransactionalCacheManager  one TransactionalCache per shared cache
"""

from .blocking_cache import BlockingCache
from .cache_interface import CacheConfig, CacheStats, ICache
from .cache_key import CacheKey
from .memory_cache import MemoryCache, RWLock
from .transactional_cache import TransactionalCache
from .transactional_cache_manager import TransactionalCacheManager

__all__ = [
    "BlockingCache",
    "CacheConfig",
    "CacheKey",
    "CacheStats",
    "ICache",
    "MemoryCache",
    "RWLock",
    "TransactionalCache",
    "TransactionalCacheManager",
]
