"""
Cache Interface - Abstract interface for shared (second level) caches
共享缓存抽象接口 - 定义二级缓存的通用接口

This module provides:
    - CacheConfig: Configuration class for shared caches
    - CacheStats: Counters reported by cache implementations
    - ICache: Abstract interface every shared cache and cache decorator implements
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional

EVICTION_POLICIES = ("lru", "lfu", "fifo")


@dataclass
class CacheConfig:
    """
    Configuration class for shared caches
    共享缓存配置类

    Attributes:
        max_size: Maximum number of entries in cache (0 = unlimited)
        ttl_seconds: Time-to-live in seconds (0 = never expires)
        eviction_policy: Eviction policy ("lru", "lfu", "fifo")
        enable_stats: Whether to track hit/miss statistics
    """
    max_size: int = 1024
    ttl_seconds: int = 0
    eviction_policy: str = "lru"
    enable_stats: bool = True

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if self.max_size < 0:
            errors.append("max_size must be >= 0")

        if self.ttl_seconds < 0:
            errors.append("ttl_seconds must be >= 0")

        if self.eviction_policy not in EVICTION_POLICIES:
            errors.append(f"eviction_policy must be one of: {', '.join(EVICTION_POLICIES)}")

        return errors

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheConfig":
        return cls(
            max_size=int(data.get("max_size", cls.max_size)),
            ttl_seconds=int(data.get("ttl_seconds", cls.ttl_seconds)),
            eviction_policy=str(data.get("eviction_policy", cls.eviction_policy)).lower(),
            enable_stats=bool(data.get("enable_stats", cls.enable_stats)),
        )


@dataclass
class CacheStats:
    """
    Cache statistics
    缓存统计信息
    """
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    current_size: int = 0
    max_size: int = 0
    total_writes: int = 0
    total_deletes: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate"""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "current_size": self.current_size,
            "max_size": self.max_size,
            "total_writes": self.total_writes,
            "total_deletes": self.total_deletes,
            "hit_rate": self.hit_rate,
        }


class ICache(ABC):
    """
    Abstract interface for shared cache implementations
    共享缓存抽象接口

    Keys are opaque hashable values (normally CacheKey), values are opaque.
    None is never a cached value: get() returning None means "absent", and
    put(key, None) records a known miss.

    Implementations shared across sessions must be thread-safe.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """Stable identity of this cache (usually the statement namespace)"""

    @abstractmethod
    def get(self, key: Hashable) -> Optional[Any]:
        """
        Get cached value

        Args:
            key: Cache key

        Returns:
            Cached value, or None when absent
        """

    @abstractmethod
    def put(self, key: Hashable, value: Optional[Any]) -> None:
        """
        Store value under key

        Args:
            key: Cache key
            value: Value to store; None records a miss
        """

    @abstractmethod
    def remove(self, key: Hashable) -> Optional[Any]:
        """
        Remove key

        Returns:
            The removed value, or None if nothing was stored
        """

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry"""

    @abstractmethod
    def size(self) -> int:
        """Number of entries currently stored"""

    def get_stats(self) -> CacheStats:
        """
        Get cache statistics

        Implementations without counters only report their size.
        """
        return CacheStats(current_size=self.size())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
