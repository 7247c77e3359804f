"""
Transactional Cache Manager - one TransactionalCache per shared cache
事务缓存管理器 - 为当前事务涉及的每个二级缓存维护一个 TransactionalCache
"""

from typing import Any, Dict, Hashable, List, Optional

from .cache_interface import ICache
from .transactional_cache import TransactionalCache


class TransactionalCacheManager:
    """
    Routes shared-cache traffic of one executor through per-cache buffers
    and commits/rolls them back together at the unit-of-work boundary.

    Buffers are keyed by the shared cache object itself, so two distinct
    cache objects never share a buffer.
    """

    def __init__(self):
        self._transactional_caches: Dict[ICache, TransactionalCache] = {}

    def get(self, cache: ICache, key: Hashable) -> Optional[Any]:
        return self._get_transactional_cache(cache).get(key)

    def put(self, cache: ICache, key: Hashable, value: Optional[Any]) -> None:
        self._get_transactional_cache(cache).put(key, value)

    def clear(self, cache: ICache) -> None:
        self._get_transactional_cache(cache).clear()

    def commit_all(self) -> None:
        for txc in self._transactional_caches.values():
            txc.commit()

    def rollback_all(self) -> None:
        for txc in self._transactional_caches.values():
            txc.rollback()

    def pending_caches(self) -> List[ICache]:
        """Shared caches touched by this executor so far"""
        return list(self._transactional_caches)

    def _get_transactional_cache(self, cache: ICache) -> TransactionalCache:
        txc = self._transactional_caches.get(cache)
        if txc is None:
            txc = TransactionalCache(cache)
            self._transactional_caches[cache] = txc
        return txc
