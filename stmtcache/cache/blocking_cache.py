"""
Blocking Cache - per-key locking decorator for shared caches
阻塞缓存 - 未命中时持有该 key 的锁，直到同一线程写入或移除

When several sessions miss the same key at once, only the first one goes to
the backing store; the others wait on the key until the first session's
unit-of-work ends:

    commit   -> TransactionalCache puts the value (or None) -> lock released
    rollback -> TransactionalCache removes the key          -> lock released

Hits release the lock immediately.
"""

import threading
import time
from typing import Any, Dict, Hashable, Optional

from ..exceptions import CacheLockTimeoutError
from ..log import log
from .cache_interface import CacheStats, ICache


class BlockingCache(ICache):
    """
    Blocking decorator
    阻塞装饰器

    Locks are owned by threads and are not counted: a second miss on a key
    the current thread already holds does not need a second release.
    """

    def __init__(self, delegate: ICache, timeout: Optional[float] = None):
        """
        Args:
            delegate: Wrapped shared cache
            timeout: Seconds to wait for a key held by another thread
                     (None = wait forever)
        """
        self._delegate = delegate
        self.timeout = timeout
        self._owners: Dict[Hashable, int] = {}
        self._condition = threading.Condition()

    @property
    def id(self) -> str:
        return self._delegate.id

    def size(self) -> int:
        return self._delegate.size()

    def get_stats(self) -> CacheStats:
        return self._delegate.get_stats()

    def get(self, key: Hashable) -> Optional[Any]:
        self._acquire_lock(key)
        value = self._delegate.get(key)
        if value is not None:
            self._release_lock(key)
        return value

    def put(self, key: Hashable, value: Optional[Any]) -> None:
        try:
            self._delegate.put(key, value)
        finally:
            self._release_lock(key)

    def remove(self, key: Hashable) -> Optional[Any]:
        # Only releases the lock; the miss left nothing behind to remove
        self._release_lock(key)
        return None

    def clear(self) -> None:
        self._delegate.clear()

    def is_locked(self, key: Hashable) -> bool:
        with self._condition:
            return key in self._owners

    def _acquire_lock(self, key: Hashable) -> None:
        me = threading.get_ident()
        deadline = None if self.timeout is None else time.monotonic() + self.timeout

        with self._condition:
            while True:
                owner = self._owners.get(key)
                if owner is None or owner == me:
                    self._owners[key] = me
                    return

                if deadline is None:
                    self._condition.wait()
                    continue

                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    log.warning(f"Lock wait timed out on {self.id!r}", tag="BLOCKING_CACHE")
                    raise CacheLockTimeoutError(self.id, key, self.timeout)
                self._condition.wait(remaining)

    def _release_lock(self, key: Hashable) -> None:
        me = threading.get_ident()
        with self._condition:
            if self._owners.get(key) == me:
                del self._owners[key]
                self._condition.notify_all()
