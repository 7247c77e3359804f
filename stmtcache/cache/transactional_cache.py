"""
Transactional Cache - Unit-of-work buffer in front of a shared cache
事务缓存 - 在事务提交前暂存对二级缓存的写入

The shared cache is visible to every session, so nothing a unit-of-work
produces may reach it before the unit-of-work commits:

    get()      reads the shared cache directly and remembers misses
    put()      only buffers
    clear()    only flags; the real clear happens at commit
    commit()   clear (if flagged), flush buffered writes, put None for misses
    rollback() remove every missed key, drop buffered writes

Putting None / removing a missed key gives a blocking shared cache the
chance to release the per-key lock it took on the miss.
"""

from typing import Any, Dict, Hashable, Optional, Set

from ..log import log
from .cache_interface import ICache


class TransactionalCache(ICache):
    """
    Transactional decorator for one shared cache
    二级缓存的事务装饰器

    One instance per shared cache per executor; reset after every
    commit/rollback and reused by the next unit-of-work.
    """

    def __init__(self, delegate: ICache):
        self._delegate = delegate
        # 提交时清空 delegate
        self._clear_on_commit = False
        # 待提交的 KV 映射
        self._entries_to_add_on_commit: Dict[Hashable, Any] = {}
        # 查找不到的 KEY 集合
        self._entries_missed_in_cache: Set[Hashable] = set()

    @property
    def id(self) -> str:
        return self._delegate.id

    @property
    def delegate(self) -> ICache:
        return self._delegate

    @property
    def clear_on_commit(self) -> bool:
        return self._clear_on_commit

    @property
    def pending_writes(self) -> Dict[Hashable, Any]:
        return dict(self._entries_to_add_on_commit)

    @property
    def observed_misses(self) -> Set[Hashable]:
        return set(self._entries_missed_in_cache)

    def size(self) -> int:
        return self._delegate.size()

    def get(self, key: Hashable) -> Optional[Any]:
        value = self._delegate.get(key)
        if value is None:
            self._entries_missed_in_cache.add(key)
        # A cleared buffer must not answer from the not-yet-cleared shared cache
        if self._clear_on_commit:
            return None
        return value

    def put(self, key: Hashable, value: Optional[Any]) -> None:
        self._entries_to_add_on_commit[key] = value

    def remove(self, key: Hashable) -> Optional[Any]:
        return None

    def clear(self) -> None:
        self._clear_on_commit = True
        self._entries_to_add_on_commit.clear()

    def commit(self) -> None:
        if self._clear_on_commit:
            self._delegate.clear()
        self._flush_pending_entries()
        self._reset()

    def rollback(self) -> None:
        self._unlock_missed_entries()
        self._reset()

    def _reset(self) -> None:
        self._clear_on_commit = False
        self._entries_to_add_on_commit.clear()
        self._entries_missed_in_cache.clear()

    def _flush_pending_entries(self) -> None:
        for key, value in self._entries_to_add_on_commit.items():
            self._delegate.put(key, value)
        for key in self._entries_missed_in_cache:
            if key not in self._entries_to_add_on_commit:
                self._delegate.put(key, None)

        if self._entries_to_add_on_commit or self._entries_missed_in_cache:
            log.debug(
                f"Committed {len(self._entries_to_add_on_commit)} entries to {self.id!r}",
                tag="TX_CACHE",
                misses=len(self._entries_missed_in_cache),
            )

    def _unlock_missed_entries(self) -> None:
        for key in self._entries_missed_in_cache:
            try:
                self._delegate.remove(key)
            except Exception as e:
                log.warning(
                    f"Unexpected exception while notifying a rollback to the cache "
                    f"{self.id!r}. Consider upgrading the cache implementation. Cause: {e}",
                    tag="TX_CACHE"
                )
