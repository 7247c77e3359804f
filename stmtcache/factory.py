"""
Composition glue: builds executor chains and shared caches from settings.
"""

from typing import Optional

from .cache.blocking_cache import BlockingCache
from .cache.cache_interface import ICache
from .cache.memory_cache import MemoryCache
from .config import ExecutorSettings
from .executor.caching_executor import CachingExecutor
from .executor.executor_interface import IExecutor
from .executor.simple_executor import SimpleExecutor
from .log import log
from .transaction import ITransaction


def new_executor(transaction: ITransaction, settings: Optional[ExecutorSettings] = None) -> IExecutor:
    """
    One executor chain per session.

    Returns a SimpleExecutor, wrapped in a CachingExecutor when the shared
    cache is enabled.
    """
    if settings is None:
        settings = ExecutorSettings()
    executor: IExecutor = SimpleExecutor(transaction, settings)
    if settings.cache_enabled:
        executor = CachingExecutor(executor)
    log.debug(f"Created executor {executor!r}", tag="FACTORY")
    return executor


def new_shared_cache(cache_id: str, settings: Optional[ExecutorSettings] = None) -> ICache:
    """Shared cache for one namespace, built from settings.shared_cache"""
    if settings is None:
        settings = ExecutorSettings()
    cache: ICache = MemoryCache(cache_id, settings.shared_cache)
    if settings.blocking_shared_cache:
        cache = BlockingCache(cache, timeout=settings.lock_timeout_seconds)
    log.info(f"Created shared cache {cache!r}", tag="FACTORY")
    return cache
