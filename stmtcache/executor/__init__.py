"""
Executor Module - statement execution with two cache tiers
执行器模块

Architecture:
    CachingExecutor   shared cache, buffered per unit-of-work
        |
    SimpleExecutor    (BaseExecutor) local cache, deferred loads, DB-API calls
"""

from .base_executor import BaseExecutor
from .caching_executor import CachingExecutor
from .deferred_load import DeferredLoad, extract_object_from_list
from .executor_interface import IExecutor, ResultHandler
from .local_cache import EntryState, LocalCache, LocalCacheEntry
from .simple_executor import ResultCursor, SimpleExecutor

__all__ = [
    "BaseExecutor",
    "CachingExecutor",
    "DeferredLoad",
    "EntryState",
    "IExecutor",
    "LocalCache",
    "LocalCacheEntry",
    "ResultCursor",
    "ResultHandler",
    "SimpleExecutor",
    "extract_object_from_list",
]
