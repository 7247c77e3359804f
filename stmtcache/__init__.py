"""
stmtcache - two level, transaction aware statement result cache

    session ─▶ CachingExecutor ─▶ SimpleExecutor ─▶ DB-API connection
                    │                   │
             shared cache (L2)     local cache (L1)
          buffered until commit    per session
"""

from .cache import (
    BlockingCache,
    CacheConfig,
    CacheKey,
    CacheStats,
    ICache,
    MemoryCache,
    TransactionalCache,
    TransactionalCacheManager,
)
from .config import ExecutorSettings, LocalCacheScope, get_settings, load_settings, reload_settings
from .database_id import VendorDatabaseIdProvider
from .exceptions import (
    CacheConfigurationError,
    CacheError,
    CacheLockTimeoutError,
    ConfigurationError,
    ExecutorClosedError,
    ExecutorError,
    StatementExecutionError,
    StmtCacheError,
    TooManyResultsError,
)
from .executor import BaseExecutor, CachingExecutor, IExecutor, ResultCursor, SimpleExecutor
from .factory import new_executor, new_shared_cache
from .mapping import (
    BoundSql,
    MappedStatement,
    ParameterMapping,
    ParameterMode,
    RowBounds,
    SqlCommandType,
    StatementType,
)
from .transaction import ConnectionTransaction, ITransaction

__version__ = "0.1.0"

__all__ = [
    "BaseExecutor",
    "BlockingCache",
    "BoundSql",
    "CacheConfig",
    "CacheConfigurationError",
    "CacheError",
    "CacheKey",
    "CacheLockTimeoutError",
    "CacheStats",
    "CachingExecutor",
    "ConfigurationError",
    "ConnectionTransaction",
    "ExecutorClosedError",
    "ExecutorError",
    "ExecutorSettings",
    "ICache",
    "IExecutor",
    "ITransaction",
    "LocalCacheScope",
    "MappedStatement",
    "MemoryCache",
    "ParameterMapping",
    "ParameterMode",
    "ResultCursor",
    "RowBounds",
    "SimpleExecutor",
    "SqlCommandType",
    "StatementExecutionError",
    "StatementType",
    "StmtCacheError",
    "TooManyResultsError",
    "TransactionalCache",
    "TransactionalCacheManager",
    "VendorDatabaseIdProvider",
    "get_settings",
    "load_settings",
    "new_executor",
    "new_shared_cache",
    "reload_settings",
]
