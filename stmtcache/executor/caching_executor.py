"""
Caching Executor - shared (second level) cache in front of another executor
二级缓存执行器

Shared cache reads go straight to the statement's cache; writes are buffered
per unit-of-work by a TransactionalCacheManager and only reach the shared
cache on commit. Rollback discards them.

Result lists cross the shared tier as copies, so one session mutating its
rows never changes what another session reads.
"""

from typing import Any, Hashable, Iterator, List, Optional

from ..cache.cache_key import CacheKey
from ..cache.transactional_cache_manager import TransactionalCacheManager
from ..exceptions import CacheConfigurationError, ExecutorClosedError, ExecutorError
from ..log import log
from ..mapping import BoundSql, MappedStatement, ParameterMode, RowBounds, StatementType
from ..transaction import ITransaction
from .executor_interface import IExecutor, ResultHandler


def _detached(rows: Any) -> Any:
    return list(rows) if isinstance(rows, list) else rows


class CachingExecutor(IExecutor):
    """Decorates a delegate executor; the delegate does the actual work"""

    def __init__(self, delegate: IExecutor):
        self._delegate = delegate
        self._tcm = TransactionalCacheManager()
        delegate.set_executor_wrapper(self)

    @property
    def delegate(self) -> IExecutor:
        return self._delegate

    @property
    def transactional_cache_manager(self) -> TransactionalCacheManager:
        return self._tcm

    # ==================== Lifecycle ====================

    def get_transaction(self) -> ITransaction:
        return self._delegate.get_transaction()

    def is_closed(self) -> bool:
        return self._delegate.is_closed()

    def close(self, force_rollback: bool) -> None:
        if self._delegate.is_closed():
            return
        try:
            if force_rollback:
                self._tcm.rollback_all()
            else:
                self._tcm.commit_all()
        finally:
            self._delegate.close(force_rollback)

    def commit(self, required: bool) -> None:
        self._ensure_open()
        self._delegate.commit(required)
        self._tcm.commit_all()

    def rollback(self, required: bool) -> None:
        self._ensure_open()
        try:
            self._delegate.rollback(required)
        finally:
            self._tcm.rollback_all()

    # ==================== Statements ====================

    def update(self, ms: MappedStatement, parameter: Any = None) -> int:
        self._ensure_open(ms)
        self._flush_cache_if_required(ms)
        return self._delegate.update(ms, parameter)

    def query_cursor(
        self,
        ms: MappedStatement,
        parameter: Any = None,
        row_bounds: RowBounds = RowBounds.DEFAULT,
    ) -> Iterator[Any]:
        self._ensure_open(ms)
        self._flush_cache_if_required(ms)
        return self._delegate.query_cursor(ms, parameter, row_bounds)

    def query(
        self,
        ms: MappedStatement,
        parameter: Any = None,
        row_bounds: RowBounds = RowBounds.DEFAULT,
        result_handler: Optional[ResultHandler] = None,
        cache_key: Optional[CacheKey] = None,
        bound_sql: Optional[BoundSql] = None,
    ) -> List[Any]:
        self._ensure_open(ms)
        if bound_sql is None:
            bound_sql = ms.get_bound_sql(parameter)
        if cache_key is None:
            cache_key = self._delegate.create_cache_key(ms, parameter, row_bounds, bound_sql)

        cache = ms.cache
        if cache is not None:
            use_cache = ms.use_cache and result_handler is None
            if use_cache:
                self._ensure_no_out_params(ms, bound_sql)
            self._flush_cache_if_required(ms)
            if use_cache:
                rows = self._tcm.get(cache, cache_key)
                if rows is not None:
                    log.debug(f"Shared cache hit [{cache.id}]: {ms.id}", tag="CACHING_EXECUTOR")
                    return _detached(rows)
                log.debug(f"Shared cache miss [{cache.id}]: {ms.id}", tag="CACHING_EXECUTOR")
                rows = self._delegate.query(ms, parameter, row_bounds, result_handler, cache_key, bound_sql)
                self._tcm.put(cache, cache_key, _detached(rows))
                return rows
        return self._delegate.query(ms, parameter, row_bounds, result_handler, cache_key, bound_sql)

    def flush_statements(self, is_rollback: bool = False) -> List[Any]:
        return self._delegate.flush_statements(is_rollback)

    # ==================== Delegated ====================

    def create_cache_key(
        self,
        ms: MappedStatement,
        parameter: Any,
        row_bounds: RowBounds,
        bound_sql: BoundSql,
    ) -> CacheKey:
        return self._delegate.create_cache_key(ms, parameter, row_bounds, bound_sql)

    def is_cached(self, ms: MappedStatement, key: Hashable) -> bool:
        return self._delegate.is_cached(ms, key)

    def defer_load(
        self,
        ms: MappedStatement,
        result_object: Any,
        property_name: str,
        key: Hashable,
        target_type: Optional[type] = None,
    ) -> None:
        self._delegate.defer_load(ms, result_object, property_name, key, target_type)

    def clear_local_cache(self) -> None:
        self._delegate.clear_local_cache()

    def set_executor_wrapper(self, wrapper: IExecutor) -> None:
        raise ExecutorError("CachingExecutor is always the outermost executor and cannot be wrapped")

    # ==================== Internals ====================

    def _ensure_open(self, ms: Optional[MappedStatement] = None) -> None:
        if self._delegate.is_closed():
            raise ExecutorClosedError("Executor was closed.", statement_id=ms.id if ms is not None else None)

    def _flush_cache_if_required(self, ms: MappedStatement) -> None:
        cache = ms.cache
        if cache is not None and ms.flush_cache_required:
            log.debug(f"Flushing shared cache [{cache.id}] on commit: {ms.id}", tag="CACHING_EXECUTOR")
            self._tcm.clear(cache)

    @staticmethod
    def _ensure_no_out_params(ms: MappedStatement, bound_sql: BoundSql) -> None:
        if ms.statement_type is not StatementType.CALLABLE:
            return
        for mapping in bound_sql.parameter_mappings:
            if mapping.mode is not ParameterMode.IN:
                raise CacheConfigurationError(
                    "Caching stored procedures with OUT params is not supported. "
                    "Please configure use_cache=False for this statement.",
                    statement_id=ms.id,
                )

    def __repr__(self) -> str:
        return f"CachingExecutor(delegate={self._delegate!r})"
