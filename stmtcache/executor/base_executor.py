"""
Base Executor - statement execution with the session (first level) cache
基础执行器 - 一级缓存 + 延迟加载队列

Read path:

    query() -> local cache RESOLVED? -> cached rows
                          |
                          v (absent)
               mark IN_FLIGHT -> do_query() -> RESOLVED(rows)

Nested queries issued while materializing a result increase the query depth.
Deferred loads registered for keys that are still IN_FLIGHT are drained once
the outermost query returns.

Subclasses implement the four hooks: do_query, do_query_cursor, do_update
and do_flush_statements.
"""

from abc import abstractmethod
from collections import deque
from typing import Any, Deque, Hashable, Iterator, List, Optional

from ..cache.cache_key import CacheKey
from ..config import ExecutorSettings, LocalCacheScope
from ..exceptions import ExecutorClosedError, ExecutorError
from ..log import log
from ..mapping import (
    BoundSql,
    MappedStatement,
    ParameterMode,
    RowBounds,
    StatementType,
    get_property,
    resolve_parameter_value,
    set_property,
)
from ..transaction import ITransaction
from .deferred_load import DeferredLoad
from .executor_interface import IExecutor, ResultHandler
from .local_cache import EntryState, LocalCache


class BaseExecutor(IExecutor):
    """
    Executor owning one session's local caches and deferred loads.

    Not thread-safe: one executor serves one session on one thread.
    """

    def __init__(self, transaction: ITransaction, settings: Optional[ExecutorSettings] = None):
        self._transaction = transaction
        self._settings = settings if settings is not None else ExecutorSettings()
        self._deferred_loads: Deque[DeferredLoad] = deque()
        self._local_cache = LocalCache("LocalCache")
        self._local_output_parameter_cache = LocalCache("LocalOutputParameterCache")
        self._query_stack = 0
        self._closed = False
        self._wrapper: IExecutor = self

    # ==================== Properties ====================

    @property
    def settings(self) -> ExecutorSettings:
        return self._settings

    @property
    def local_cache(self) -> LocalCache:
        return self._local_cache

    @property
    def wrapper(self) -> IExecutor:
        """Outermost executor of the decoration chain"""
        return self._wrapper

    @property
    def query_depth(self) -> int:
        return self._query_stack

    @property
    def pending_deferred_loads(self) -> int:
        return len(self._deferred_loads)

    def set_executor_wrapper(self, wrapper: IExecutor) -> None:
        self._wrapper = wrapper

    # ==================== Lifecycle ====================

    def get_transaction(self) -> ITransaction:
        self._ensure_open()
        return self._transaction

    def is_closed(self) -> bool:
        return self._closed

    def close(self, force_rollback: bool) -> None:
        if self._closed:
            return
        try:
            try:
                self.rollback(force_rollback)
            finally:
                if self._transaction is not None:
                    self._transaction.close()
        except Exception as e:
            log.warning(f"Unexpected exception on closing transaction: {e}", tag="EXECUTOR")
        finally:
            self._transaction = None
            self._deferred_loads.clear()
            self._local_cache.clear()
            self._local_output_parameter_cache.clear()
            self._closed = True

    def commit(self, required: bool) -> None:
        if self._closed:
            raise ExecutorClosedError("Cannot commit, transaction is already closed")
        self.clear_local_cache()
        self.flush_statements()
        if required:
            self._transaction.commit()

    def rollback(self, required: bool) -> None:
        if self._closed:
            raise ExecutorClosedError("Cannot rollback, transaction is already closed")
        try:
            self.clear_local_cache()
            self.flush_statements(True)
        finally:
            if required:
                self._transaction.rollback()

    def clear_local_cache(self) -> None:
        if not self._closed:
            self._local_cache.clear()
            self._local_output_parameter_cache.clear()

    # ==================== Statements ====================

    def update(self, ms: MappedStatement, parameter: Any = None) -> int:
        self._ensure_open(ms)
        log.debug(f"Executing update {ms.id}", tag="EXECUTOR")
        self.clear_local_cache()
        return self.do_update(ms, parameter)

    def flush_statements(self, is_rollback: bool = False) -> List[Any]:
        self._ensure_open()
        return self.do_flush_statements(is_rollback)

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
            cache_key = self.create_cache_key(ms, parameter, row_bounds, bound_sql)

        if self._query_stack == 0 and ms.flush_cache_required:
            self.clear_local_cache()

        if self._local_cache.is_in_flight(cache_key):
            raise ExecutorError(
                "Query re-entered a key that is still being loaded; "
                "nested lookups of an in-flight key must use defer_load()",
                statement_id=ms.id,
            )

        self._query_stack += 1
        try:
            if result_handler is None and self._local_cache.is_resolved(cache_key):
                log.debug(f"Local cache hit: {ms.id}", tag="EXECUTOR")
                rows = self._local_cache.get(cache_key)
                self._handle_locally_cached_output_parameters(ms, cache_key, parameter, bound_sql)
            else:
                rows = self._query_from_database(ms, parameter, row_bounds, result_handler, cache_key, bound_sql)
        except Exception:
            if self._query_stack == 1:
                self._deferred_loads.clear()
            raise
        finally:
            self._query_stack -= 1

        if self._query_stack == 0:
            self._drain_deferred_loads()
            if self._settings.local_cache_scope is LocalCacheScope.STATEMENT:
                self.clear_local_cache()
        return rows

    def query_cursor(
        self,
        ms: MappedStatement,
        parameter: Any = None,
        row_bounds: RowBounds = RowBounds.DEFAULT,
    ) -> Iterator[Any]:
        self._ensure_open(ms)
        bound_sql = ms.get_bound_sql(parameter)
        return self.do_query_cursor(ms, parameter, row_bounds, bound_sql)

    # ==================== Cache keys / deferred loads ====================

    def create_cache_key(
        self,
        ms: MappedStatement,
        parameter: Any,
        row_bounds: RowBounds,
        bound_sql: BoundSql,
    ) -> CacheKey:
        self._ensure_open(ms)
        key = CacheKey()
        key.append(ms.id)
        key.append(row_bounds.offset)
        key.append(row_bounds.limit)
        key.append(bound_sql.sql)
        for mapping in bound_sql.parameter_mappings:
            if mapping.mode is not ParameterMode.OUT:
                key.append(resolve_parameter_value(bound_sql, parameter, mapping.property))
        if self._settings.environment_id is not None:
            key.append(self._settings.environment_id)
        return key

    def is_cached(self, ms: MappedStatement, key: Hashable) -> bool:
        self._ensure_open(ms)
        return self._local_cache.state(key) is not EntryState.ABSENT

    def defer_load(
        self,
        ms: MappedStatement,
        result_object: Any,
        property_name: str,
        key: Hashable,
        target_type: Optional[type] = None,
    ) -> None:
        self._ensure_open(ms)
        deferred = DeferredLoad(result_object, property_name, key, self._local_cache, target_type)
        if deferred.can_load():
            deferred.load()
        else:
            self._deferred_loads.append(deferred)

    # ==================== Hooks ====================

    @abstractmethod
    def do_query(
        self,
        ms: MappedStatement,
        parameter: Any,
        row_bounds: RowBounds,
        result_handler: Optional[ResultHandler],
        bound_sql: BoundSql,
    ) -> List[Any]:
        ...

    @abstractmethod
    def do_query_cursor(
        self,
        ms: MappedStatement,
        parameter: Any,
        row_bounds: RowBounds,
        bound_sql: BoundSql,
    ) -> Iterator[Any]:
        ...

    @abstractmethod
    def do_update(self, ms: MappedStatement, parameter: Any) -> int:
        ...

    @abstractmethod
    def do_flush_statements(self, is_rollback: bool) -> List[Any]:
        ...

    # ==================== Internals ====================

    def _ensure_open(self, ms: Optional[MappedStatement] = None) -> None:
        if self._closed:
            raise ExecutorClosedError("Executor was closed.", statement_id=ms.id if ms is not None else None)

    def _query_from_database(
        self,
        ms: MappedStatement,
        parameter: Any,
        row_bounds: RowBounds,
        result_handler: Optional[ResultHandler],
        key: CacheKey,
        bound_sql: BoundSql,
    ) -> List[Any]:
        log.debug(f"Local cache miss: {ms.id}", tag="EXECUTOR")
        self._local_cache.mark_in_flight(key)
        try:
            rows = self.do_query(ms, parameter, row_bounds, result_handler, bound_sql)
        finally:
            self._local_cache.remove(key)
        self._local_cache.resolve(key, rows)
        if ms.statement_type is StatementType.CALLABLE:
            self._local_output_parameter_cache.resolve(key, parameter)
        return rows

    def _handle_locally_cached_output_parameters(
        self,
        ms: MappedStatement,
        key: CacheKey,
        parameter: Any,
        bound_sql: BoundSql,
    ) -> None:
        if ms.statement_type is not StatementType.CALLABLE or parameter is None:
            return
        cached_parameter = self._local_output_parameter_cache.get(key)
        if cached_parameter is None or cached_parameter is parameter:
            return
        for mapping in bound_sql.parameter_mappings:
            if mapping.mode is not ParameterMode.IN:
                set_property(parameter, mapping.property, get_property(cached_parameter, mapping.property))

    def _drain_deferred_loads(self) -> None:
        try:
            while self._deferred_loads:
                deferred = self._deferred_loads.popleft()
                if deferred.can_load():
                    deferred.load()
        finally:
            self._deferred_loads.clear()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(closed={self._closed}, depth={self._query_stack}, "
            f"local_entries={self._local_cache.size()})"
        )
