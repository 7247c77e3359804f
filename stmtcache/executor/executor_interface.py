"""
Executor Interface - the capability every stage of the executor chain offers
执行器接口

Stages are composed, not inherited: CachingExecutor holds a BaseExecutor
and forwards what it does not handle itself.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Hashable, Iterator, List, Optional

from ..cache.cache_key import CacheKey
from ..mapping import BoundSql, MappedStatement, RowBounds
from ..transaction import ITransaction

ResultHandler = Callable[[Any], None]


class IExecutor(ABC):
    """
    Caller-facing executor contract
    执行器对外契约

    Once the executor has been closed every operation raises
    ExecutorClosedError, except is_closed(), close() and clear_local_cache()
    which quietly do nothing.
    """

    @abstractmethod
    def query(
        self,
        ms: MappedStatement,
        parameter: Any = None,
        row_bounds: RowBounds = RowBounds.DEFAULT,
        result_handler: Optional[ResultHandler] = None,
        cache_key: Optional[CacheKey] = None,
        bound_sql: Optional[BoundSql] = None,
    ) -> List[Any]:
        """
        Run a select, answering from cache when possible

        Args:
            ms: Statement definition
            parameter: Parameter object bound to the SQL text
            row_bounds: Pagination window
            result_handler: Called once per row; bypasses cached answers
            cache_key: Precomputed key (computed when omitted)
            bound_sql: Precomputed bound SQL (computed when omitted)

        Returns:
            Result rows
        """

    @abstractmethod
    def query_cursor(
        self,
        ms: MappedStatement,
        parameter: Any = None,
        row_bounds: RowBounds = RowBounds.DEFAULT,
    ) -> Iterator[Any]:
        """Run a select lazily; cursors never touch either cache tier"""

    @abstractmethod
    def update(self, ms: MappedStatement, parameter: Any = None) -> int:
        """Run an insert / update / delete and return the affected row count"""

    @abstractmethod
    def flush_statements(self, is_rollback: bool = False) -> List[Any]:
        ...

    @abstractmethod
    def commit(self, required: bool) -> None:
        ...

    @abstractmethod
    def rollback(self, required: bool) -> None:
        ...

    @abstractmethod
    def close(self, force_rollback: bool) -> None:
        ...

    @abstractmethod
    def is_closed(self) -> bool:
        ...

    @abstractmethod
    def get_transaction(self) -> ITransaction:
        ...

    @abstractmethod
    def create_cache_key(
        self,
        ms: MappedStatement,
        parameter: Any,
        row_bounds: RowBounds,
        bound_sql: BoundSql,
    ) -> CacheKey:
        ...

    @abstractmethod
    def is_cached(self, ms: MappedStatement, key: Hashable) -> bool:
        ...

    @abstractmethod
    def defer_load(
        self,
        ms: MappedStatement,
        result_object: Any,
        property_name: str,
        key: Hashable,
        target_type: Optional[type] = None,
    ) -> None:
        ...

    @abstractmethod
    def clear_local_cache(self) -> None:
        ...

    @abstractmethod
    def set_executor_wrapper(self, wrapper: "IExecutor") -> None:
        ...
