"""
Simple Executor - runs every statement directly on a DB-API 2.0 connection

- qmark 风格的位置参数绑定（IN / INOUT）
- 行以 dict 形式返回（列名 -> 值）
- CALLABLE 语句使用 cursor.callproc()，OUT / INOUT 值回写到参数对象
"""

from typing import Any, Dict, Iterator, List, Optional, Sequence

from ..exceptions import StatementExecutionError
from ..log import log
from ..mapping import (
    BoundSql,
    MappedStatement,
    ParameterMode,
    RowBounds,
    StatementType,
    resolve_parameter_value,
    set_property,
)
from .base_executor import BaseExecutor
from .executor_interface import ResultHandler


def _column_names(cursor: Any) -> List[str]:
    return [column[0] for column in (cursor.description or ())]


def _bounded_rows(cursor: Any, columns: Sequence[str], row_bounds: RowBounds) -> Iterator[Dict[str, Any]]:
    """Yield rows of the window [offset, offset + limit) as dicts"""
    taken = 0
    for index, row in enumerate(cursor):
        if index < row_bounds.offset:
            continue
        if taken >= row_bounds.limit:
            break
        taken += 1
        yield dict(zip(columns, row))


class ResultCursor:
    """
    Lazily fetched query result.

    Iterating yields row dicts inside the requested row bounds. The
    underlying DB-API cursor is closed when iteration finishes, on close()
    or when leaving a ``with`` block.
    """

    def __init__(self, cursor: Any, statement_id: str, row_bounds: RowBounds = RowBounds.DEFAULT):
        self._cursor = cursor
        self._columns = _column_names(cursor)
        self._statement_id = statement_id
        self._row_bounds = row_bounds
        self._consumed = False
        self._closed = False

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        if self._consumed:
            raise RuntimeError("A cursor can only be iterated once")
        self._consumed = True
        try:
            yield from _bounded_rows(self._cursor, self._columns, self._row_bounds)
        finally:
            self.close()

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._cursor.close()

    def __enter__(self) -> "ResultCursor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ResultCursor(statement={self._statement_id!r}, closed={self._closed})"


class SimpleExecutor(BaseExecutor):
    """Opens a fresh cursor per statement; nothing is batched"""

    def do_query(
        self,
        ms: MappedStatement,
        parameter: Any,
        row_bounds: RowBounds,
        result_handler: Optional[ResultHandler],
        bound_sql: BoundSql,
    ) -> List[Any]:
        connection = self._transaction.get_connection()
        try:
            with log.timer(ms.id, tag="SIMPLE_EXECUTOR"):
                cursor = connection.cursor()
                try:
                    self._execute(cursor, ms, parameter, bound_sql)
                    if cursor.description is None:
                        rows = []
                    else:
                        rows = list(_bounded_rows(cursor, _column_names(cursor), row_bounds))
                finally:
                    cursor.close()
        except Exception as e:
            raise StatementExecutionError(ms.id, "querying database", e) from e

        if result_handler is not None:
            for row in rows:
                result_handler(row)
        return rows

    def do_query_cursor(
        self,
        ms: MappedStatement,
        parameter: Any,
        row_bounds: RowBounds,
        bound_sql: BoundSql,
    ) -> ResultCursor:
        connection = self._transaction.get_connection()
        cursor = connection.cursor()
        try:
            self._execute(cursor, ms, parameter, bound_sql)
        except Exception as e:
            cursor.close()
            raise StatementExecutionError(ms.id, "opening cursor", e) from e
        return ResultCursor(cursor, ms.id, row_bounds)

    def do_update(self, ms: MappedStatement, parameter: Any) -> int:
        bound_sql = ms.get_bound_sql(parameter)
        connection = self._transaction.get_connection()
        try:
            with log.timer(ms.id, tag="SIMPLE_EXECUTOR"):
                cursor = connection.cursor()
                try:
                    self._execute(cursor, ms, parameter, bound_sql)
                    count = cursor.rowcount
                finally:
                    cursor.close()
        except Exception as e:
            raise StatementExecutionError(ms.id, "updating database", e) from e
        return count if count is not None else -1

    def do_flush_statements(self, is_rollback: bool) -> List[Any]:
        return []

    # ==================== Binding ====================

    def _execute(self, cursor: Any, ms: MappedStatement, parameter: Any, bound_sql: BoundSql) -> None:
        if ms.statement_type is StatementType.CALLABLE:
            self._call(cursor, parameter, bound_sql)
            return
        values = self._bind_values(bound_sql, parameter)
        if ms.statement_type is StatementType.STATEMENT and not values:
            cursor.execute(bound_sql.sql)
        else:
            cursor.execute(bound_sql.sql, values)

    def _bind_values(self, bound_sql: BoundSql, parameter: Any) -> List[Any]:
        return [
            resolve_parameter_value(bound_sql, parameter, mapping.property)
            for mapping in bound_sql.parameter_mappings
            if mapping.mode is not ParameterMode.OUT
        ]

    def _call(self, cursor: Any, parameter: Any, bound_sql: BoundSql) -> None:
        """callproc() with every mapping bound; OUT slots start as None"""
        values = [
            None if mapping.mode is ParameterMode.OUT
            else resolve_parameter_value(bound_sql, parameter, mapping.property)
            for mapping in bound_sql.parameter_mappings
        ]
        returned = cursor.callproc(bound_sql.sql, values)
        if parameter is None or returned is None:
            return
        for mapping, value in zip(bound_sql.parameter_mappings, returned):
            if mapping.mode is not ParameterMode.IN:
                set_property(parameter, mapping.property, value)
