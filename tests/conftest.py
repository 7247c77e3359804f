"""
Shared fixtures: scripted executors, fake transactions, statements.
"""

import sqlite3

import pytest

from stmtcache.cache.memory_cache import MemoryCache
from stmtcache.config import ExecutorSettings, LocalCacheScope
from stmtcache.executor.base_executor import BaseExecutor
from stmtcache.log import log
from stmtcache.mapping import MappedStatement, ParameterMapping, SqlCommandType
from stmtcache.transaction import ConnectionTransaction, ITransaction


class FakeTransaction(ITransaction):
    """Counts calls; can be told to fail"""

    def __init__(self, fail_on_rollback=False, fail_on_close=False):
        self.commits = 0
        self.rollbacks = 0
        self.closes = 0
        self.fail_on_rollback = fail_on_rollback
        self.fail_on_close = fail_on_close

    def get_connection(self):
        return object()

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1
        if self.fail_on_rollback:
            raise RuntimeError("rollback failed")

    def close(self):
        self.closes += 1
        if self.fail_on_close:
            raise RuntimeError("close failed")


class ScriptedExecutor(BaseExecutor):
    """
    BaseExecutor whose backing store is a dict of statement id -> result.

    A result is a list of rows, an exception to raise, or a callable
    ``(executor, ms, parameter) -> rows`` for nested lookups.
    """

    def __init__(self, results=None, settings=None, transaction=None):
        super().__init__(transaction or FakeTransaction(), settings)
        self.results = results if results is not None else {}
        self.query_calls = []
        self.update_calls = []
        self.cursor_calls = []
        self.flushes = []

    def do_query(self, ms, parameter, row_bounds, result_handler, bound_sql):
        self.query_calls.append((ms.id, parameter))
        result = self.results.get(ms.id, [])
        if isinstance(result, Exception):
            raise result
        if callable(result):
            result = result(self, ms, parameter)
        rows = list(result)
        if result_handler is not None:
            for row in rows:
                result_handler(row)
        return rows

    def do_query_cursor(self, ms, parameter, row_bounds, bound_sql):
        self.cursor_calls.append((ms.id, parameter))
        return iter(self.results.get(ms.id, []))

    def do_update(self, ms, parameter):
        self.update_calls.append((ms.id, parameter))
        return 1

    def do_flush_statements(self, is_rollback):
        self.flushes.append(is_rollback)
        return []

    def calls_for(self, statement_id):
        return [call for call in self.query_calls if call[0] == statement_id]


def make_select(statement_id, cache=None, sql=None, mappings=("id",), **kwargs):
    return MappedStatement(
        id=statement_id,
        sql=sql or f"select * from t where id = ? /* {statement_id} */",
        parameter_mappings=tuple(
            m if isinstance(m, ParameterMapping) else ParameterMapping(m) for m in mappings
        ),
        command_type=SqlCommandType.SELECT,
        cache=cache,
        **kwargs,
    )


def make_update(statement_id, cache=None, sql="update t set name = ? where id = ?", **kwargs):
    return MappedStatement(
        id=statement_id,
        sql=sql,
        parameter_mappings=(ParameterMapping("name"), ParameterMapping("id")),
        command_type=SqlCommandType.UPDATE,
        cache=cache,
        **kwargs,
    )


@pytest.fixture(autouse=True)
def quiet_metrics():
    log.clear_metrics()
    yield
    log.clear_metrics()


@pytest.fixture
def session_settings():
    return ExecutorSettings(local_cache_scope=LocalCacheScope.SESSION)


@pytest.fixture
def statement_settings():
    return ExecutorSettings(local_cache_scope=LocalCacheScope.STATEMENT)


@pytest.fixture
def transaction():
    return FakeTransaction()


@pytest.fixture
def shared_cache():
    return MemoryCache("user.mapper")


@pytest.fixture
def scripted():
    """Factory: scripted(results, settings=None, transaction=None)"""
    def factory(results=None, settings=None, transaction=None):
        return ScriptedExecutor(results, settings, transaction)
    return factory


@pytest.fixture
def sqlite_connection():
    connection = sqlite3.connect(":memory:")
    connection.executescript(
        """
        create table users (id integer primary key, name text not null, team text);
        insert into users (id, name, team) values (1, 'alice', 'red');
        insert into users (id, name, team) values (2, 'bob', 'red');
        insert into users (id, name, team) values (3, 'carol', 'blue');
        """
    )
    connection.commit()
    yield connection
    connection.close()


@pytest.fixture
def sqlite_transaction(sqlite_connection):
    return ConnectionTransaction(connection=sqlite_connection)


