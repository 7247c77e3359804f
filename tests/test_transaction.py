"""
ConnectionTransaction 测试
"""

import pytest

from stmtcache.transaction import ConnectionTransaction


class RecordingConnection:
    def __init__(self):
        self.calls = []

    def commit(self):
        self.calls.append("commit")

    def rollback(self):
        self.calls.append("rollback")

    def close(self):
        self.calls.append("close")


class TestConnectionTransaction:
    """事务资源"""

    def test_requires_connection_or_factory(self):
        with pytest.raises(ValueError):
            ConnectionTransaction()

    def test_lazy_open(self):
        opened = []

        def connect():
            connection = RecordingConnection()
            opened.append(connection)
            return connection

        transaction = ConnectionTransaction(connect=connect)
        transaction.commit()
        assert opened == []

        connection = transaction.get_connection()
        assert opened == [connection]
        assert transaction.get_connection() is connection

    def test_commit_and_rollback(self):
        connection = RecordingConnection()
        transaction = ConnectionTransaction(connection=connection)

        transaction.commit()
        transaction.rollback()

        assert connection.calls == ["commit", "rollback"]

    def test_autocommit_skips_commit_and_rollback(self):
        connection = RecordingConnection()
        transaction = ConnectionTransaction(connection=connection, autocommit=True)

        transaction.commit()
        transaction.rollback()

        assert connection.calls == []

    def test_close_is_idempotent(self):
        connection = RecordingConnection()
        transaction = ConnectionTransaction(connection=connection)

        transaction.close()
        transaction.close()

        assert connection.calls == ["close"]

    def test_closed_without_factory(self):
        transaction = ConnectionTransaction(connection=RecordingConnection())
        transaction.close()

        with pytest.raises(RuntimeError):
            transaction.get_connection()

    def test_reopen_with_factory(self):
        transaction = ConnectionTransaction(connect=RecordingConnection)
        first = transaction.get_connection()
        transaction.close()

        assert transaction.get_connection() is not first

    def test_timeout(self):
        assert ConnectionTransaction(connection=RecordingConnection(), timeout=3).get_timeout() == 3
