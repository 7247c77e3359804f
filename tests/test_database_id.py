"""
VendorDatabaseIdProvider 测试
"""

import sqlite3

import pytest

from stmtcache.database_id import VendorDatabaseIdProvider, get_database_product_name


class ProbeConnection:
    """Connection whose driver module is unknown"""

    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class TestProductName:
    """产品名识别"""

    def test_sqlite(self):
        connection = sqlite3.connect(":memory:")
        try:
            assert get_database_product_name(connection) == "SQLite"
        finally:
            connection.close()

    def test_unknown_driver_uses_module_name(self):
        assert get_database_product_name(ProbeConnection()) == ProbeConnection.__module__.split(".")[0]


class TestVendorDatabaseIdProvider:
    """数据库标识"""

    def test_product_name_without_properties(self):
        provider = VendorDatabaseIdProvider()
        assert provider.get_database_id(lambda: sqlite3.connect(":memory:")) == "SQLite"

    def test_properties_translate(self):
        provider = VendorDatabaseIdProvider({"MySQL": "mysql", "SQL": "generic-sql"})
        assert provider.get_database_id(lambda: sqlite3.connect(":memory:")) == "generic-sql"

    def test_no_matching_property(self):
        provider = VendorDatabaseIdProvider({"Oracle": "oracle"})
        assert provider.get_database_id(lambda: sqlite3.connect(":memory:")) is None

    def test_probe_connection_is_closed(self):
        probe = ProbeConnection()
        VendorDatabaseIdProvider().get_database_id(lambda: probe)
        assert probe.closed

    def test_connect_failure_returns_none(self):
        def connect():
            raise ConnectionError("database is down")

        assert VendorDatabaseIdProvider().get_database_id(connect) is None

    def test_connect_is_required(self):
        with pytest.raises(ValueError):
            VendorDatabaseIdProvider().get_database_id(None)
