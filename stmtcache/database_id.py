"""
Database id detection from a DB-API connection.

DB-API 2.0 has no metadata call for the product name, so the product is
derived from the module that defines the connection class.
"""

from typing import Any, Callable, Dict, Optional

from .log import log

# Top level driver module -> product name
DRIVER_PRODUCTS: Dict[str, str] = {
    "sqlite3": "SQLite",
    "pysqlite2": "SQLite",
    "psycopg": "PostgreSQL",
    "psycopg2": "PostgreSQL",
    "pg8000": "PostgreSQL",
    "asyncpg": "PostgreSQL",
    "pymysql": "MySQL",
    "MySQLdb": "MySQL",
    "mysql": "MySQL",
    "mariadb": "MariaDB",
    "oracledb": "Oracle",
    "cx_Oracle": "Oracle",
    "pyodbc": "ODBC",
    "pymssql": "Microsoft SQL Server",
    "ibm_db": "DB2",
    "duckdb": "DuckDB",
}


def get_database_product_name(connection: Any) -> str:
    """Product name of the driver behind ``connection``; the module name when unknown"""
    module = type(connection).__module__ or ""
    root = module.split(".", 1)[0]
    return DRIVER_PRODUCTS.get(root, root)


class VendorDatabaseIdProvider:
    """
    Maps the product name of a connection to a database id.

    Without properties the product name itself is the id. With properties
    ({substring: database id}) the first substring contained in the product
    name wins, and no match gives None.
    """

    def __init__(self, properties: Optional[Dict[str, str]] = None):
        self.properties = dict(properties) if properties else None

    def get_database_id(self, connect: Callable[[], Any]) -> Optional[str]:
        if connect is None:
            raise ValueError("connect cannot be None")
        try:
            return self._get_database_name(connect)
        except Exception as e:
            log.error(f"Could not get a database id from the connection: {e}", tag="DATABASE_ID")
        return None

    def _get_database_name(self, connect: Callable[[], Any]) -> Optional[str]:
        product_name = self._get_database_product_name(connect)
        if self.properties is not None:
            for fragment, database_id in self.properties.items():
                if fragment in product_name:
                    return database_id
            return None
        return product_name

    @staticmethod
    def _get_database_product_name(connect: Callable[[], Any]) -> str:
        connection = connect()
        try:
            return get_database_product_name(connection)
        finally:
            try:
                connection.close()
            except Exception as e:
                log.debug(f"Ignoring error while closing probe connection: {e}", tag="DATABASE_ID")
