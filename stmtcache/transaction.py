"""
Transaction resources used by the executors.

ITransaction is the contract the executors consume; ConnectionTransaction
implements it on top of any DB-API 2.0 connection.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from .log import log


class ITransaction(ABC):
    """Connection plus commit / rollback / close, each of which may fail"""

    @abstractmethod
    def get_connection(self) -> Any:
        """Return the DB-API connection, opening it on first use"""

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def rollback(self) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    def get_timeout(self) -> Optional[float]:
        return None


class ConnectionTransaction(ITransaction):
    """
    Transaction over a DB-API connection.

    Either pass an open connection or a zero-argument ``connect`` factory;
    the factory is only called when a statement first needs the connection.
    With ``autocommit`` set, commit and rollback are left to the driver.
    """

    def __init__(
        self,
        connection: Any = None,
        connect: Optional[Callable[[], Any]] = None,
        autocommit: bool = False,
        timeout: Optional[float] = None,
    ):
        if connection is None and connect is None:
            raise ValueError("ConnectionTransaction needs a connection or a connect factory")
        self._connection = connection
        self._connect = connect
        self.autocommit = autocommit
        self._timeout = timeout

    def get_connection(self) -> Any:
        if self._connection is None:
            if self._connect is None:
                raise RuntimeError("Connection was closed and there is no factory to reopen it")
            log.debug("Opening connection", tag="TRANSACTION")
            self._connection = self._connect()
        return self._connection

    def commit(self) -> None:
        if self._connection is not None and not self.autocommit:
            log.debug(f"Committing connection [{self._connection!r}]", tag="TRANSACTION")
            self._connection.commit()

    def rollback(self) -> None:
        if self._connection is not None and not self.autocommit:
            log.debug(f"Rolling back connection [{self._connection!r}]", tag="TRANSACTION")
            self._connection.rollback()

    def close(self) -> None:
        if self._connection is not None:
            log.debug(f"Closing connection [{self._connection!r}]", tag="TRANSACTION")
            connection, self._connection = self._connection, None
            connection.close()

    def get_timeout(self) -> Optional[float]:
        return self._timeout
