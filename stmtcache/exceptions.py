"""Exception hierarchy for stmtcache."""

from typing import Optional


class StmtCacheError(Exception):
    """Base class for every error raised by stmtcache."""


class ExecutorError(StmtCacheError):
    """An executor operation failed.

    Attributes:
        statement_id: Id of the statement being executed, when known.
    """

    def __init__(self, message: str, *, statement_id: Optional[str] = None) -> None:
        self.statement_id = statement_id
        if statement_id:
            message = f"{message} (statement: {statement_id})"
        super().__init__(message)


class ExecutorClosedError(ExecutorError):
    """Operation invoked on an executor that was already closed."""


class CacheConfigurationError(ExecutorError):
    """A statement asks for something the shared cache cannot do.

    Raised before any cache access; the statement has to be reconfigured,
    retrying it unchanged fails the same way.
    """


class TooManyResultsError(ExecutorError):
    """A single value was expected but the statement returned several rows."""


class StatementExecutionError(ExecutorError):
    """The backing store failed while executing a statement.

    Attributes:
        activity: What the executor was doing ("executing a query", ...).
        cause: The driver exception.
    """

    def __init__(self, statement_id: str, activity: str, cause: BaseException) -> None:
        self.activity = activity
        self.cause = cause
        super().__init__(f"Error {activity}. Cause: {cause}", statement_id=statement_id)


class CacheError(StmtCacheError):
    """A shared cache could not serve a request."""


class CacheLockTimeoutError(CacheError):
    """Waiting for another session to populate a key took too long."""

    def __init__(self, cache_id: str, key: object, timeout: float) -> None:
        self.cache_id = cache_id
        self.key = key
        self.timeout = timeout
        super().__init__(
            f"Couldn't get a lock in {timeout}s for the key {key} at the cache {cache_id}"
        )


class ConfigurationError(StmtCacheError):
    """The settings file or an override holds an invalid value."""
