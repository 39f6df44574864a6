from __future__ import annotations

from dataclasses import dataclass


# ==================================================
# Access Errors
# ==================================================


class SqlAccessError(Exception):
    """
    Base type for errors raised by sqlaccess itself.
    """


class ConfigurationError(SqlAccessError):
    """
    Raised when a Database cannot resolve a usable connection string or provider.
    """


class InvalidStateError(SqlAccessError, RuntimeError):
    """
    Raised on transaction or cursor misuse (commit without a transaction, reuse of a finished handle).
    """


class HookArgumentError(SqlAccessError, ValueError):
    """
    Raised when a hook slot is assigned something that is not callable.
    """


class UnsupportedOperationError(SqlAccessError):
    """
    Raised when a provider lacks a capability, e.g. stored procedures on SQLite.
    """


# ==================================================
# Normalized Execution Errors
# ==================================================


@dataclass(slots=True)
class ExecutionErrorDetails:
    """
    Structured metadata for normalized execution errors.
    """

    provider: str
    operation: str
    sqlstate: str | None
    original_message: str


class ExecutionError(SqlAccessError):
    """
    Base normalized execution error type.
    """

    def __init__(self, details: ExecutionErrorDetails, original_exception: Exception) -> None:
        self.details = details
        self.original_exception = original_exception
        super().__init__(
            f"[{details.provider}:{details.operation}] {self.__class__.__name__}: {details.original_message}"
        )


class TransientExecutionError(ExecutionError):
    """
    Base type for errors that are typically retryable.
    """


class DeadlockError(TransientExecutionError):
    pass


class SerializationError(TransientExecutionError):
    pass


class LockTimeoutError(TransientExecutionError):
    pass


class ConnectionTimeoutError(TransientExecutionError):
    pass


class IntegrityConstraintError(ExecutionError):
    pass


class ProgrammingExecutionError(ExecutionError):
    pass


def _extract_sqlstate(exc: Exception) -> str | None:
    sqlstate = getattr(exc, "sqlstate", None)
    if isinstance(sqlstate, str) and sqlstate:
        return sqlstate.upper()

    pgcode = getattr(exc, "pgcode", None)
    if isinstance(pgcode, str) and pgcode:
        return pgcode.upper()

    errno = getattr(exc, "errno", None)
    if isinstance(errno, int) and errno > 0:
        return str(errno)

    code = getattr(exc, "code", None)
    if isinstance(code, str) and len(code) == 5:
        return code.upper()

    # pyodbc carries the SQLSTATE as the first argument
    args = getattr(exc, "args", ())
    if type(exc).__module__ == "pyodbc" and args and isinstance(args[0], str) and len(args[0]) == 5:
        return args[0].upper()

    return None


def normalize_execution_error(
    *,
    provider: str,
    operation: str,
    exc: Exception,
) -> ExecutionError:
    """
    Maps driver exceptions to a normalized execution error taxonomy.
    """
    if isinstance(exc, ExecutionError):
        return exc

    sqlstate = _extract_sqlstate(exc)
    message = str(exc).lower()
    details = ExecutionErrorDetails(
        provider=provider,
        operation=operation,
        sqlstate=sqlstate,
        original_message=str(exc),
    )

    deadlock_states = {"40P01", "1213"}
    serialization_states = {"40001"}
    lock_timeout_states = {"55P03", "57014", "1205"}
    integrity_prefixes = {"23"}
    programming_prefixes = {"42"}

    if sqlstate in deadlock_states or "deadlock" in message:
        return DeadlockError(details, exc)

    if sqlstate in serialization_states or "serialization failure" in message or "could not serialize" in message:
        return SerializationError(details, exc)

    if (
        sqlstate in lock_timeout_states
        or "lock wait timeout" in message
        or "database is locked" in message
        or "lock timeout" in message
    ):
        return LockTimeoutError(details, exc)

    if (
        "connection timed out" in message
        or "timed out" in message
        or "login timeout" in message
        or "could not connect" in message
        or "connection refused" in message
    ):
        return ConnectionTimeoutError(details, exc)

    if sqlstate and sqlstate[:2] in integrity_prefixes:
        return IntegrityConstraintError(details, exc)
    if (
        "unique constraint" in message
        or "foreign key constraint" in message
        or "duplicate key" in message
        or "duplicate entry" in message
        or "constraint failed" in message
    ):
        return IntegrityConstraintError(details, exc)

    if sqlstate and sqlstate[:2] in programming_prefixes:
        return ProgrammingExecutionError(details, exc)
    if (
        "syntax error" in message
        or "invalid identifier" in message
        or "unknown column" in message
        or "no such table" in message
        or "no such column" in message
    ):
        return ProgrammingExecutionError(details, exc)

    return ExecutionError(details, exc)
