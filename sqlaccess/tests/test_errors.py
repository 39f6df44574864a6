import pytest

from sqlaccess.errors import (
    ConnectionTimeoutError,
    DeadlockError,
    ExecutionError,
    HookArgumentError,
    IntegrityConstraintError,
    InvalidStateError,
    LockTimeoutError,
    ProgrammingExecutionError,
    SerializationError,
    SqlAccessError,
    TransientExecutionError,
    normalize_execution_error,
)


class _FakeDriverError(Exception):
    def __init__(self, message: str, sqlstate: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


class _MySqlStyleError(Exception):
    def __init__(self, message: str, errno: int) -> None:
        super().__init__(message)
        self.errno = errno


def test_normalize_deadlock_by_sqlstate() -> None:
    err = normalize_execution_error(
        provider="postgres",
        operation="execute",
        exc=_FakeDriverError("deadlock detected", "40P01"),
    )
    assert isinstance(err, DeadlockError)
    assert isinstance(err, TransientExecutionError)
    assert err.details.provider == "postgres"
    assert err.details.operation == "execute"
    assert err.details.sqlstate == "40P01"


def test_normalize_serialization_by_sqlstate() -> None:
    err = normalize_execution_error(
        provider="cockroachdb",
        operation="execute",
        exc=_FakeDriverError("restart transaction", "40001"),
    )
    assert isinstance(err, SerializationError)


def test_normalize_mysql_errno() -> None:
    err = normalize_execution_error(
        provider="mysql",
        operation="execute",
        exc=_MySqlStyleError("Lock wait timeout exceeded", 1205),
    )
    assert isinstance(err, LockTimeoutError)
    assert err.details.sqlstate == "1205"


def test_normalize_lock_timeout_by_message() -> None:
    err = normalize_execution_error(
        provider="sqlite",
        operation="execute",
        exc=_FakeDriverError("database is locked"),
    )
    assert isinstance(err, LockTimeoutError)


def test_normalize_connection_timeout_by_message() -> None:
    err = normalize_execution_error(
        provider="mssql",
        operation="execute",
        exc=_FakeDriverError("login timeout expired"),
    )
    assert isinstance(err, ConnectionTimeoutError)


@pytest.mark.parametrize(
    "message, sqlstate",
    [
        ("duplicate key", "23000"),
        ("Duplicate entry 'a' for key 'name'", None),
        ("UNIQUE constraint failed: users.email", None),
    ],
)
def test_normalize_integrity_errors(message, sqlstate) -> None:
    err = normalize_execution_error(
        provider="mysql",
        operation="execute",
        exc=_FakeDriverError(message, sqlstate),
    )
    assert isinstance(err, IntegrityConstraintError)
    assert not isinstance(err, TransientExecutionError)


@pytest.mark.parametrize(
    "message, sqlstate",
    [
        ("syntax error", "42000"),
        ("no such table: missing", None),
    ],
)
def test_normalize_programming_errors(message, sqlstate) -> None:
    err = normalize_execution_error(
        provider="oracle",
        operation="query",
        exc=_FakeDriverError(message, sqlstate),
    )
    assert isinstance(err, ProgrammingExecutionError)


def test_normalize_generic_execution_error_fallback() -> None:
    original = _FakeDriverError("unknown failure")
    err = normalize_execution_error(provider="postgres", operation="execute", exc=original)

    assert type(err) is ExecutionError
    assert err.original_exception is original
    assert str(err) == "[postgres:execute] ExecutionError: unknown failure"


def test_normalized_error_passes_through() -> None:
    first = normalize_execution_error(provider="sqlite", operation="execute", exc=_FakeDriverError("deadlock"))
    assert normalize_execution_error(provider="sqlite", operation="execute", exc=first) is first


def test_access_errors_keep_builtin_bases() -> None:
    assert issubclass(InvalidStateError, RuntimeError)
    assert issubclass(HookArgumentError, ValueError)
    assert issubclass(ExecutionError, SqlAccessError)
