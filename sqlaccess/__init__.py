from sqlaccess.database import Database
from sqlaccess.transaction import Transaction
from sqlaccess.hooks import HookSet
from sqlaccess.config import ConnectionDescriptor
from sqlaccess.results import PagedResult, StoredProcedureResult
from sqlaccess.statement import (
    Command,
    PagedSqlStatement,
    ProcedureStatement,
    QueryCursor,
    SqlStatement,
    StatementExecutor,
    StatementRequest,
)
from sqlaccess.providers import (
    DatabaseTools,
    DbEngine,
    Provider,
    get_provider,
    get_provider_by_name,
    register_provider,
)
from sqlaccess.observability import (
    ExecutionEvent,
    ObservabilitySettings,
    QueryObservation,
    compose_event_observers,
    execution_event_to_dict,
    make_json_event_logger,
)
from sqlaccess.errors import (
    ConfigurationError,
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
    UnsupportedOperationError,
    normalize_execution_error,
)

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "Database",
    "Transaction",
    "HookSet",
    "ConnectionDescriptor",
    "PagedResult",
    "StoredProcedureResult",
    "Command",
    "SqlStatement",
    "PagedSqlStatement",
    "ProcedureStatement",
    "QueryCursor",
    "StatementExecutor",
    "StatementRequest",
    "DatabaseTools",
    "DbEngine",
    "Provider",
    "get_provider",
    "get_provider_by_name",
    "register_provider",
    "ExecutionEvent",
    "ObservabilitySettings",
    "QueryObservation",
    "compose_event_observers",
    "execution_event_to_dict",
    "make_json_event_logger",
    "SqlAccessError",
    "ConfigurationError",
    "InvalidStateError",
    "HookArgumentError",
    "UnsupportedOperationError",
    "ExecutionError",
    "TransientExecutionError",
    "DeadlockError",
    "SerializationError",
    "LockTimeoutError",
    "ConnectionTimeoutError",
    "IntegrityConstraintError",
    "ProgrammingExecutionError",
    "normalize_execution_error",
]
