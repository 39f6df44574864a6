from datetime import datetime, timezone
import time
from typing import Any, Callable, Mapping, Sequence
from uuid import uuid4

from sqlaccess.config import ConnectionDescriptor
from sqlaccess.errors import ConfigurationError, InvalidStateError, TransientExecutionError, normalize_execution_error
from sqlaccess.hooks import HookSet
from sqlaccess.observability import ExecutionEvent, ObservabilitySettings, QueryObservation
from sqlaccess.providers.base import DatabaseTools, NativeTransaction, Provider
from sqlaccess.providers.factory import DbEngine, resolve_provider
from sqlaccess.results import PagedResult, StoredProcedureResult
from sqlaccess.statement.executor import QueryCursor, StatementExecutor
from sqlaccess.statement.request import StatementRequest
from sqlaccess.statement.statement import PagedSqlStatement, ProcedureStatement, SqlStatement
from sqlaccess.transaction import Transaction

# ==================================================
# Database
# ==================================================


class Database:
    """
    Owns one logical connection to a backend and the nested transaction
    scope running on it.

    The native connection is opened on first use. After every statement the
    close policy runs: the connection is closed unless keep_alive is set, a
    transaction is active, or a lazy query cursor is still open. Instances
    are not thread-safe; share one across threads only behind a lock.
    """

    def __init__(
        self,
        connection_string: str | None = None,
        provider: str | DbEngine | Provider | None = None,
        *,
        keep_alive: bool = False,
        connect_timeout_seconds: float | None = None,
        hooks: HookSet | None = None,
        observability_settings: ObservabilitySettings | None = None,
    ) -> None:
        if not connection_string or not connection_string.strip():
            raise ConfigurationError("A connection string is required.")

        self._connection_string = connection_string
        self._provider = resolve_provider(provider, connection_string)
        self.keep_alive = keep_alive
        self.connect_timeout_seconds = connect_timeout_seconds
        self.hooks = hooks or HookSet()
        self.observability_settings = observability_settings or ObservabilitySettings()
        self.executor = StatementExecutor(self)
        self._connection: Any | None = None
        self._native_transaction: NativeTransaction | None = None
        self._transaction_depth = 0
        self._transaction_id: str | None = None
        self._transaction_started_at: float | None = None
        self._transaction_generation = 0
        self._live_cursors: set[QueryCursor[Any]] = set()
        self._closed = False

    @classmethod
    def from_descriptor(cls, descriptor: ConnectionDescriptor, **kwargs: Any) -> "Database":
        return cls(
            descriptor.connection_string,
            descriptor.provider,
            keep_alive=descriptor.keep_alive,
            connect_timeout_seconds=descriptor.connect_timeout_seconds,
            **kwargs,
        )

    # ==================================================
    # Connection Lifecycle
    # ==================================================

    @property
    def provider(self) -> Provider:
        return self._provider

    @property
    def connection_string(self) -> str:
        return self._connection_string

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def database_tools(self) -> DatabaseTools:
        return self._provider.get_tools(self)

    def _ensure_open(self) -> None:
        if self._closed:
            raise InvalidStateError("Database is closed.")

    @property
    def connection(self) -> Any:
        """
        The native connection, opened on first access.
        """
        self._ensure_open()
        if self._connection is None:
            started = time.perf_counter()
            self._connection = self._provider.create_connection(
                self._connection_string,
                self.connect_timeout_seconds,
            )
            self._emit_event(
                "connection.open",
                success=True,
                connection_id=str(id(self._connection)),
                duration_ms=(time.perf_counter() - started) * 1000,
            )
            self.hooks.on_open_connection(self)
        return self._connection

    def _create_cursor(self) -> Any:
        return self.connection.cursor()

    def _cursor_opened(self, cursor: QueryCursor[Any]) -> None:
        self._live_cursors.add(cursor)

    def _cursor_closed(self, cursor: QueryCursor[Any]) -> None:
        self._live_cursors.discard(cursor)
        self.close_connection()

    def _detach_cursors(self) -> None:
        # native cursors die with the connection
        cursors, self._live_cursors = self._live_cursors, set()
        for cursor in cursors:
            cursor._detach()

    def close_connection(self, force: bool = False) -> None:
        """
        Closes the native connection unless keep_alive, an active transaction
        or an open query cursor requires it. force always closes, rolling
        back any active transaction first and ending any open query cursor.
        """
        if self._connection is None:
            return
        if not force and (self.keep_alive or self._native_transaction is not None or self._live_cursors):
            return
        self._detach_cursors()
        if self._native_transaction is not None:
            self._rollback()

        connection = self._connection
        self._connection = None
        try:
            connection.close()
        finally:
            self._emit_event("connection.close", success=True, connection_id=str(id(connection)))
            self.hooks.on_close_connection(self)

    def close(self) -> None:
        """
        Rolls back any open transaction, then force-closes the connection.
        """
        if self._closed:
            return
        try:
            if self._native_transaction is not None:
                self._rollback()
        finally:
            try:
                self.close_connection(force=True)
            finally:
                self._closed = True

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    # ==================================================
    # Transactions
    # ==================================================

    @property
    def transaction_depth(self) -> int:
        return self._transaction_depth

    @property
    def in_transaction(self) -> bool:
        return self._native_transaction is not None

    def begin_transaction(self, isolation_level: str | None = None) -> Transaction:
        """
        Starts a transaction or joins the active one.

        Only the outermost call starts the native transaction, so
        isolation_level is ignored on nested calls.
        """
        self._ensure_open()
        if self._transaction_depth == 0:
            try:
                self._native_transaction = self._provider.begin_transaction(self.connection, isolation_level)
            except Exception as exc:
                self.hooks.on_exception(None, exc)
                raise
            self._transaction_generation += 1
            self._transaction_id = uuid4().hex
            self._transaction_started_at = time.perf_counter()
            self._emit_event("txn.begin", success=True, transaction_id=self._transaction_id)
        self._transaction_depth += 1
        self.hooks.on_begin_transaction(self)
        return Transaction(self, self._native_transaction.isolation_level, self._transaction_generation)

    def _transaction_duration_ms(self) -> float | None:
        if self._transaction_started_at is None:
            return None
        return (time.perf_counter() - self._transaction_started_at) * 1000

    def _commit(self, generation: int | None = None) -> None:
        if self._native_transaction is None:
            raise InvalidStateError("No transaction started.")
        if generation is not None and generation != self._transaction_generation:
            raise InvalidStateError("Transaction was finished.")

        if self._transaction_depth == 1:
            try:
                self._native_transaction.commit()
            except Exception as exc:
                self.hooks.on_exception(None, exc)
                self._rollback()
                raise
            self._emit_event(
                "txn.commit",
                success=True,
                transaction_id=self._transaction_id,
                duration_ms=self._transaction_duration_ms(),
            )
            self._native_transaction = None
            self._transaction_depth = 0
            self._transaction_id = None
            self._transaction_started_at = None
        else:
            self._transaction_depth -= 1
        self.hooks.on_end_transaction(self, True)

    def _rollback(self, generation: int | None = None) -> None:
        native = self._native_transaction
        if native is None:
            return
        if generation is not None and generation != self._transaction_generation:
            return

        transaction_id = self._transaction_id
        duration_ms = self._transaction_duration_ms()
        self._native_transaction = None
        self._transaction_depth = 0
        self._transaction_id = None
        self._transaction_started_at = None

        succeeded = False
        try:
            native.rollback()
            succeeded = True
        except Exception as exc:
            self.hooks.on_exception(None, exc)
            raise
        finally:
            self._emit_event(
                "txn.rollback",
                success=succeeded,
                transaction_id=transaction_id,
                duration_ms=duration_ms,
            )
            self.hooks.on_end_transaction(self, False)

    # ==================================================
    # Statements
    # ==================================================

    def with_sql(self, sql: str, *args: Any) -> SqlStatement:
        return SqlStatement(self, StatementRequest(sql=sql, args=args))

    def with_paged_sql(self, skip: int, take: int, sql: str, *args: Any) -> PagedSqlStatement:
        return PagedSqlStatement(self, StatementRequest(sql=sql, args=args, skip=skip, take=take))

    def execute(self, sql: str, *args: Any) -> int:
        """
        Runs a statement and returns the affected row count.
        """
        return self.with_sql(sql, *args).execute()

    def fetch_value(self, sql: str, *args: Any, as_type: Any = None) -> Any:
        """
        Returns the first column of the first row, or None.
        """
        return self.with_sql(sql, *args).fetch_value(as_type)

    def fetch_one(self, sql: str, *args: Any, as_type: Any = None) -> Any:
        """
        Returns the first row mapped to as_type, or None.
        """
        return self.with_sql(sql, *args).fetch_one(as_type)

    def query(self, sql: str, *args: Any, as_type: Any = None) -> QueryCursor[Any]:
        """
        Returns a lazy cursor over the mapped rows. Drain it or close it.
        """
        return self.with_sql(sql, *args).query(as_type)

    def fetch_all(self, sql: str, *args: Any, as_type: Any = None) -> list[Any]:
        return self.with_sql(sql, *args).fetch_all(as_type)

    def fetch_page(self, skip: int, take: int, sql: str, *args: Any, as_type: Any = None) -> PagedResult[Any]:
        return self.with_paged_sql(skip, take, sql, *args).fetch_page(as_type)

    def call_procedure(self, name: str, arguments: Mapping[str, Any] | Any = None) -> StoredProcedureResult:
        """
        Calls a stored procedure. Arguments bind by name; names prefixed
        with '_' are output parameters and come back on the result without
        the prefix.

            db.call_procedure("add_order", {"customer_id": 1, "_order_id": 0})
        """
        request = StatementRequest(sql="", procedure=name, procedure_args=arguments)
        return ProcedureStatement(self, request).execute()

    # ==================================================
    # Observability
    # ==================================================

    def _metadata(self) -> dict[str, Any]:
        return dict(self.observability_settings.metadata)

    def _emit_event(self, event: str, *, success: bool, **kwargs: Any) -> None:
        settings = self.observability_settings
        if settings.event_observer is None:
            return

        kwargs.setdefault("transaction_depth", self._transaction_depth)
        settings.event_observer(
            ExecutionEvent(
                timestamp=datetime.now(timezone.utc).isoformat(),
                event=event,
                provider=self._provider.name,
                success=success,
                metadata=self._metadata(),
                **kwargs,
            )
        )

    def _observe_query(
        self,
        *,
        operation: str,
        sql: str,
        params: Sequence[Any] | None,
        run: Callable[[], Any],
    ) -> Any:
        settings = self.observability_settings
        if settings.event_observer is None and settings.query_observer is None:
            return run()

        query_id = uuid4().hex
        self._emit_event("query.start", success=True, operation=operation, query_id=query_id)

        started = time.perf_counter()
        error: Exception | None = None
        try:
            return run()
        except Exception as exc:
            error = exc
            raise
        finally:
            duration_ms = (time.perf_counter() - started) * 1000
            if settings.query_observer is not None:
                settings.query_observer(
                    QueryObservation(
                        provider=self._provider.name,
                        operation=operation,
                        sql=sql,
                        param_count=len(params) if params is not None else 0,
                        duration_ms=duration_ms,
                        succeeded=error is None,
                        in_transaction=self.in_transaction,
                        metadata=self._metadata(),
                        error_type=type(error).__name__ if error is not None else None,
                        error_message=str(error) if error is not None else None,
                    )
                )
            normalized = (
                normalize_execution_error(provider=self._provider.name, operation=operation, exc=error)
                if error is not None
                else None
            )
            self._emit_event(
                "query.end",
                success=error is None,
                operation=operation,
                query_id=query_id,
                duration_ms=duration_ms,
                error_type=type(normalized).__name__ if normalized is not None else None,
                error_code=normalized.details.sqlstate if normalized is not None else None,
                error_message=str(error) if error is not None else None,
                retryable=isinstance(normalized, TransientExecutionError) if normalized is not None else None,
            )

    def __repr__(self) -> str:
        state = "closed" if self._closed else ("open" if self._connection is not None else "idle")
        return f"Database(provider={self._provider.name!r}, state={state}, depth={self._transaction_depth})"
