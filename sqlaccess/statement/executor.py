from collections import deque
from typing import Any, Callable, Generic, Iterator, TypeVar

from sqlaccess.results import PagedResult, StoredProcedureResult
from sqlaccess.statement.binder import BoundStatement, bind
from sqlaccess.statement.mapping import column_names, convert_value, map_row
from sqlaccess.statement.request import Command

T = TypeVar("T")
P = TypeVar("P")

# ==================================================
# Query Cursor
# ==================================================


class QueryCursor(Generic[T]):
    """
    Lazily maps rows from an executed query.

    The Database connection stays open while the cursor is open. Exhausting
    the cursor, calling close(), or leaving a `with` block releases it and
    applies the Database close policy exactly once. A cursor that is
    abandoned half-read and never closed keeps the connection open until
    the Database force-closes it, which also ends the cursor.
    """

    def __init__(
        self,
        db: Any,
        statement: Any,
        cursor: Any,
        as_type: Any = None,
        batch_size: int = 100,
    ) -> None:
        self._db = db
        self._statement = statement
        self._cursor = cursor
        self._as_type = as_type
        self._batch_size = batch_size
        self._columns = column_names(cursor.description)
        self._buffer: deque[Any] = deque()
        self._closed = False
        db._cursor_opened(self)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        if self._closed:
            raise StopIteration
        if not self._buffer:
            try:
                rows = self._cursor.fetchmany(self._batch_size)
            except Exception as exc:
                self._db.hooks.on_exception(self._statement, exc)
                self.close()
                raise
            if not rows:
                self.close()
                raise StopIteration
            self._buffer.extend(rows)
        return map_row(self._columns, self._buffer.popleft(), self._as_type)

    def _detach(self) -> None:
        self._closed = True
        self._buffer.clear()

    def close(self) -> None:
        if self._closed:
            return
        self._detach()
        try:
            self._cursor.close()
        finally:
            self._db._cursor_closed(self)

    def __enter__(self) -> "QueryCursor[T]":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()


# ==================================================
# Statement Executor
# ==================================================


class StatementExecutor:
    """
    Binds statement requests against the Database's provider, runs them on
    the managed connection and shapes the results.
    """

    def __init__(self, db: Any) -> None:
        self.db = db

    @property
    def provider(self) -> Any:
        return self.db.provider

    def bind(self, statement: Any) -> BoundStatement:
        request = statement.request
        return bind(request.sql, request.args, self.provider)

    def _prepare(self, statement: Any, build: Callable[[], P]) -> P:
        try:
            return build()
        except Exception as exc:
            self.db.hooks.on_exception(statement, exc)
            raise

    def _issue(self, cursor: Any, kind: str, sql: str, params: list[Any]) -> None:
        self.db.hooks.on_command(Command(sql=sql, params=params, kind=kind, cursor=cursor))
        if params:
            cursor.execute(sql, params)
        else:
            cursor.execute(sql)

    def _guarded(self, statement: Any, operation: str, sql: str, params: list[Any], run: Callable[[], Any]) -> Any:
        try:
            return self.db._observe_query(operation=operation, sql=sql, params=params, run=run)
        except Exception as exc:
            self.db.hooks.on_exception(statement, exc)
            raise

    def execute(self, statement: Any) -> int:
        bound = self._prepare(statement, lambda: self.bind(statement))

        def _run() -> int:
            cursor = self.db._create_cursor()
            try:
                self._issue(cursor, "execute", bound.sql, bound.params)
                return cursor.rowcount
            finally:
                cursor.close()

        return self._guarded(statement, "execute", bound.sql, bound.params, _run)

    def execute_scalar(self, statement: Any, as_type: Any = None) -> Any:
        bound = self._prepare(statement, lambda: self.bind(statement))

        def _run() -> Any:
            cursor = self.db._create_cursor()
            try:
                self._issue(cursor, "scalar", bound.sql, bound.params)
                row = cursor.fetchone() if cursor.description else None
                return convert_value(row[0], as_type) if row is not None else None
            finally:
                cursor.close()

        return self._guarded(statement, "scalar", bound.sql, bound.params, _run)

    def query_single(self, statement: Any, as_type: Any = None) -> Any:
        bound = self._prepare(statement, lambda: self.bind(statement))

        def _run() -> Any:
            cursor = self.db._create_cursor()
            try:
                self._issue(cursor, "single", bound.sql, bound.params)
                row = cursor.fetchone() if cursor.description else None
                if row is None:
                    return None
                return map_row(column_names(cursor.description), row, as_type)
            finally:
                cursor.close()

        return self._guarded(statement, "single", bound.sql, bound.params, _run)

    def execute_query(self, statement: Any, as_type: Any = None) -> QueryCursor[Any]:
        bound = self._prepare(statement, lambda: self.bind(statement))

        def _run() -> QueryCursor[Any]:
            cursor = self.db._create_cursor()
            try:
                self._issue(cursor, "query", bound.sql, bound.params)
            except Exception:
                cursor.close()
                raise
            return QueryCursor(self.db, statement, cursor, as_type)

        return self._guarded(statement, "query", bound.sql, bound.params, _run)

    def execute_paged_query(self, statement: Any, as_type: Any = None) -> PagedResult[Any]:
        request = statement.request
        bound = self._prepare(statement, lambda: self.bind(statement))
        # counted from the template: placeholders in a stripped ORDER BY are never bound
        count = self._prepare(
            statement,
            lambda: bind(self.provider.count_sql(request.sql), request.args, self.provider),
        )
        page_sql = self._prepare(statement, lambda: self.provider.page_sql(bound.sql, request.skip, request.take))

        def _run() -> PagedResult[Any]:
            cursor = self.db._create_cursor()
            try:
                self._issue(cursor, "count", count.sql, count.params)
                row = cursor.fetchone()
                total = int(row[0]) if row is not None and row[0] is not None else 0

                items: list[Any] = []
                if total > request.skip:
                    self._issue(cursor, "page", page_sql, bound.params)
                    columns = column_names(cursor.description)
                    items = [map_row(columns, page_row, as_type) for page_row in cursor.fetchall()]
                return PagedResult(items=items, total_count=total, skip=request.skip, take=request.take)
            finally:
                cursor.close()

        return self._guarded(statement, "paged_query", page_sql, bound.params, _run)

    def execute_procedure(self, statement: Any) -> StoredProcedureResult:
        request = statement.request
        call = self._prepare(
            statement,
            lambda: self.provider.prepare_procedure(request.procedure, request.procedure_parameters()),
        )

        def _run() -> StoredProcedureResult:
            cursor = self.db._create_cursor()
            try:
                self.db.hooks.on_command(Command(sql=call.sql, params=call.params, kind="procedure", cursor=cursor))
                return self.provider.run_procedure(cursor, call)
            finally:
                cursor.close()

        return self._guarded(statement, "procedure", call.sql, call.params, _run)
