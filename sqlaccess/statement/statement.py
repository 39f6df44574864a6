from typing import Any

from sqlaccess.results import PagedResult, StoredProcedureResult
from sqlaccess.statement.executor import QueryCursor
from sqlaccess.statement.request import StatementRequest

# ==================================================
# Prepared Statements
# ==================================================


class SqlStatement:
    """
    A SQL template and its arguments bound to a Database.

    Every terminal method applies the Database close policy before
    returning, except query(), which hands that duty to its cursor.
    """

    def __init__(self, db: Any, request: StatementRequest) -> None:
        self.db = db
        self.request = request

    @property
    def sql(self) -> str:
        return self.request.sql

    @property
    def args(self) -> tuple[Any, ...]:
        return self.request.args

    def execute(self) -> int:
        try:
            return self.db.executor.execute(self)
        finally:
            self.db.close_connection()

    def fetch_value(self, as_type: Any = None) -> Any:
        try:
            return self.db.executor.execute_scalar(self, as_type)
        finally:
            self.db.close_connection()

    def fetch_one(self, as_type: Any = None) -> Any:
        try:
            return self.db.executor.query_single(self, as_type)
        finally:
            self.db.close_connection()

    def query(self, as_type: Any = None) -> QueryCursor[Any]:
        try:
            return self.db.executor.execute_query(self, as_type)
        except Exception:
            self.db.close_connection()
            raise

    def fetch_all(self, as_type: Any = None) -> list[Any]:
        with self.query(as_type) as cursor:
            return list(cursor)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(sql={self.request.sql!r}, args={self.request.args!r})"


class PagedSqlStatement(SqlStatement):
    """
    A SQL statement returning one page of rows plus the unpaged total.
    """

    def fetch_page(self, as_type: Any = None) -> PagedResult[Any]:
        try:
            return self.db.executor.execute_paged_query(self, as_type)
        finally:
            self.db.close_connection()


class ProcedureStatement:
    """
    A stored procedure call bound to a Database.
    """

    def __init__(self, db: Any, request: StatementRequest) -> None:
        self.db = db
        self.request = request

    @property
    def procedure(self) -> str | None:
        return self.request.procedure

    def execute(self) -> StoredProcedureResult:
        try:
            return self.db.executor.execute_procedure(self)
        finally:
            self.db.close_connection()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(procedure={self.request.procedure!r})"
