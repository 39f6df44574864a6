from sqlaccess.statement.request import Command, StatementRequest
from sqlaccess.statement.binder import BoundStatement, bind
from sqlaccess.statement.mapping import column_names, convert_value, map_row
from sqlaccess.statement.executor import QueryCursor, StatementExecutor
from sqlaccess.statement.statement import PagedSqlStatement, ProcedureStatement, SqlStatement

__all__ = [
    "Command",
    "StatementRequest",
    "BoundStatement",
    "bind",
    "column_names",
    "convert_value",
    "map_row",
    "QueryCursor",
    "StatementExecutor",
    "SqlStatement",
    "PagedSqlStatement",
    "ProcedureStatement",
]
