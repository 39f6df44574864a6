from datetime import date, datetime
from decimal import Decimal
from typing import Any, Sequence
from urllib.parse import parse_qs, unquote, urlparse

from sqlaccess.errors import ConfigurationError
from sqlaccess.providers.base import ANSI_ISOLATION_LEVELS, ProcedureCall, ProcedureParameter, Provider
from sqlaccess.results import StoredProcedureResult

# ==================================================
# SQL Server Provider
# ==================================================

_ORDER_BY = "ORDER BY"


def _sql_type_for(value: Any) -> str:
    if isinstance(value, bool):
        return "BIT"
    if isinstance(value, int):
        return "BIGINT"
    if isinstance(value, float):
        return "FLOAT"
    if isinstance(value, Decimal):
        return "DECIMAL(38, 10)"
    if isinstance(value, datetime):
        return "DATETIME2"
    if isinstance(value, date):
        return "DATE"
    if isinstance(value, (bytes, bytearray)):
        return "VARBINARY(MAX)"
    return "NVARCHAR(MAX)"


class MsSqlProvider(Provider):
    """
    A provider for SQL Server using the 'pyodbc' library.
    """

    name = "mssql"
    paramstyle = "qmark"
    driver_module = "pyodbc"
    driver_package = "pyodbc"
    isolation_levels = ANSI_ISOLATION_LEVELS | {"SNAPSHOT"}
    identifier_quotes = ("[", "]")

    def _build_connection_string(self, config: dict[str, Any]) -> str:
        driver = config.get("driver", "ODBC Driver 18 for SQL Server")
        server = config.get("server", config.get("host", "127.0.0.1"))
        port = config.get("port")
        database = config.get("database")
        user = config.get("user")
        password = config.get("password")
        encrypt = config.get("encrypt", "no")
        trust_cert = config.get("trust_server_certificate", "yes")

        server_part = f"{server},{port}" if port else server
        parts = [f"DRIVER={{{driver}}}", f"SERVER={server_part}"]
        if database:
            parts.append(f"DATABASE={database}")
        if user:
            parts.append(f"UID={user}")
        if password:
            parts.append(f"PWD={password}")
        if encrypt is not None:
            parts.append(f"Encrypt={encrypt}")
        if trust_cert is not None:
            parts.append(f"TrustServerCertificate={trust_cert}")
        return ";".join(parts)

    def odbc_connection_string(self, connection_string: str) -> str:
        """
        Turns a mssql:// URL into an ODBC connection string; ODBC strings pass through.
        """
        if "://" not in connection_string:
            return connection_string

        parsed = urlparse(connection_string)
        if parsed.scheme not in {"mssql", "sqlserver"}:
            raise ConfigurationError("SQL Server connection string must start with mssql://")

        query = parse_qs(parsed.query)
        config = {
            "user": unquote(parsed.username) if parsed.username else None,
            "password": unquote(parsed.password) if parsed.password else None,
            "host": parsed.hostname or "127.0.0.1",
            "port": parsed.port,
            "database": parsed.path.lstrip("/") if parsed.path else None,
            "driver": query.get("driver", ["ODBC Driver 18 for SQL Server"])[0],
            "encrypt": query.get("encrypt", ["no"])[0],
            "trust_server_certificate": query.get("trust_server_certificate", ["yes"])[0],
        }
        return self._build_connection_string({key: value for key, value in config.items() if value is not None})

    def create_connection(self, connection_string: str, connect_timeout_seconds: float | None = None) -> Any:
        pyodbc = self._get_driver()
        odbc = self.odbc_connection_string(connection_string)
        if connect_timeout_seconds is None:
            return pyodbc.connect(odbc, autocommit=True)
        return pyodbc.connect(odbc, autocommit=True, timeout=int(connect_timeout_seconds))

    def begin_statements(self, isolation_level: str | None) -> list[str]:
        statements = []
        if isolation_level:
            statements.append(f"SET TRANSACTION ISOLATION LEVEL {isolation_level}")
        statements.append("BEGIN TRANSACTION")
        return statements

    def commit_transaction(self, connection: Any) -> None:
        self._run(connection, "COMMIT TRANSACTION")

    def rollback_transaction(self, connection: Any) -> None:
        self._run(connection, "IF @@TRANCOUNT > 0 ROLLBACK TRANSACTION")

    def page_sql(self, sql: str, skip: int, take: int) -> str:
        statement = sql.rstrip().rstrip(";")
        if _ORDER_BY not in " ".join(statement.upper().split()):
            statement = f"{statement} ORDER BY (SELECT NULL)"
        return f"{statement} OFFSET {int(skip)} ROWS FETCH NEXT {int(take)} ROWS ONLY"

    def prepare_procedure(self, name: str, parameters: Sequence[ProcedureParameter]) -> ProcedureCall:
        lines = ["SET NOCOUNT ON;", "DECLARE @sqlaccess_rc INT;"]
        params: list[Any] = []
        for parameter in parameters:
            if parameter.is_output:
                lines.append(f"DECLARE @out_{parameter.bare_name} {_sql_type_for(parameter.value)} = ?;")
                params.append(parameter.value)

        arguments = []
        for parameter in parameters:
            if parameter.is_output:
                arguments.append(f"@{parameter.bare_name} = @out_{parameter.bare_name} OUTPUT")
            else:
                arguments.append(f"@{parameter.bare_name} = ?")
                params.append(parameter.value)
        lines.append(f"EXEC @sqlaccess_rc = {name} {', '.join(arguments)};".replace(" ;", ";"))

        selected = ["@sqlaccess_rc"] + [f"@out_{p.bare_name}" for p in parameters if p.is_output]
        lines.append(f"SELECT {', '.join(selected)};")
        return ProcedureCall(
            name=name,
            parameters=tuple(parameters),
            sql="\n".join(lines),
            params=params,
        )

    def run_procedure(self, cursor: Any, call: ProcedureCall) -> StoredProcedureResult:
        cursor.execute(call.sql, call.params)
        # the trailing SELECT is the last result set
        row = None
        while True:
            if cursor.description is not None:
                row = cursor.fetchone()
            if not cursor.nextset():
                break
        if row is None:
            return StoredProcedureResult()
        values = list(row)
        return StoredProcedureResult(
            output_values={p.bare_name: value for p, value in zip(call.outputs, values[1:])},
            return_code=values[0],
        )
