from datetime import datetime
from decimal import Decimal
from typing import Any, Sequence
from urllib.parse import unquote, urlparse

from sqlaccess.errors import ConfigurationError
from sqlaccess.providers.base import ProcedureCall, ProcedureParameter, Provider
from sqlaccess.results import StoredProcedureResult

# ==================================================
# Oracle Provider
# ==================================================


class OracleProvider(Provider):
    """
    A provider for Oracle using the 'oracledb' library.
    """

    name = "oracle"
    paramstyle = "numeric"
    driver_module = "oracledb"
    driver_package = "oracledb"
    isolation_levels = frozenset({"READ COMMITTED", "SERIALIZABLE"})

    def _parse_connection_info(self, connection_string: str) -> dict[str, Any]:
        parsed = urlparse(connection_string)
        if parsed.scheme != "oracle":
            raise ConfigurationError("Oracle connection string must start with oracle://")

        host = parsed.hostname or "127.0.0.1"
        port = parsed.port or 1521
        service_name = parsed.path.lstrip("/") if parsed.path else ""
        config = {
            "user": unquote(parsed.username) if parsed.username else None,
            "password": unquote(parsed.password) if parsed.password else None,
            "dsn": f"{host}:{port}/{service_name}" if service_name else f"{host}:{port}",
        }
        return {key: value for key, value in config.items() if value is not None}

    def create_connection(self, connection_string: str, connect_timeout_seconds: float | None = None) -> Any:
        oracledb = self._get_driver()
        kwargs = self._parse_connection_info(connection_string)
        if connect_timeout_seconds is not None:
            kwargs["tcp_connect_timeout"] = connect_timeout_seconds
        connection = oracledb.connect(**kwargs)
        connection.autocommit = True
        return connection

    # Oracle starts transactions implicitly; autocommit is switched off for the scope instead.
    def begin_statements(self, isolation_level: str | None) -> list[str]:
        if isolation_level:
            return [f"SET TRANSACTION ISOLATION LEVEL {isolation_level}"]
        return []

    def begin_transaction(self, connection: Any, isolation_level: str | None = None) -> Any:
        connection.autocommit = False
        try:
            return super().begin_transaction(connection, isolation_level)
        except Exception:
            connection.autocommit = True
            raise

    def commit_transaction(self, connection: Any) -> None:
        try:
            connection.commit()
        finally:
            connection.autocommit = True

    def rollback_transaction(self, connection: Any) -> None:
        try:
            connection.rollback()
        finally:
            connection.autocommit = True

    def page_sql(self, sql: str, skip: int, take: int) -> str:
        return f"{sql.rstrip().rstrip(';')} OFFSET {int(skip)} ROWS FETCH NEXT {int(take)} ROWS ONLY"

    def drop_table_sql(self, table: str, if_exists: bool = True) -> str:
        statement = f"DROP TABLE {self.quote_identifier(table)}"
        if not if_exists:
            return statement
        # ORA-00942: table or view does not exist
        return (
            "BEGIN "
            f"EXECUTE IMMEDIATE '{statement.replace(chr(39), chr(39) * 2)}'; "
            "EXCEPTION WHEN OTHERS THEN IF SQLCODE != -942 THEN RAISE; END IF; "
            "END;"
        )

    def _out_type(self, value: Any) -> Any:
        if isinstance(value, bool):
            return bool
        if isinstance(value, int):
            return int
        if isinstance(value, (float, Decimal)):
            return float
        if isinstance(value, datetime):
            return datetime
        return str

    def prepare_procedure(self, name: str, parameters: Sequence[ProcedureParameter]) -> ProcedureCall:
        placeholders = ", ".join(f":{index + 1}" for index in range(len(parameters)))
        return ProcedureCall(
            name=name,
            parameters=tuple(parameters),
            sql=f"BEGIN {name}({placeholders}); END;",
            params=[p.value for p in parameters],
        )

    def run_procedure(self, cursor: Any, call: ProcedureCall) -> StoredProcedureResult:
        arguments: list[Any] = []
        variables = {}
        for parameter in call.parameters:
            if parameter.is_output:
                variable = cursor.var(self._out_type(parameter.value))
                if parameter.value is not None:
                    variable.setvalue(0, parameter.value)
                variables[parameter.bare_name] = variable
                arguments.append(variable)
            else:
                arguments.append(parameter.value)
        cursor.callproc(call.name, arguments)
        return StoredProcedureResult(
            output_values={name: variable.getvalue() for name, variable in variables.items()},
        )
