from typing import Any, Sequence
from urllib.parse import unquote, urlparse

from sqlaccess.errors import ConfigurationError
from sqlaccess.providers.base import ProcedureCall, ProcedureParameter, Provider
from sqlaccess.results import StoredProcedureResult

# ==================================================
# MySQL Provider
# ==================================================


def parse_mysql_url(connection_string: str, schemes: set[str], default_port: int = 3306) -> dict[str, Any]:
    parsed = urlparse(connection_string)
    if parsed.scheme not in schemes:
        expected = " or ".join(f"{scheme}://" for scheme in sorted(schemes))
        raise ConfigurationError(f"Connection string must start with {expected}")

    config = {
        "user": unquote(parsed.username) if parsed.username else None,
        "password": unquote(parsed.password) if parsed.password else None,
        "host": parsed.hostname or "127.0.0.1",
        "port": parsed.port or default_port,
        "database": parsed.path.lstrip("/") if parsed.path else None,
    }
    return {key: value for key, value in config.items() if value}


class MySqlProvider(Provider):
    """
    A provider for MySQL using the 'mysql-connector-python' library.
    """

    name = "mysql"
    paramstyle = "format"
    driver_module = "mysql.connector"
    driver_package = "mysql-connector-python"
    identifier_quotes = ("`", "`")

    def create_connection(self, connection_string: str, connect_timeout_seconds: float | None = None) -> Any:
        mysql_connector = self._get_driver()
        kwargs = parse_mysql_url(connection_string, {"mysql"})
        kwargs["autocommit"] = True
        # cursors closed before their rows are read must not fail the connection
        kwargs["consume_results"] = True
        if connect_timeout_seconds is not None:
            kwargs["connection_timeout"] = int(connect_timeout_seconds)
        return mysql_connector.connect(**kwargs)

    def begin_statements(self, isolation_level: str | None) -> list[str]:
        statements = []
        if isolation_level:
            statements.append(f"SET TRANSACTION ISOLATION LEVEL {isolation_level}")
        statements.append("START TRANSACTION")
        return statements

    def page_sql(self, sql: str, skip: int, take: int) -> str:
        return f"{sql.rstrip().rstrip(';')} LIMIT {int(skip)}, {int(take)}"

    def prepare_procedure(self, name: str, parameters: Sequence[ProcedureParameter]) -> ProcedureCall:
        placeholders = ", ".join("%s" for _ in parameters)
        return ProcedureCall(
            name=name,
            parameters=tuple(parameters),
            sql=f"CALL {name}({placeholders})",
            params=[p.value for p in parameters],
        )

    def run_procedure(self, cursor: Any, call: ProcedureCall) -> StoredProcedureResult:
        result_args = cursor.callproc(call.name, call.params)
        # drain result sets produced by the procedure body
        if hasattr(cursor, "stored_results"):
            for result in cursor.stored_results():
                result.fetchall()
        outputs = {}
        for index, parameter in enumerate(call.parameters):
            if parameter.is_output:
                outputs[parameter.bare_name] = result_args[index]
        return StoredProcedureResult(output_values=outputs)
