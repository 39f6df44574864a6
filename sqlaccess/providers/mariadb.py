from typing import Any, Sequence

from sqlaccess.providers.base import ProcedureCall, ProcedureParameter
from sqlaccess.providers.mysql import MySqlProvider, parse_mysql_url
from sqlaccess.results import StoredProcedureResult

# ==================================================
# MariaDB Provider
# ==================================================


class MariaDbProvider(MySqlProvider):
    """
    A provider for MariaDB using the 'mariadb' connector library.
    Output parameters travel through session variables.
    """

    name = "mariadb"
    paramstyle = "qmark"
    driver_module = "mariadb"
    driver_package = "mariadb"

    def create_connection(self, connection_string: str, connect_timeout_seconds: float | None = None) -> Any:
        mariadb = self._get_driver()
        kwargs = parse_mysql_url(connection_string, {"mariadb", "mysql"})
        kwargs["autocommit"] = True
        if connect_timeout_seconds is not None:
            kwargs["connect_timeout"] = int(connect_timeout_seconds)
        return mariadb.connect(**kwargs)

    def _variable(self, parameter: ProcedureParameter) -> str:
        return f"@sqlaccess_{parameter.bare_name}"

    def prepare_procedure(self, name: str, parameters: Sequence[ProcedureParameter]) -> ProcedureCall:
        arguments = []
        params = []
        for parameter in parameters:
            if parameter.is_output:
                arguments.append(self._variable(parameter))
            else:
                arguments.append("?")
                params.append(parameter.value)
        return ProcedureCall(
            name=name,
            parameters=tuple(parameters),
            sql=f"CALL {name}({', '.join(arguments)})",
            params=params,
        )

    def run_procedure(self, cursor: Any, call: ProcedureCall) -> StoredProcedureResult:
        outputs = call.outputs
        for parameter in outputs:
            cursor.execute(f"SET {self._variable(parameter)} = ?", [parameter.value])
        cursor.execute(call.sql, call.params)
        if not outputs:
            return StoredProcedureResult()
        while cursor.nextset():
            pass
        cursor.execute("SELECT " + ", ".join(self._variable(p) for p in outputs))
        row = cursor.fetchone()
        return StoredProcedureResult(
            output_values={p.bare_name: value for p, value in zip(outputs, row)},
        )
