from typing import Any, Sequence

from sqlaccess.providers.base import ProcedureCall, ProcedureParameter, Provider
from sqlaccess.results import StoredProcedureResult

# ==================================================
# PostgreSQL Provider
# ==================================================


class PostgresProvider(Provider):
    """
    A provider for PostgreSQL using the 'psycopg' library.
    """

    name = "postgres"
    paramstyle = "format"
    driver_module = "psycopg"
    driver_package = "psycopg[binary]"

    def conninfo(self, connection_string: str) -> str:
        return connection_string

    def create_connection(self, connection_string: str, connect_timeout_seconds: float | None = None) -> Any:
        psycopg = self._get_driver()
        conninfo = self.conninfo(connection_string)
        if connect_timeout_seconds is None:
            return psycopg.connect(conninfo, autocommit=True)
        return psycopg.connect(conninfo, autocommit=True, connect_timeout=int(connect_timeout_seconds))

    def prepare_procedure(self, name: str, parameters: Sequence[ProcedureParameter]) -> ProcedureCall:
        placeholders = ", ".join("%s" for _ in parameters)
        return ProcedureCall(
            name=name,
            parameters=tuple(parameters),
            sql=f"CALL {name}({placeholders})",
            params=[p.value for p in parameters],
        )

    def run_procedure(self, cursor: Any, call: ProcedureCall) -> StoredProcedureResult:
        cursor.execute(call.sql, call.params)
        outputs = call.outputs
        if not outputs or cursor.description is None:
            return StoredProcedureResult(output_values={p.bare_name: p.value for p in outputs})
        # INOUT values come back as a single row, in declaration order
        row = cursor.fetchone()
        values = list(row) if row is not None else [None] * len(outputs)
        return StoredProcedureResult(
            output_values={p.bare_name: value for p, value in zip(outputs, values)},
        )
