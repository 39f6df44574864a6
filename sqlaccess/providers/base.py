from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import importlib
import re
from typing import Any, Sequence

from sqlaccess.errors import ConfigurationError, UnsupportedOperationError
from sqlaccess.results import StoredProcedureResult

# ==================================================
# Provider Types
# ==================================================

ANSI_ISOLATION_LEVELS = frozenset(
    {"READ UNCOMMITTED", "READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE"}
)

OUTPUT_PARAMETER_PREFIX = "_"

_TRAILING_ORDER_BY = re.compile(r"\s+order\s+by\s+[^)]*$", re.IGNORECASE)


@dataclass(frozen=True)
class ProcedureParameter:
    """
    A stored procedure argument bound by name.
    Names starting with OUTPUT_PARAMETER_PREFIX are output parameters.
    """

    name: str
    value: Any = None

    @property
    def is_output(self) -> bool:
        return self.name.startswith(OUTPUT_PARAMETER_PREFIX)

    @property
    def bare_name(self) -> str:
        if self.is_output:
            return self.name[len(OUTPUT_PARAMETER_PREFIX):]
        return self.name


@dataclass(frozen=True)
class ProcedureCall:
    """
    A stored procedure invocation prepared by a provider.
    """

    name: str
    parameters: tuple[ProcedureParameter, ...]
    sql: str
    params: list[Any] = field(default_factory=list)

    @property
    def outputs(self) -> tuple[ProcedureParameter, ...]:
        return tuple(p for p in self.parameters if p.is_output)


class NativeTransaction:
    """
    The single driver-level transaction behind a nested transaction scope.
    """

    def __init__(self, provider: "Provider", connection: Any, isolation_level: str | None) -> None:
        self.provider = provider
        self.connection = connection
        self.isolation_level = isolation_level

    def commit(self) -> None:
        self.provider.commit_transaction(self.connection)

    def rollback(self) -> None:
        self.provider.rollback_transaction(self.connection)


# ==================================================
# Base Provider
# ==================================================


class Provider(ABC):
    """
    Abstract base class resolving a backend into native DB-API connections
    and the dialect details a Database needs.
    """

    name: str = "unknown"
    paramstyle: str = "qmark"
    driver_module: str | None = None
    driver_package: str | None = None
    isolation_levels: frozenset[str] = ANSI_ISOLATION_LEVELS
    identifier_quotes: tuple[str, str] = ('"', '"')

    def __init__(self) -> None:
        self._driver: Any | None = None

    @abstractmethod
    def create_connection(self, connection_string: str, connect_timeout_seconds: float | None = None) -> Any:
        """
        Opens a native connection in autocommit mode.
        """
        pass

    def get_tools(self, db: Any) -> "DatabaseTools":
        return DatabaseTools(db, self)

    def _get_driver(self) -> Any:
        if self._driver is None:
            if self.driver_module is None:
                raise ConfigurationError(f"{self.__class__.__name__} does not declare a driver module.")
            try:
                self._driver = importlib.import_module(self.driver_module)
            except ImportError as exc:
                raise ConfigurationError(
                    f"The '{self.driver_package}' library is required for {self.__class__.__name__}. "
                    f"Install it with 'pip install {self.driver_package}'."
                ) from exc
        return self._driver

    # ==================================================
    # Transactions
    # ==================================================

    def normalize_isolation_level(self, isolation_level: str | None) -> str | None:
        if not isolation_level:
            return None
        normalized = " ".join(isolation_level.replace("_", " ").upper().split())
        if normalized not in self.isolation_levels:
            allowed = ", ".join(sorted(self.isolation_levels))
            raise ValueError(f"{self.name} isolation_level must be one of: {allowed}.")
        return normalized

    def begin_statements(self, isolation_level: str | None) -> list[str]:
        if isolation_level:
            return [f"BEGIN ISOLATION LEVEL {isolation_level}"]
        return ["BEGIN"]

    def begin_transaction(self, connection: Any, isolation_level: str | None = None) -> NativeTransaction:
        level = self.normalize_isolation_level(isolation_level)
        for statement in self.begin_statements(level):
            self._run(connection, statement)
        return NativeTransaction(self, connection, level)

    def commit_transaction(self, connection: Any) -> None:
        self._run(connection, "COMMIT")

    def rollback_transaction(self, connection: Any) -> None:
        self._run(connection, "ROLLBACK")

    def _run(self, connection: Any, sql: str) -> None:
        cursor = connection.cursor()
        try:
            cursor.execute(sql)
        finally:
            cursor.close()

    # ==================================================
    # Statement Shaping
    # ==================================================

    def placeholder(self, index: int) -> str:
        if self.paramstyle == "format":
            return "%s"
        if self.paramstyle == "numeric":
            return f":{index + 1}"
        return "?"

    def strip_order_by(self, sql: str) -> str:
        return _TRAILING_ORDER_BY.sub("", sql.rstrip().rstrip(";"))

    def page_sql(self, sql: str, skip: int, take: int) -> str:
        return f"{sql.rstrip().rstrip(';')} LIMIT {int(take)} OFFSET {int(skip)}"

    def count_sql(self, sql: str) -> str:
        return f"SELECT COUNT(*) FROM ({self.strip_order_by(sql)}) sqlaccess_count"

    def quote_identifier(self, name: str) -> str:
        opening, closing = self.identifier_quotes
        parts = []
        for part in name.split("."):
            escaped = part.replace(closing, closing * 2)
            parts.append(f"{opening}{escaped}{closing}")
        return ".".join(parts)

    def truncate_sql(self, table: str) -> str:
        return f"TRUNCATE TABLE {self.quote_identifier(table)}"

    def drop_table_sql(self, table: str, if_exists: bool = True) -> str:
        if if_exists:
            return f"DROP TABLE IF EXISTS {self.quote_identifier(table)}"
        return f"DROP TABLE {self.quote_identifier(table)}"

    # ==================================================
    # Stored Procedures
    # ==================================================

    def prepare_procedure(self, name: str, parameters: Sequence[ProcedureParameter]) -> ProcedureCall:
        raise UnsupportedOperationError(f"{self.name} does not support stored procedures.")

    def run_procedure(self, cursor: Any, call: ProcedureCall) -> StoredProcedureResult:
        raise UnsupportedOperationError(f"{self.name} does not support stored procedures.")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


# ==================================================
# Database Tools
# ==================================================


class DatabaseTools:
    """
    Provider-specific table utilities bound to a Database.
    """

    def __init__(self, db: Any, provider: Provider) -> None:
        self.db = db
        self.provider = provider

    def quote_identifier(self, name: str) -> str:
        return self.provider.quote_identifier(name)

    def truncate_table(self, table: str) -> None:
        self.db.execute(self.provider.truncate_sql(table))

    def drop_table(self, table: str, if_exists: bool = True) -> None:
        self.db.execute(self.provider.drop_table_sql(table, if_exists=if_exists))
