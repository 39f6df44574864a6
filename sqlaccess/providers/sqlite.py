from typing import Any

from sqlaccess.providers.base import Provider

# ==================================================
# SQLite Provider
# ==================================================

_SQLITE_PREFIXES = ("sqlite:///", "sqlite://", "sqlite3:///", "sqlite3://")


class SqliteProvider(Provider):
    """
    A provider for SQLite using the standard library 'sqlite3' module.
    """

    name = "sqlite"
    paramstyle = "qmark"
    driver_module = "sqlite3"
    driver_package = "sqlite3"
    isolation_levels = frozenset({"DEFERRED", "IMMEDIATE", "EXCLUSIVE"})

    def database_path(self, connection_string: str) -> str:
        for prefix in _SQLITE_PREFIXES:
            if connection_string.startswith(prefix):
                return connection_string[len(prefix):] or ":memory:"
        return connection_string

    def create_connection(self, connection_string: str, connect_timeout_seconds: float | None = None) -> Any:
        sqlite3 = self._get_driver()
        path = self.database_path(connection_string)
        # isolation_level=None keeps the driver out of transaction management
        if connect_timeout_seconds is None:
            return sqlite3.connect(path, isolation_level=None)
        return sqlite3.connect(path, isolation_level=None, timeout=connect_timeout_seconds)

    def begin_statements(self, isolation_level: str | None) -> list[str]:
        if isolation_level:
            return [f"BEGIN {isolation_level}"]
        return ["BEGIN"]

    def truncate_sql(self, table: str) -> str:
        return f"DELETE FROM {self.quote_identifier(table)}"
