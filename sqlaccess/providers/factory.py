from enum import Enum
from typing import Any, Callable
from urllib.parse import urlparse

from sqlaccess.errors import ConfigurationError
from sqlaccess.providers.base import Provider
from sqlaccess.providers.cockroachdb import CockroachProvider
from sqlaccess.providers.mariadb import MariaDbProvider
from sqlaccess.providers.mssql import MsSqlProvider
from sqlaccess.providers.mysql import MySqlProvider
from sqlaccess.providers.oracle import OracleProvider
from sqlaccess.providers.postgres import PostgresProvider
from sqlaccess.providers.sqlite import SqliteProvider

# ==================================================
# Provider Registry
# ==================================================

ProviderFactory = Callable[[], Provider]


class DbEngine(str, Enum):
    SQLITE = "sqlite"
    POSTGRES = "postgres"
    MYSQL = "mysql"
    MARIADB = "mariadb"
    MSSQL = "mssql"
    ORACLE = "oracle"
    COCKROACHDB = "cockroachdb"


_registry: dict[str, ProviderFactory] = {
    DbEngine.SQLITE.value: SqliteProvider,
    DbEngine.POSTGRES.value: PostgresProvider,
    DbEngine.MYSQL.value: MySqlProvider,
    DbEngine.MARIADB.value: MariaDbProvider,
    DbEngine.MSSQL.value: MsSqlProvider,
    DbEngine.ORACLE.value: OracleProvider,
    DbEngine.COCKROACHDB.value: CockroachProvider,
}

_aliases: dict[str, str] = {
    "sqlite3": "sqlite",
    "postgresql": "postgres",
    "pg": "postgres",
    "sqlserver": "mssql",
    "cockroach": "cockroachdb",
}

_SQLITE_SUFFIXES = (".db", ".sqlite", ".sqlite3")


def _canonical_name(name: str) -> str:
    key = name.strip().lower()
    return _aliases.get(key, key)


def register_provider(name: str, factory: ProviderFactory) -> None:
    """
    Registers (or replaces) the provider resolved for a name.
    """
    if not name or not name.strip():
        raise ValueError("Provider name must not be empty.")
    if not callable(factory):
        raise ValueError("Provider factory must be callable.")
    _registry[_canonical_name(name)] = factory


def registered_providers() -> list[str]:
    return sorted(_registry)


def get_provider(engine: DbEngine) -> Provider:
    return get_provider_by_name(DbEngine(engine).value)


def get_provider_by_name(name: str) -> Provider:
    if not name or not name.strip():
        raise ConfigurationError("Provider name must not be empty.")
    factory = _registry.get(_canonical_name(name))
    if factory is None:
        known = ", ".join(registered_providers())
        raise ConfigurationError(f"Unknown provider '{name}'. Registered providers: {known}.")
    return factory()


def provider_name_from_url(connection_string: str) -> str:
    """
    Infers a provider name from a connection URL scheme or an SQLite file path.
    """
    stripped = connection_string.strip()
    if "://" in stripped:
        scheme = urlparse(stripped).scheme.split("+", 1)[0]
        name = _canonical_name(scheme)
        if name in _registry:
            return name
        raise ConfigurationError(f"Cannot infer a provider from the '{scheme}://' scheme.")
    if stripped == ":memory:" or stripped.lower().endswith(_SQLITE_SUFFIXES):
        return DbEngine.SQLITE.value
    raise ConfigurationError("Cannot infer a provider from the connection string; pass one explicitly.")


def resolve_provider(selector: Any, connection_string: str) -> Provider:
    """
    Resolves a provider from a name, a DbEngine member, a Provider instance,
    or, when selector is None, from the connection string itself.
    """
    if isinstance(selector, Provider):
        return selector
    if isinstance(selector, DbEngine):
        return get_provider(selector)
    if isinstance(selector, str):
        return get_provider_by_name(selector)
    if selector is None:
        return get_provider_by_name(provider_name_from_url(connection_string))
    raise ConfigurationError(f"Unsupported provider selector: {selector!r}.")
