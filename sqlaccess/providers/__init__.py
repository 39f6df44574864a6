from sqlaccess.providers.base import (
    DatabaseTools,
    NativeTransaction,
    ProcedureCall,
    ProcedureParameter,
    Provider,
)
from sqlaccess.providers.sqlite import SqliteProvider
from sqlaccess.providers.postgres import PostgresProvider
from sqlaccess.providers.cockroachdb import CockroachProvider
from sqlaccess.providers.mysql import MySqlProvider
from sqlaccess.providers.mariadb import MariaDbProvider
from sqlaccess.providers.mssql import MsSqlProvider
from sqlaccess.providers.oracle import OracleProvider
from sqlaccess.providers.factory import (
    DbEngine,
    get_provider,
    get_provider_by_name,
    provider_name_from_url,
    register_provider,
    registered_providers,
    resolve_provider,
)

__all__ = [
    "Provider",
    "NativeTransaction",
    "DatabaseTools",
    "ProcedureCall",
    "ProcedureParameter",
    "SqliteProvider",
    "PostgresProvider",
    "CockroachProvider",
    "MySqlProvider",
    "MariaDbProvider",
    "MsSqlProvider",
    "OracleProvider",
    "DbEngine",
    "get_provider",
    "get_provider_by_name",
    "provider_name_from_url",
    "register_provider",
    "registered_providers",
    "resolve_provider",
]
