from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from sqlaccess.errors import ConfigurationError, UnsupportedOperationError
from sqlaccess.providers import factory
from sqlaccess.providers.base import ProcedureParameter
from sqlaccess.providers.cockroachdb import CockroachProvider
from sqlaccess.providers.factory import (
    DbEngine,
    get_provider,
    get_provider_by_name,
    provider_name_from_url,
    register_provider,
    resolve_provider,
)
from sqlaccess.providers.mariadb import MariaDbProvider
from sqlaccess.providers.mssql import MsSqlProvider
from sqlaccess.providers.mysql import MySqlProvider, parse_mysql_url
from sqlaccess.providers.oracle import OracleProvider
from sqlaccess.providers.postgres import PostgresProvider
from sqlaccess.providers.sqlite import SqliteProvider

# ==================================================
# Registry
# ==================================================


@pytest.mark.parametrize(
    "name, expected",
    [
        ("sqlite", SqliteProvider),
        ("SQLite3", SqliteProvider),
        ("postgresql", PostgresProvider),
        ("pg", PostgresProvider),
        ("mysql", MySqlProvider),
        ("mariadb", MariaDbProvider),
        ("sqlserver", MsSqlProvider),
        ("oracle", OracleProvider),
        ("cockroach", CockroachProvider),
    ],
)
def test_get_provider_by_name(name, expected) -> None:
    assert type(get_provider_by_name(name)) is expected


def test_get_provider_by_engine() -> None:
    assert isinstance(get_provider(DbEngine.MSSQL), MsSqlProvider)
    assert isinstance(resolve_provider(DbEngine.ORACLE, "x"), OracleProvider)


def test_each_lookup_returns_a_fresh_provider() -> None:
    assert get_provider_by_name("sqlite") is not get_provider_by_name("sqlite")


@pytest.mark.parametrize(
    "connection_string, expected",
    [
        ("postgresql://u@h/db", "postgres"),
        ("postgresql+psycopg://u@h/db", "postgres"),
        ("mysql://root@localhost/app", "mysql"),
        ("mariadb://root@localhost/app", "mariadb"),
        ("mssql://sa@localhost/master", "mssql"),
        ("oracle://system@localhost/XEPDB1", "oracle"),
        ("cockroachdb://root@localhost:26257/app", "cockroachdb"),
        ("sqlite:///app.db", "sqlite"),
        (":memory:", "sqlite"),
        ("data/app.sqlite", "sqlite"),
    ],
)
def test_provider_name_from_url(connection_string, expected) -> None:
    assert provider_name_from_url(connection_string) == expected


def test_provider_name_from_unknown_scheme_raises() -> None:
    with pytest.raises(ConfigurationError, match="redis"):
        provider_name_from_url("redis://localhost")


def test_register_provider_adds_a_name(monkeypatch) -> None:
    monkeypatch.setattr(factory, "_registry", dict(factory._registry))

    class DuckProvider(SqliteProvider):
        name = "duck"

    register_provider("Duck", DuckProvider)

    assert isinstance(get_provider_by_name("duck"), DuckProvider)
    assert provider_name_from_url("duck://file") == "duck"


def test_register_provider_validates_arguments() -> None:
    with pytest.raises(ValueError):
        register_provider("", SqliteProvider)
    with pytest.raises(ValueError):
        register_provider("x", "not-callable")


# ==================================================
# Drivers
# ==================================================


def test_missing_driver_raises_configuration_error() -> None:
    provider = PostgresProvider()
    with patch("sqlaccess.providers.base.importlib.import_module", side_effect=ImportError("nope")):
        with pytest.raises(ConfigurationError, match="pip install psycopg"):
            provider.create_connection("postgresql://u@h/db")


def test_driver_is_imported_once() -> None:
    provider = MsSqlProvider()
    driver = MagicMock()
    with patch("sqlaccess.providers.base.importlib.import_module", return_value=driver) as import_module:
        provider.create_connection("DRIVER={x};SERVER=h")
        provider.create_connection("DRIVER={x};SERVER=h", 5)

    import_module.assert_called_once_with("pyodbc")
    driver.connect.assert_any_call("DRIVER={x};SERVER=h", autocommit=True)
    driver.connect.assert_any_call("DRIVER={x};SERVER=h", autocommit=True, timeout=5)


def test_postgres_connects_in_autocommit_mode() -> None:
    provider = PostgresProvider()
    driver = MagicMock()
    with patch.object(provider, "_get_driver", return_value=driver):
        provider.create_connection("postgresql://u@h/db", 2.5)

    driver.connect.assert_called_once_with("postgresql://u@h/db", autocommit=True, connect_timeout=2)


def test_cockroach_rewrites_scheme() -> None:
    provider = CockroachProvider()
    driver = MagicMock()
    with patch.object(provider, "_get_driver", return_value=driver):
        provider.create_connection("cockroachdb://root@localhost:26257/app")

    driver.connect.assert_called_once_with("postgresql://root@localhost:26257/app", autocommit=True)


def test_mysql_connection_kwargs() -> None:
    provider = MySqlProvider()
    driver = MagicMock()
    with patch.object(provider, "_get_driver", return_value=driver):
        provider.create_connection("mysql://root:p%40ss@db:3307/app", 3)

    driver.connect.assert_called_once_with(
        user="root",
        password="p@ss",
        host="db",
        port=3307,
        database="app",
        autocommit=True,
        consume_results=True,
        connection_timeout=3,
    )


def test_parse_mysql_url_rejects_other_schemes() -> None:
    assert parse_mysql_url("mysql://localhost", {"mysql"}) == {"host": "localhost", "port": 3306}
    with pytest.raises(ConfigurationError, match="mysql://"):
        parse_mysql_url("postgresql://localhost", {"mysql"})


def test_oracle_connection_sets_autocommit() -> None:
    provider = OracleProvider()
    driver = MagicMock()
    with patch.object(provider, "_get_driver", return_value=driver):
        connection = provider.create_connection("oracle://system:pw@db/XEPDB1", 4)

    driver.connect.assert_called_once_with(user="system", password="pw", dsn="db:1521/XEPDB1", tcp_connect_timeout=4)
    assert connection.autocommit is True


def test_sqlite_strips_url_prefix() -> None:
    provider = SqliteProvider()
    assert provider.database_path("sqlite:///data/app.db") == "data/app.db"
    assert provider.database_path("sqlite://") == ":memory:"
    assert provider.database_path("app.db") == "app.db"


def test_mssql_url_becomes_odbc_string() -> None:
    odbc = MsSqlProvider().odbc_connection_string("mssql://sa:secret@db:1433/master?encrypt=yes")
    assert odbc == (
        "DRIVER={ODBC Driver 18 for SQL Server};SERVER=db,1433;DATABASE=master;"
        "UID=sa;PWD=secret;Encrypt=yes;TrustServerCertificate=yes"
    )


# ==================================================
# Transactions
# ==================================================


def _cursor_log(connection: MagicMock) -> list[str]:
    return [c.args[0] for c in connection.cursor.return_value.execute.call_args_list]


@pytest.mark.parametrize(
    "provider, level, expected",
    [
        (PostgresProvider(), "serializable", ["BEGIN ISOLATION LEVEL SERIALIZABLE"]),
        (SqliteProvider(), "immediate", ["BEGIN IMMEDIATE"]),
        (MySqlProvider(), "read_committed", ["SET TRANSACTION ISOLATION LEVEL READ COMMITTED", "START TRANSACTION"]),
        (MsSqlProvider(), "snapshot", ["SET TRANSACTION ISOLATION LEVEL SNAPSHOT", "BEGIN TRANSACTION"]),
        (PostgresProvider(), None, ["BEGIN"]),
    ],
)
def test_begin_statements(provider, level, expected) -> None:
    connection = MagicMock()
    native = provider.begin_transaction(connection, level)

    assert _cursor_log(connection) == expected
    assert native.connection is connection


def test_native_transaction_commit_and_rollback() -> None:
    connection = MagicMock()
    native = MsSqlProvider().begin_transaction(connection)
    native.commit()
    native.rollback()

    assert _cursor_log(connection) == [
        "BEGIN TRANSACTION",
        "COMMIT TRANSACTION",
        "IF @@TRANCOUNT > 0 ROLLBACK TRANSACTION",
    ]


def test_oracle_toggles_autocommit_for_transactions() -> None:
    connection = MagicMock()
    provider = OracleProvider()

    native = provider.begin_transaction(connection, "SERIALIZABLE")
    assert connection.autocommit is False
    assert _cursor_log(connection) == ["SET TRANSACTION ISOLATION LEVEL SERIALIZABLE"]

    native.commit()
    connection.commit.assert_called_once()
    assert connection.autocommit is True


def test_invalid_isolation_level_lists_allowed_levels() -> None:
    with pytest.raises(ValueError, match="SERIALIZABLE"):
        CockroachProvider().normalize_isolation_level("repeatable read")


# ==================================================
# Statement Shaping
# ==================================================


def test_count_sql_strips_trailing_order_by() -> None:
    provider = PostgresProvider()
    assert provider.count_sql("SELECT id FROM t WHERE x = %s ORDER BY id DESC;") == (
        "SELECT COUNT(*) FROM (SELECT id FROM t WHERE x = %s) sqlaccess_count"
    )
    assert provider.count_sql("SELECT * FROM (SELECT id FROM t ORDER BY id) s") == (
        "SELECT COUNT(*) FROM (SELECT * FROM (SELECT id FROM t ORDER BY id) s) sqlaccess_count"
    )


@pytest.mark.parametrize(
    "provider, expected",
    [
        (SqliteProvider(), "SELECT id FROM t ORDER BY id LIMIT 10 OFFSET 20"),
        (PostgresProvider(), "SELECT id FROM t ORDER BY id LIMIT 10 OFFSET 20"),
        (MySqlProvider(), "SELECT id FROM t ORDER BY id LIMIT 20, 10"),
        (MsSqlProvider(), "SELECT id FROM t ORDER BY id OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY"),
        (OracleProvider(), "SELECT id FROM t ORDER BY id OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY"),
    ],
)
def test_page_sql(provider, expected) -> None:
    assert provider.page_sql("SELECT id FROM t ORDER BY id", 20, 10) == expected


def test_mssql_page_sql_adds_order_by_when_missing() -> None:
    assert MsSqlProvider().page_sql("SELECT id FROM t", 0, 5) == (
        "SELECT id FROM t ORDER BY (SELECT NULL) OFFSET 0 ROWS FETCH NEXT 5 ROWS ONLY"
    )


def test_identifier_quoting() -> None:
    assert PostgresProvider().quote_identifier('public.my"table') == '"public"."my""table"'
    assert MySqlProvider().quote_identifier("app.orders") == "`app`.`orders`"
    assert MsSqlProvider().quote_identifier("dbo.odd]name") == "[dbo].[odd]]name]"


def test_table_tool_sql() -> None:
    assert SqliteProvider().truncate_sql("t") == 'DELETE FROM "t"'
    assert PostgresProvider().truncate_sql("t") == 'TRUNCATE TABLE "t"'
    assert MySqlProvider().drop_table_sql("t", if_exists=False) == "DROP TABLE `t`"
    oracle = OracleProvider().drop_table_sql("t")
    assert "EXECUTE IMMEDIATE 'DROP TABLE \"t\"'" in oracle
    assert "-942" in oracle


# ==================================================
# Stored Procedures
# ==================================================

PARAMETERS = [ProcedureParameter("customer_id", 7), ProcedureParameter("_total", 0)]


def test_sqlite_has_no_procedures() -> None:
    with pytest.raises(UnsupportedOperationError):
        SqliteProvider().prepare_procedure("p", PARAMETERS)


def test_procedure_parameter_prefix() -> None:
    assert PARAMETERS[1].is_output
    assert PARAMETERS[1].bare_name == "total"
    assert PARAMETERS[0].bare_name == "customer_id"


def test_postgres_procedure_reads_inout_row() -> None:
    provider = PostgresProvider()
    call = provider.prepare_procedure("order_total", PARAMETERS)
    cursor = MagicMock()
    cursor.description = [("total",)]
    cursor.fetchone.return_value = (125,)

    result = provider.run_procedure(cursor, call)

    assert call.sql == "CALL order_total(%s, %s)"
    cursor.execute.assert_called_once_with("CALL order_total(%s, %s)", [7, 0])
    assert result["total"] == 125
    assert result.return_code is None


def test_mysql_procedure_reads_callproc_result() -> None:
    provider = MySqlProvider()
    call = provider.prepare_procedure("order_total", PARAMETERS)
    cursor = MagicMock()
    cursor.callproc.return_value = (7, 99)
    cursor.stored_results.return_value = [MagicMock()]

    result = provider.run_procedure(cursor, call)

    cursor.callproc.assert_called_once_with("order_total", [7, 0])
    assert result.output_values == {"total": 99}


def test_mariadb_procedure_uses_session_variables() -> None:
    provider = MariaDbProvider()
    call = provider.prepare_procedure("order_total", PARAMETERS)
    cursor = MagicMock()
    cursor.nextset.return_value = False
    cursor.fetchone.return_value = (42,)

    result = provider.run_procedure(cursor, call)

    assert call.sql == "CALL order_total(?, @sqlaccess_total)"
    assert [c.args[0] for c in cursor.execute.call_args_list] == [
        "SET @sqlaccess_total = ?",
        "CALL order_total(?, @sqlaccess_total)",
        "SELECT @sqlaccess_total",
    ]
    assert result["total"] == 42


def test_mssql_procedure_returns_outputs_and_return_code() -> None:
    provider = MsSqlProvider()
    call = provider.prepare_procedure("dbo.order_total", PARAMETERS)
    cursor = MagicMock()
    cursor.description = [("rc",), ("total",)]
    cursor.fetchone.return_value = (0, 310)
    cursor.nextset.return_value = False

    result = provider.run_procedure(cursor, call)

    assert "DECLARE @out_total BIGINT = ?;" in call.sql
    assert "EXEC @sqlaccess_rc = dbo.order_total @customer_id = ?, @total = @out_total OUTPUT;" in call.sql
    assert call.params == [0, 7]
    assert result.return_code == 0
    assert result.output_values == {"total": 310}


def test_oracle_procedure_binds_output_variables() -> None:
    provider = OracleProvider()
    parameters = [ProcedureParameter("id", 1), ProcedureParameter("_changed", datetime(2024, 1, 1))]
    call = provider.prepare_procedure("touch_order", parameters)
    cursor = MagicMock()
    variable = cursor.var.return_value
    variable.getvalue.return_value = datetime(2024, 2, 2)

    result = provider.run_procedure(cursor, call)

    cursor.var.assert_called_once_with(datetime)
    variable.setvalue.assert_called_once_with(0, datetime(2024, 1, 1))
    cursor.callproc.assert_called_once_with("touch_order", [1, variable])
    assert result["changed"] == datetime(2024, 2, 2)
