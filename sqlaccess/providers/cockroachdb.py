from sqlaccess.providers.postgres import PostgresProvider

# ==================================================
# CockroachDB Provider
# ==================================================


class CockroachProvider(PostgresProvider):
    """
    A provider for CockroachDB over the PostgreSQL wire protocol using 'psycopg'.
    """

    name = "cockroachdb"
    isolation_levels = frozenset({"READ COMMITTED", "SERIALIZABLE"})

    def conninfo(self, connection_string: str) -> str:
        for scheme in ("cockroachdb://", "cockroach://"):
            if connection_string.startswith(scheme):
                return "postgresql://" + connection_string[len(scheme):]
        return connection_string
