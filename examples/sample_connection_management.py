from pathlib import Path

from sqlaccess import ConnectionDescriptor, Database


def main() -> None:
    db_dir = Path("static") / "test-sqlite"
    db_dir.mkdir(parents=True, exist_ok=True)
    db_path = db_dir / "connection_management_example.sqlite"

    # Lifecycle control with context manager + connect timeout.
    with Database(f"sqlite:///{db_path}", connect_timeout_seconds=3.0) as db:
        db.execute("CREATE TABLE IF NOT EXISTS users (id INTEGER PRIMARY KEY, name TEXT)")
        db.execute("INSERT OR REPLACE INTO users (id, name) VALUES (@0, @1)", 1, "Alice")
        print("connection open between statements:", db.is_open)
        rows = db.fetch_all("SELECT id, name FROM users")
        print("context-managed rows:", rows)

    # Settings from the environment (and an optional .env file).
    descriptor = ConnectionDescriptor.from_mapping(
        {
            "DATABASE_URL": f"sqlite:///{db_path}",
            "DATABASE_KEEP_ALIVE": "true",
        }
    )
    kept = Database.from_descriptor(descriptor)
    kept.hooks.on_open_connection = lambda _db: print("opened connection")
    kept.hooks.on_close_connection = lambda _db: print("closed connection")

    print("count:", kept.fetch_value("SELECT COUNT(*) FROM users"))
    print("names:", kept.fetch_all("SELECT name FROM users", as_type=str))
    kept.close()


if __name__ == "__main__":
    main()
