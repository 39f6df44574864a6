import logging
from pathlib import Path

from sqlaccess import Database, ObservabilitySettings, QueryObservation, compose_event_observers, make_json_event_logger


def log_query(event: QueryObservation) -> None:
    print(
        f"[{event.provider}] op={event.operation} success={event.succeeded} "
        f"duration_ms={event.duration_ms:.2f} params={event.param_count} metadata={dict(event.metadata)}"
    )


Path("static", "test-sqlite").mkdir(parents=True, exist_ok=True)
logging.basicConfig(level=logging.INFO, format="%(message)s")
event_logger = make_json_event_logger(logger=logging.getLogger("sqlaccess.events"))
lifecycle: list[str] = []

with Database(
    "sqlite:///static/test-sqlite/db.sqlite",
    observability_settings=ObservabilitySettings(
        query_observer=log_query,
        event_observer=compose_event_observers(event_logger, lambda event: lifecycle.append(event.event)),
        metadata={"service": "sqlaccess-sample"},
    ),
) as db:
    db.execute("CREATE TABLE IF NOT EXISTS users (id INTEGER PRIMARY KEY, name TEXT)")
    db.execute("INSERT OR REPLACE INTO users (id, name) VALUES (@0, @1)", 1, "Alice")
    rows = db.fetch_all("SELECT id, name FROM users ORDER BY id")
    print(rows)

print(lifecycle)
