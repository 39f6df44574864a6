from pathlib import Path
from typing import Any
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from sqlaccess.providers.base import NativeTransaction, Provider


class RecordingProvider(Provider):
    """
    Provider double handing out MagicMock connections and counting native
    transaction calls.
    """

    name = "recording"

    def __init__(self) -> None:
        super().__init__()
        self.connections: list[MagicMock] = []
        self.begun: list[str | None] = []
        self.commits = 0
        self.rollbacks = 0
        self.fail_commit: Exception | None = None
        self.fail_begin: Exception | None = None

    def create_connection(self, connection_string: str, connect_timeout_seconds: float | None = None) -> Any:
        connection = MagicMock(name=f"connection{len(self.connections)}")
        self.connections.append(connection)
        return connection

    def begin_transaction(self, connection: Any, isolation_level: str | None = None) -> NativeTransaction:
        if self.fail_begin is not None:
            raise self.fail_begin
        level = self.normalize_isolation_level(isolation_level)
        self.begun.append(level)
        return NativeTransaction(self, connection, level)

    def commit_transaction(self, connection: Any) -> None:
        if self.fail_commit is not None:
            raise self.fail_commit
        self.commits += 1

    def rollback_transaction(self, connection: Any) -> None:
        self.rollbacks += 1


def _test_db_path(prefix: str) -> Path:
    base = Path("static") / "test-sqlite"
    base.mkdir(parents=True, exist_ok=True)
    return base / f"{prefix}_{uuid4().hex}.sqlite"


@pytest.fixture
def provider() -> RecordingProvider:
    return RecordingProvider()


@pytest.fixture
def db_path():
    path = _test_db_path("unit")
    yield path
    if path.exists():
        path.unlink()
