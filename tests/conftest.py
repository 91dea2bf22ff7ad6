"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from sqlweave.adapters.protocol import QueryMetadata
from sqlweave.core.config import ConnectionConfig
from sqlweave.core.context import uninstall_ambient_context
from sqlweave.core.engine import Engine
from sqlweave.core.exceptions import BackendError


class FakeConnection:
    def __init__(self, number: int) -> None:
        self.number = number
        self.closed = False

    def __repr__(self) -> str:
        return f"FakeConnection({self.number})"


class RecordingAdapter:
    """In-memory adapter that records every statement it is given.

    ``failures`` holds exceptions raised (in order) by the next executions;
    ``rows`` maps exact SQL text to the rows returned for it.
    """

    paramstyle = "qmark"

    def __init__(self) -> None:
        self.executed: list[tuple[FakeConnection, str, list[Any] | None]] = []
        self.failures: list[BaseException] = []
        self.rows: dict[str, list[dict[str, Any]]] = {}
        self.opened: list[FakeConnection] = []

    @property
    def statements(self) -> list[str]:
        return [sql for _, sql, _ in self.executed]

    async def connect(self, config: ConnectionConfig, replica: Any = None) -> FakeConnection:
        connection = FakeConnection(len(self.opened) + 1)
        self.opened.append(connection)
        return connection

    async def close(self, connection: FakeConnection) -> None:
        connection.closed = True

    async def execute(
        self, connection: FakeConnection, sql: str, params: list[Any] | None = None
    ) -> tuple[list[dict[str, Any]], QueryMetadata]:
        self.executed.append((connection, sql, params))
        if self.failures:
            raise self.failures.pop(0)
        rows = self.rows.get(sql, [])
        columns = list(rows[0]) if rows else []
        return [dict(row) for row in rows], QueryMetadata(rowcount=len(rows), columns=columns)

    def format_error(
        self, error: BaseException, sql: str, params: list[Any] | None
    ) -> BackendError:
        return BackendError(str(error), sql=sql, parameters=params, original=error)


@pytest.fixture(autouse=True)
def _reset_ambient_context():
    yield
    uninstall_ambient_context()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """SQLite database file, so the tests can inspect it after the engine closes."""
    return tmp_path / "test.db"


@pytest.fixture
def sqlite_config(db_path: Path) -> ConnectionConfig:
    return ConnectionConfig(dialect="sqlite", storage=str(db_path), database="test")


@pytest.fixture
async def engine(sqlite_config: ConnectionConfig):
    """Engine on a real SQLite file."""
    eng = Engine(sqlite_config)
    yield eng
    await eng.close()


@pytest.fixture
def adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def make_engine(adapter: RecordingAdapter):
    """Build an engine for *dialect* backed by the recording adapter."""

    def _make(dialect: str = "postgres", **fields: Any) -> Engine:
        fields.setdefault("retry", {"backoff_base": 0})
        return Engine(dialect=dialect, database="app", adapter=adapter, **fields)

    return _make
