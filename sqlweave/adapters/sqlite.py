"""SQLite adapter using aiosqlite."""

from __future__ import annotations

import uuid
from typing import Any

from sqlweave.adapters.protocol import QueryMetadata
from sqlweave.core.config import ConnectionConfig, ReplicaConfig
from sqlweave.core.exceptions import BackendError, ForeignKeyConstraintError, UniqueConstraintError


class SqliteAdapter:
    """Asynchronous SQLite adapter using aiosqlite.

    Connections to ``:memory:`` open one shared-cache database per adapter,
    so every pooled connection of an engine sees the same tables.
    """

    def __init__(self) -> None:
        self.memory_uri = f"file:sqlweave-{uuid.uuid4().hex}?mode=memory&cache=shared"

    @property
    def paramstyle(self) -> str:
        return "qmark"

    async def connect(
        self, config: ConnectionConfig, replica: ReplicaConfig | None = None
    ) -> Any:
        """Open a connection with explicit transaction control and FK enforcement."""
        import aiosqlite

        storage = config.sqlite_storage()
        # isolation_level=None: the engine issues BEGIN/COMMIT itself
        if storage == ":memory:":
            conn = await aiosqlite.connect(self.memory_uri, uri=True, isolation_level=None)
        else:
            conn = await aiosqlite.connect(storage, isolation_level=None)
            await conn.execute("PRAGMA journal_mode=WAL")
        conn.row_factory = aiosqlite.Row
        if config.dialect_options.get("foreign_keys", True):
            await conn.execute("PRAGMA foreign_keys = ON")
        return conn

    async def close(self, connection: Any) -> None:
        await connection.close()

    async def execute(
        self,
        connection: Any,
        sql: str,
        params: list[Any] | None = None,
    ) -> tuple[list[dict[str, Any]], QueryMetadata]:
        """Execute SQL and return row dicts."""
        cursor = await connection.execute(sql, params or ())
        try:
            columns = [desc[0] for desc in cursor.description or ()]
            rows = [dict(row) for row in await cursor.fetchall()] if columns else []
            return rows, QueryMetadata(
                rowcount=cursor.rowcount,
                lastrowid=cursor.lastrowid,
                columns=columns,
            )
        finally:
            await cursor.close()

    def format_error(
        self, error: BaseException, sql: str, params: list[Any] | None
    ) -> BackendError:
        message = str(error)
        if "UNIQUE constraint failed" in message:
            cls: type[BackendError] = UniqueConstraintError
        elif "FOREIGN KEY constraint failed" in message:
            cls = ForeignKeyConstraintError
        else:
            cls = BackendError
        return cls(message, sql=sql, parameters=params, original=error)
