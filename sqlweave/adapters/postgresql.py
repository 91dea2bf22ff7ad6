"""PostgreSQL adapter using psycopg (v3+) async support."""

from __future__ import annotations

from typing import Any

from sqlweave.adapters.protocol import QueryMetadata, target
from sqlweave.core.config import ConnectionConfig, ReplicaConfig
from sqlweave.core.exceptions import BackendError, ForeignKeyConstraintError, UniqueConstraintError

_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"


def _build_conninfo(config: ConnectionConfig, replica: ReplicaConfig | None) -> str:
    """Build a libpq connection string from config fields."""
    resolved = target(config, replica)
    parts: list[str] = []
    if resolved["host"] is not None:
        parts.append(f"host={resolved['host']}")
    if resolved["port"] is not None:
        parts.append(f"port={resolved['port']}")
    if resolved["username"] is not None:
        parts.append(f"user={resolved['username']}")
    if resolved["password"] is not None:
        parts.append(f"password={resolved['password']}")
    if resolved["database"] is not None:
        parts.append(f"dbname={resolved['database']}")
    for key, value in config.dialect_options.items():
        parts.append(f"{key}={value}")
    return " ".join(parts)


class PostgresqlAdapter:
    """Asynchronous PostgreSQL adapter using psycopg (v3+)."""

    @property
    def paramstyle(self) -> str:
        return "format"

    async def connect(
        self, config: ConnectionConfig, replica: ReplicaConfig | None = None
    ) -> Any:
        import psycopg
        import psycopg.rows

        return await psycopg.AsyncConnection.connect(
            _build_conninfo(config, replica),
            autocommit=True,
            row_factory=psycopg.rows.dict_row,
        )

    async def close(self, connection: Any) -> None:
        await connection.close()

    async def execute(
        self,
        connection: Any,
        sql: str,
        params: list[Any] | None = None,
    ) -> tuple[list[dict[str, Any]], QueryMetadata]:
        cursor = await connection.execute(sql, params)
        columns = [desc.name for desc in cursor.description or ()]
        rows = [dict(row) for row in await cursor.fetchall()] if columns else []
        return rows, QueryMetadata(rowcount=cursor.rowcount, columns=columns)

    def format_error(
        self, error: BaseException, sql: str, params: list[Any] | None
    ) -> BackendError:
        sqlstate = getattr(error, "sqlstate", None)
        if sqlstate == _UNIQUE_VIOLATION:
            cls: type[BackendError] = UniqueConstraintError
        elif sqlstate == _FOREIGN_KEY_VIOLATION:
            cls = ForeignKeyConstraintError
        else:
            cls = BackendError
        return cls(str(error), sql=sql, parameters=params, original=error)
