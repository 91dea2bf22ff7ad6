"""MySQL / MariaDB adapter using aiomysql."""

from __future__ import annotations

from typing import Any

from sqlweave.adapters.protocol import QueryMetadata, target
from sqlweave.core.config import ConnectionConfig, ReplicaConfig
from sqlweave.core.exceptions import BackendError, ForeignKeyConstraintError, UniqueConstraintError

_DUPLICATE_ENTRY = 1062
_FOREIGN_KEY_ERRORS = frozenset({1216, 1217, 1451, 1452})


class MysqlAdapter:
    """Asynchronous MySQL adapter using aiomysql."""

    @property
    def paramstyle(self) -> str:
        return "format"

    async def connect(
        self, config: ConnectionConfig, replica: ReplicaConfig | None = None
    ) -> Any:
        import aiomysql

        resolved = target(config, replica)
        return await aiomysql.connect(
            host=resolved["host"],
            port=resolved["port"] or 3306,
            user=resolved["username"],
            password=resolved["password"] or "",
            db=resolved["database"],
            autocommit=True,
            **config.dialect_options,
        )

    async def close(self, connection: Any) -> None:
        await connection.ensure_closed()

    async def execute(
        self,
        connection: Any,
        sql: str,
        params: list[Any] | None = None,
    ) -> tuple[list[dict[str, Any]], QueryMetadata]:
        """Execute SQL with a DictCursor."""
        import aiomysql

        async with connection.cursor(aiomysql.DictCursor) as cursor:
            await cursor.execute(sql, params)
            columns = [desc[0] for desc in cursor.description or ()]
            rows = [dict(row) for row in await cursor.fetchall()] if columns else []
            return rows, QueryMetadata(
                rowcount=cursor.rowcount,
                lastrowid=cursor.lastrowid,
                columns=columns,
            )

    def format_error(
        self, error: BaseException, sql: str, params: list[Any] | None
    ) -> BackendError:
        errno = error.args[0] if error.args and isinstance(error.args[0], int) else None
        if errno == _DUPLICATE_ENTRY:
            cls: type[BackendError] = UniqueConstraintError
        elif errno in _FOREIGN_KEY_ERRORS:
            cls = ForeignKeyConstraintError
        else:
            cls = BackendError
        return cls(str(error), sql=sql, parameters=params, original=error)
