"""Database adapter protocol.

Every adapter module MUST implement this protocol. The engine only talks to
drivers through it, so all adapters expose identical public interfaces.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from sqlweave.core.config import ConnectionConfig, ReplicaConfig
from sqlweave.core.exceptions import BackendError


@dataclass(frozen=True)
class QueryMetadata:
    """Statement metadata reported alongside result rows."""

    rowcount: int = -1
    lastrowid: Any = None
    columns: list[str] = field(default_factory=list)


@runtime_checkable
class Adapter(Protocol):
    """Asynchronous database adapter protocol."""

    @property
    def paramstyle(self) -> str:
        """Native placeholder style: 'qmark' (?) or 'format' (%s)."""
        ...

    async def connect(
        self, config: ConnectionConfig, replica: ReplicaConfig | None = None
    ) -> Any:
        """Open one physical connection in autocommit mode."""
        ...

    async def close(self, connection: Any) -> None:
        """Close one physical connection."""
        ...

    async def execute(
        self,
        connection: Any,
        sql: str,
        params: list[Any] | None = None,
    ) -> tuple[list[dict[str, Any]], QueryMetadata]:
        """Execute SQL and return row dicts with statement metadata."""
        ...

    def format_error(
        self, error: BaseException, sql: str, params: list[Any] | None
    ) -> BackendError:
        """Normalize a driver exception into a BackendError."""
        ...


def target(config: ConnectionConfig, replica: ReplicaConfig | None) -> dict[str, Any]:
    """Resolve host/port/database/credentials, letting replica fields win."""
    resolved = {
        "host": config.host,
        "port": config.port,
        "database": config.database,
        "username": config.username,
        "password": config.password,
    }
    if replica is not None:
        for key, value in replica.model_dump().items():
            if value is not None:
                resolved[key] = value
    return resolved
