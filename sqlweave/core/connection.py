"""Connection pooling and management.

ConnectionPool keeps idle adapter connections for reuse and bounds the number
of open connections with a semaphore. ConnectionManager owns one pool for
writes and, when replication is configured, one pool per read replica.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import Any

from sqlweave.core.config import ConnectionConfig, PoolConfig, ReplicaConfig
from sqlweave.core.enums import QueryType
from sqlweave.core.exceptions import AdapterError, ConnectionError, PoolError

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Bounded pool of connections to one database target."""

    def __init__(
        self,
        adapter: Any,
        config: ConnectionConfig,
        replica: ReplicaConfig | None = None,
        name: str = "write",
    ) -> None:
        self.name = name
        self._adapter = adapter
        self._config = config
        self._replica = replica
        self._limits: PoolConfig = config.pool_limits()
        self._semaphore = asyncio.Semaphore(self._limits.max)
        self._idle: deque[tuple[Any, float]] = deque()
        self._size = 0
        self._closed = False

    @property
    def size(self) -> int:
        """Number of open connections, idle or in use."""
        return self._size

    @property
    def idle_count(self) -> int:
        return len(self._idle)

    async def acquire(self) -> Any:
        """Take an idle connection or open a new one.

        Raises:
            PoolError: If the pool is closed or no connection frees up within
                ``pool.acquire`` seconds.
            ConnectionError: If opening a new connection fails.
        """
        if self._closed:
            raise PoolError(f"Pool '{self.name}' is closed")
        try:
            await asyncio.wait_for(self._semaphore.acquire(), timeout=self._limits.acquire)
        except asyncio.TimeoutError:
            raise PoolError(
                f"Timed out after {self._limits.acquire}s waiting for a connection "
                f"from pool '{self.name}'"
            ) from None

        try:
            await self._evict_stale()
            if self._idle:
                connection, _ = self._idle.pop()
                return connection
            return await self._open()
        except BaseException:
            self._semaphore.release()
            raise

    async def release(self, connection: Any) -> None:
        """Return a connection to the idle set."""
        try:
            if self._closed:
                await self._discard(connection)
            else:
                self._idle.append((connection, time.monotonic()))
        finally:
            self._semaphore.release()

    async def close(self) -> None:
        """Close every idle connection and refuse further acquires."""
        self._closed = True
        while self._idle:
            connection, _ = self._idle.popleft()
            await self._discard(connection)

    async def _open(self) -> Any:
        try:
            connection = await self._adapter.connect(self._config, self._replica)
        except Exception as e:
            raise ConnectionError(f"Failed to connect ({self.name}): {e}") from e
        self._size += 1
        logger.debug("Opened connection for pool '%s' (size=%d)", self.name, self._size)
        return connection

    async def _discard(self, connection: Any) -> None:
        self._size -= 1
        await self._adapter.close(connection)

    async def _evict_stale(self) -> None:
        """Close idle connections unused for longer than ``pool.idle`` seconds."""
        deadline = time.monotonic() - self._limits.idle
        while self._idle and self._size > self._limits.min:
            connection, released_at = self._idle[0]
            if released_at > deadline:
                break
            self._idle.popleft()
            logger.debug("Evicting idle connection from pool '%s'", self.name)
            await self._discard(connection)


class ConnectionManager:
    """Routes connection requests to the write pool or a read replica pool."""

    def __init__(self, config: ConnectionConfig, adapter: Any = None) -> None:
        self.config = config
        self._adapter = adapter
        self._owners: dict[int, ConnectionPool] = {}
        self._write_pool: ConnectionPool | None = None
        self._read_pools: list[ConnectionPool] = []
        self._read_cycle: Any = None
        if adapter is not None:
            self._build_pools()

    @property
    def adapter(self) -> Any:
        return self._adapter

    def _build_pools(self) -> None:
        replication = self.config.replication
        write_target = replication.write if replication is not None else None
        self._write_pool = ConnectionPool(self._adapter, self.config, write_target)
        if replication is not None:
            self._read_pools = [
                ConnectionPool(self._adapter, self.config, replica, name=f"read[{i}]")
                for i, replica in enumerate(replication.read)
            ]
        if self._read_pools:
            self._read_cycle = itertools.cycle(self._read_pools)

    def _pool_for(self, query_type: QueryType, use_master: bool) -> ConnectionPool:
        if self._write_pool is None:
            raise AdapterError(
                f"No driver adapter is bundled for dialect '{self.config.dialect}'; "
                "pass one with Engine(..., adapter=...)"
            )
        if query_type == QueryType.SELECT and not use_master and self._read_cycle is not None:
            return next(self._read_cycle)  # type: ignore[no-any-return]
        return self._write_pool

    async def acquire(
        self, query_type: QueryType = QueryType.RAW, *, use_master: bool = False
    ) -> Any:
        """Acquire a connection suited to *query_type*.

        SELECTs go to a read replica (round-robin) unless *use_master* is set.
        """
        pool = self._pool_for(query_type, use_master)
        connection = await pool.acquire()
        self._owners[id(connection)] = pool
        return connection

    async def release(self, connection: Any) -> None:
        """Return *connection* to the pool it came from.

        Raises:
            PoolError: If the connection is not currently checked out.
        """
        pool = self._owners.pop(id(connection), None)
        if pool is None:
            raise PoolError("Connection is not checked out from this manager")
        await pool.release(connection)

    @asynccontextmanager
    async def get_connection(  # type: ignore[no-untyped-def]
        self, query_type: QueryType = QueryType.RAW, *, use_master: bool = False
    ):
        """Acquire a connection as an async context manager."""
        connection = await self.acquire(query_type, use_master=use_master)
        try:
            yield connection
        finally:
            await self.release(connection)

    async def close(self) -> None:
        """Close every pool."""
        pools = [p for p in (self._write_pool, *self._read_pools) if p is not None]
        for pool in pools:
            await pool.close()
