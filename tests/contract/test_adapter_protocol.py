"""Contract tests for adapter protocol compliance."""

from __future__ import annotations

import pytest

from sqlweave.adapters.protocol import Adapter, QueryMetadata
from sqlweave.adapters.sqlite import SqliteAdapter
from sqlweave.core.config import ConnectionConfig
from sqlweave.core.exceptions import BackendError, ForeignKeyConstraintError, UniqueConstraintError


class TestSqliteAdapterProtocol:
    def test_implements_protocol(self) -> None:
        assert isinstance(SqliteAdapter(), Adapter)

    def test_paramstyle(self) -> None:
        assert SqliteAdapter().paramstyle == "qmark"

    async def test_lifecycle(self, sqlite_config: ConnectionConfig) -> None:
        adapter = SqliteAdapter()
        conn = await adapter.connect(sqlite_config)
        try:
            rows, metadata = await adapter.execute(conn, "SELECT ? AS val", [1])
            assert rows == [{"val": 1}]
            assert metadata.columns == ["val"]
        finally:
            await adapter.close(conn)

    async def test_write_metadata(self, sqlite_config: ConnectionConfig) -> None:
        adapter = SqliteAdapter()
        conn = await adapter.connect(sqlite_config)
        try:
            await adapter.execute(conn, "CREATE TABLE t (id INTEGER PRIMARY KEY, v TEXT)")
            rows, metadata = await adapter.execute(conn, "INSERT INTO t (v) VALUES (?)", ["a"])
            assert rows == []
            assert metadata.rowcount == 1
            assert metadata.lastrowid == 1
        finally:
            await adapter.close(conn)

    async def test_memory_connections_share_one_database(self) -> None:
        adapter = SqliteAdapter()
        config = ConnectionConfig(dialect="sqlite")
        first = await adapter.connect(config)
        second = await adapter.connect(config)
        try:
            await adapter.execute(first, "CREATE TABLE t (id INTEGER)")
            rows, _ = await adapter.execute(second, "SELECT name FROM sqlite_master")
            assert rows == [{"name": "t"}]
        finally:
            await adapter.close(first)
            await adapter.close(second)
        assert SqliteAdapter().memory_uri != adapter.memory_uri

    async def test_foreign_keys_enforced(self, sqlite_config: ConnectionConfig) -> None:
        adapter = SqliteAdapter()
        conn = await adapter.connect(sqlite_config)
        try:
            rows, _ = await adapter.execute(conn, "PRAGMA foreign_keys")
            assert rows == [{"foreign_keys": 1}]
        finally:
            await adapter.close(conn)

    def test_error_mapping(self) -> None:
        adapter = SqliteAdapter()
        unique = adapter.format_error(Exception("UNIQUE constraint failed: t.v"), "INSERT", None)
        fk = adapter.format_error(Exception("FOREIGN KEY constraint failed"), "INSERT", None)
        other = adapter.format_error(Exception("no such table: t"), "SELECT", [1])
        assert isinstance(unique, UniqueConstraintError)
        assert isinstance(fk, ForeignKeyConstraintError)
        assert type(other) is BackendError
        assert other.parameters == [1]


class TestPostgresqlAdapterProtocol:
    def test_implements_protocol(self) -> None:
        from sqlweave.adapters.postgresql import PostgresqlAdapter

        assert isinstance(PostgresqlAdapter(), Adapter)

    def test_paramstyle(self) -> None:
        from sqlweave.adapters.postgresql import PostgresqlAdapter

        assert PostgresqlAdapter().paramstyle == "format"

    def test_conninfo(self) -> None:
        from sqlweave.adapters.postgresql import _build_conninfo
        from sqlweave.core.config import ReplicaConfig

        config = ConnectionConfig(
            dialect="postgres", host="db", port=5432, username="u", database="app",
            dialect_options={"sslmode": "require"},
        )
        assert _build_conninfo(config, None) == "host=db port=5432 user=u dbname=app sslmode=require"
        assert _build_conninfo(config, ReplicaConfig(host="replica")).startswith("host=replica ")

    def test_error_mapping_uses_sqlstate(self) -> None:
        from sqlweave.adapters.postgresql import PostgresqlAdapter

        class UniqueViolation(Exception):
            sqlstate = "23505"

        error = PostgresqlAdapter().format_error(UniqueViolation("duplicate key"), "INSERT", None)
        assert isinstance(error, UniqueConstraintError)


class TestMysqlAdapterProtocol:
    def test_implements_protocol(self) -> None:
        from sqlweave.adapters.mysql import MysqlAdapter

        assert isinstance(MysqlAdapter(), Adapter)

    def test_paramstyle(self) -> None:
        from sqlweave.adapters.mysql import MysqlAdapter

        assert MysqlAdapter().paramstyle == "format"

    @pytest.mark.parametrize(
        ("errno", "expected"),
        [(1062, UniqueConstraintError), (1452, ForeignKeyConstraintError), (1146, BackendError)],
    )
    def test_error_mapping_uses_errno(self, errno: int, expected: type) -> None:
        from sqlweave.adapters.mysql import MysqlAdapter

        error = MysqlAdapter().format_error(Exception(errno, "message"), "INSERT", None)
        assert type(error) is expected


def test_query_metadata_defaults() -> None:
    metadata = QueryMetadata()
    assert metadata.rowcount == -1
    assert metadata.columns == []
