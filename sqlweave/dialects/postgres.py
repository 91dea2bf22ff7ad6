"""PostgreSQL dialect."""

from __future__ import annotations

from sqlweave.dialects.base import Dialect, DialectSupports, QueryGenerator


class PostgresQueryGenerator(QueryGenerator):
    paramstyle = "format"
    default_schema = "public"

    def escape_string(self, value: str) -> str:
        if "\x00" in value:
            value = value.replace("\x00", "")
        return "'" + value.replace("'", "''") + "'"

    def escape_bytes(self, value: bytes) -> str:
        return f"'\\x{value.hex()}'::bytea"

    def search_path_query(self, search_path: str) -> str:
        return f"SET search_path TO {search_path}"


def create_dialect() -> Dialect:
    from sqlweave.adapters.postgresql import PostgresqlAdapter

    return Dialect(
        name="postgres",
        supports=DialectSupports(
            search_path=True,
            truncate_cascade=True,
            drop_cascade=True,
            parallel_ddl=True,
        ),
        generator=PostgresQueryGenerator(),
        adapter_factory=PostgresqlAdapter,
    )
