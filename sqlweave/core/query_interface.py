"""DDL and introspection statements, run through the query executor."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlweave.core.enums import QueryType
from sqlweave.dialects.base import ForeignKeyReference

if TYPE_CHECKING:
    from sqlweave.core.engine import Engine
    from sqlweave.core.models import Column, ModelDefinition

# Options a caller may forward from sync/drop/truncate down to each statement
_FORWARDED_OPTIONS = frozenset(
    {
        "transaction",
        "connection",
        "logging",
        "benchmark",
        "search_path",
        "supports_search_path",
        "raw_errors",
        "retry",
    }
)


def _forward(options: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in options.items() if key in _FORWARDED_OPTIONS}


class QueryInterface:
    """Dialect-aware DDL helpers bound to one engine."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @property
    def generator(self) -> Any:
        return self.engine.dialect.generator

    async def _ddl(self, sql: str, options: dict[str, Any]) -> None:
        await self.engine.query(sql, type=QueryType.DDL, **_forward(options))

    async def _select(self, sql: str, options: dict[str, Any]) -> list[dict[str, Any]]:
        forwarded = _forward(options)
        forwarded.setdefault("use_master", True)
        return await self.engine.query(  # type: ignore[no-any-return]
            sql, type=QueryType.SELECT, raw=True, **forwarded
        )

    async def create_table(
        self,
        model: ModelDefinition,
        *,
        include_foreign_keys: bool = True,
        schema: str | None = None,
        **options: Any,
    ) -> None:
        sql = self.generator.create_table_query(
            model, include_foreign_keys=include_foreign_keys, schema=schema
        )
        await self._ddl(sql, options)

    async def drop_table(
        self, table: str, *, schema: str | None = None, cascade: bool = False, **options: Any
    ) -> None:
        await self._ddl(self.generator.drop_table_query(table, schema, cascade), options)

    async def truncate_table(
        self, table: str, *, schema: str | None = None, cascade: bool = False, **options: Any
    ) -> None:
        await self._ddl(self.generator.truncate_table_query(table, schema, cascade), options)

    async def describe_table(
        self, table: str, *, schema: str | None = None, **options: Any
    ) -> list[str]:
        """Column names of *table*; empty when the table does not exist."""
        rows = await self._select(self.generator.describe_table_query(table, schema), options)
        return self.generator.parse_columns(rows)  # type: ignore[no-any-return]

    async def table_exists(self, table: str, *, schema: str | None = None, **options: Any) -> bool:
        return bool(await self.describe_table(table, schema=schema, **options))

    async def add_column(
        self, table: str, column: Column, *, schema: str | None = None, **options: Any
    ) -> None:
        await self._ddl(self.generator.add_column_query(table, column, schema), options)

    async def add_foreign_key(
        self,
        model: ModelDefinition,
        attribute: str,
        *,
        schema: str | None = None,
        **options: Any,
    ) -> None:
        await self._ddl(self.generator.add_foreign_key_query(model, attribute, schema), options)

    async def remove_constraint(
        self, table: str, constraint_name: str, *, schema: str | None = None, **options: Any
    ) -> None:
        sql = self.generator.remove_constraint_query(table, constraint_name, schema)
        await self._ddl(sql, options)

    async def get_foreign_key_references(
        self, table: str, *, schema: str | None = None, **options: Any
    ) -> list[ForeignKeyReference]:
        rows = await self._select(self.generator.foreign_keys_query(table, schema), options)
        return self.generator.parse_foreign_keys(table, rows)  # type: ignore[no-any-return]

    async def set_foreign_key_checks(self, enabled: bool, **options: Any) -> None:
        """Toggle FK enforcement for the session. A no-op where unsupported."""
        sql = self.generator.foreign_key_checks_query(enabled)
        if sql is not None:
            await self.engine.query(sql, type=QueryType.RAW, **_forward(options))
