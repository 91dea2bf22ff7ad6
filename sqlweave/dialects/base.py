"""Dialect descriptor and the shared query-text generator.

A Dialect bundles a backend's capability flags, its QueryGenerator and the
factory for its driver adapter. Generators only produce the statements the
engine drives itself: transaction control, DDL for model tables, foreign key
introspection and session settings.
"""

from __future__ import annotations

import datetime
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlweave.core.enums import IsolationLevel, TransactionType
from sqlweave.core.exceptions import ModelError

if TYPE_CHECKING:
    from sqlweave.adapters.protocol import Adapter
    from sqlweave.core.models import Column, ModelDefinition


@dataclass(frozen=True)
class DialectSupports:
    """Feature flags describing backend capabilities."""

    search_path: bool = False
    foreign_key_toggle: bool = False
    truncate_cascade: bool = False
    drop_cascade: bool = False
    parallel_ddl: bool = False
    alter_foreign_keys: bool = True
    utc_only: bool = False
    isolation_levels: frozenset[IsolationLevel] = frozenset(IsolationLevel)
    transaction_types: frozenset[TransactionType] = frozenset({TransactionType.DEFERRED})


@dataclass(frozen=True)
class ForeignKeyReference:
    """One foreign key column as reported by the backend."""

    constraint_name: str | None
    table_name: str
    column_name: str
    referenced_table_name: str
    referenced_column_name: str | None = None


@dataclass(frozen=True)
class Dialect:
    name: str
    supports: DialectSupports
    generator: QueryGenerator
    adapter_factory: Callable[[], Adapter] | None = field(default=None, compare=False)

    def create_adapter(self) -> Adapter | None:
        if self.adapter_factory is None:
            return None
        return self.adapter_factory()


class QueryGenerator:
    """ANSI-flavoured statement generator; dialects override the differences."""

    paramstyle = "qmark"
    identifier_quote = '"'
    autoincrement_clause = "GENERATED BY DEFAULT AS IDENTITY"
    true_literal = "true"
    false_literal = "false"
    default_schema: str | None = None

    # --- Escaping ---

    def quote_identifier(self, name: str) -> str:
        q = self.identifier_quote
        return f"{q}{name.replace(q, q * 2)}{q}"

    def quote_table(self, table: str, schema: str | None = None) -> str:
        if schema:
            return f"{self.quote_identifier(schema)}.{self.quote_identifier(table)}"
        return self.quote_identifier(table)

    def escape(self, value: Any) -> str:
        """Render *value* as a SQL literal for inlined replacements."""
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return self.true_literal if value else self.false_literal
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        if isinstance(value, Enum):
            return self.escape(value.value)
        if isinstance(value, datetime.datetime):
            return self.escape_string(value.isoformat(sep=" "))
        if isinstance(value, (datetime.date, datetime.time)):
            return self.escape_string(value.isoformat())
        if isinstance(value, (bytes, bytearray, memoryview)):
            return self.escape_bytes(bytes(value))
        if isinstance(value, (list, tuple, set, frozenset)):
            return ", ".join(self.escape(item) for item in value)
        return self.escape_string(str(value))

    def escape_string(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    def escape_bytes(self, value: bytes) -> str:
        return f"X'{value.hex()}'"

    def bind_placeholder(self, position: int) -> str:
        return "%s" if self.paramstyle == "format" else "?"

    # --- Transactions ---

    def start_transaction_queries(
        self,
        isolation_level: IsolationLevel | None,
        transaction_type: TransactionType,
    ) -> list[str]:
        if isolation_level is None:
            return ["START TRANSACTION"]
        return [f"START TRANSACTION ISOLATION LEVEL {isolation_level.value}"]

    def commit_query(self) -> str:
        return "COMMIT"

    def rollback_query(self) -> str:
        return "ROLLBACK"

    # --- Session ---

    def foreign_key_checks_query(self, enabled: bool) -> str | None:
        return None

    def search_path_query(self, search_path: str) -> str | None:
        return None

    def set_variables_query(self, variables: dict[str, Any]) -> str:
        assignments = ", ".join(f"@{name} := {self.escape(v)}" for name, v in variables.items())
        return f"SET {assignments}"

    # --- DDL ---

    def column_definition(self, column: Column, *, inline_primary_key: bool = True) -> str:
        parts = [self.quote_identifier(column.field or ""), column.type]
        if column.primary_key and inline_primary_key:
            parts.append("PRIMARY KEY")
        if column.autoincrement:
            parts.append(self.autoincrement_clause)
        if not column.allow_null and not column.primary_key:
            parts.append("NOT NULL")
        if column.unique:
            parts.append("UNIQUE")
        if column.default is not None:
            parts.append(f"DEFAULT {self.escape(column.default)}")
        return " ".join(parts)

    def foreign_key_clause(self, model: ModelDefinition, attribute: str) -> str:
        column = model.columns[attribute]
        reference = column.references
        if reference is None:
            raise ModelError(f"Column '{attribute}' of model '{model.name}' has no reference")
        clause = (
            f"CONSTRAINT {self.quote_identifier(model.constraint_name(attribute))} "
            f"FOREIGN KEY ({self.quote_identifier(column.field or attribute)}) "
            f"REFERENCES {self.quote_table(model.referenced_table(reference), model.schema)} "
            f"({self.quote_identifier(reference.key)})"
        )
        if reference.on_delete:
            clause += f" ON DELETE {reference.on_delete}"
        if reference.on_update:
            clause += f" ON UPDATE {reference.on_update}"
        return clause

    def create_table_query(
        self,
        model: ModelDefinition,
        *,
        include_foreign_keys: bool = True,
        schema: str | None = None,
    ) -> str:
        primary_keys = [c.field for c in model.columns.values() if c.primary_key]
        inline_pk = len(primary_keys) == 1
        definitions = [
            self.column_definition(column, inline_primary_key=inline_pk)
            for column in model.columns.values()
        ]
        if not inline_pk and primary_keys:
            keys = ", ".join(self.quote_identifier(k or "") for k in primary_keys)
            definitions.append(f"PRIMARY KEY ({keys})")
        if include_foreign_keys:
            definitions.extend(
                self.foreign_key_clause(model, attribute) for attribute in model.foreign_keys()
            )
        table = self.quote_table(model.table_name, schema or model.schema)
        return f"CREATE TABLE IF NOT EXISTS {table} ({', '.join(definitions)})"

    def drop_table_query(self, table: str, schema: str | None = None, cascade: bool = False) -> str:
        sql = f"DROP TABLE IF EXISTS {self.quote_table(table, schema)}"
        return f"{sql} CASCADE" if cascade else sql

    def truncate_table_query(
        self, table: str, schema: str | None = None, cascade: bool = False
    ) -> str:
        sql = f"TRUNCATE TABLE {self.quote_table(table, schema)}"
        return f"{sql} CASCADE" if cascade else sql

    def add_column_query(self, table: str, column: Column, schema: str | None = None) -> str:
        definition = self.column_definition(column)
        return f"ALTER TABLE {self.quote_table(table, schema)} ADD COLUMN {definition}"

    def add_foreign_key_query(
        self, model: ModelDefinition, attribute: str, schema: str | None = None
    ) -> str:
        table = self.quote_table(model.table_name, schema or model.schema)
        return f"ALTER TABLE {table} ADD {self.foreign_key_clause(model, attribute)}"

    def remove_constraint_query(
        self, table: str, constraint_name: str, schema: str | None = None
    ) -> str:
        return (
            f"ALTER TABLE {self.quote_table(table, schema)} "
            f"DROP CONSTRAINT {self.quote_identifier(constraint_name)}"
        )

    # --- Introspection ---

    def foreign_keys_query(self, table: str, schema: str | None = None) -> str:
        sql = (
            "SELECT tc.constraint_name AS constraint_name, tc.table_name AS table_name, "
            "kcu.column_name AS column_name, ccu.table_name AS referenced_table_name, "
            "ccu.column_name AS referenced_column_name "
            "FROM information_schema.table_constraints AS tc "
            "JOIN information_schema.key_column_usage AS kcu "
            "ON tc.constraint_name = kcu.constraint_name AND tc.table_schema = kcu.table_schema "
            "JOIN information_schema.constraint_column_usage AS ccu "
            "ON ccu.constraint_name = tc.constraint_name AND ccu.table_schema = tc.table_schema "
            f"WHERE tc.constraint_type = 'FOREIGN KEY' AND tc.table_name = {self.escape(table)}"
        )
        schema = schema or self.default_schema
        if schema:
            sql += f" AND tc.table_schema = {self.escape(schema)}"
        return sql

    def parse_foreign_keys(
        self, table: str, rows: Iterable[dict[str, Any]]
    ) -> list[ForeignKeyReference]:
        references: list[ForeignKeyReference] = []
        for row in rows:
            lowered = {str(k).lower(): v for k, v in row.items()}
            references.append(
                ForeignKeyReference(
                    constraint_name=lowered.get("constraint_name"),
                    table_name=lowered.get("table_name") or table,
                    column_name=lowered["column_name"],
                    referenced_table_name=lowered["referenced_table_name"],
                    referenced_column_name=lowered.get("referenced_column_name"),
                )
            )
        return references

    def describe_table_query(self, table: str, schema: str | None = None) -> str:
        sql = (
            "SELECT column_name AS column_name FROM information_schema.columns "
            f"WHERE table_name = {self.escape(table)}"
        )
        schema = schema or self.default_schema
        if schema:
            sql += f" AND table_schema = {self.escape(schema)}"
        return sql

    def parse_columns(self, rows: Iterable[dict[str, Any]]) -> list[str]:
        columns: list[str] = []
        for row in rows:
            lowered = {str(k).lower(): v for k, v in row.items()}
            columns.append(lowered["column_name"])
        return columns
