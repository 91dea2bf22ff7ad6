"""SQLite dialect."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlweave.core.enums import IsolationLevel, TransactionType
from sqlweave.dialects.base import Dialect, DialectSupports, ForeignKeyReference, QueryGenerator


class SqliteQueryGenerator(QueryGenerator):
    paramstyle = "qmark"
    autoincrement_clause = "AUTOINCREMENT"
    true_literal = "1"
    false_literal = "0"

    def start_transaction_queries(
        self,
        isolation_level: IsolationLevel | None,
        transaction_type: TransactionType,
    ) -> list[str]:
        queries: list[str] = []
        if isolation_level is IsolationLevel.READ_UNCOMMITTED:
            queries.append("PRAGMA read_uncommitted = 1")
        elif isolation_level is IsolationLevel.SERIALIZABLE:
            queries.append("PRAGMA read_uncommitted = 0")
        queries.append(f"BEGIN {transaction_type.value} TRANSACTION")
        return queries

    def foreign_key_checks_query(self, enabled: bool) -> str:
        return f"PRAGMA foreign_keys = {'ON' if enabled else 'OFF'}"

    def drop_table_query(self, table: str, schema: str | None = None, cascade: bool = False) -> str:
        return f"DROP TABLE IF EXISTS {self.quote_table(table, schema)}"

    def truncate_table_query(
        self, table: str, schema: str | None = None, cascade: bool = False
    ) -> str:
        # no TRUNCATE in sqlite; an unqualified DELETE uses the truncate optimization
        return f"DELETE FROM {self.quote_table(table, schema)}"

    def foreign_keys_query(self, table: str, schema: str | None = None) -> str:
        return f"PRAGMA foreign_key_list({self.quote_identifier(table)})"

    def parse_foreign_keys(
        self, table: str, rows: Iterable[dict[str, Any]]
    ) -> list[ForeignKeyReference]:
        return [
            ForeignKeyReference(
                constraint_name=None,
                table_name=table,
                column_name=row["from"],
                referenced_table_name=row["table"],
                referenced_column_name=row["to"],
            )
            for row in rows
        ]

    def describe_table_query(self, table: str, schema: str | None = None) -> str:
        return f"PRAGMA table_info({self.quote_identifier(table)})"

    def parse_columns(self, rows: Iterable[dict[str, Any]]) -> list[str]:
        return [row["name"] for row in rows]


def create_dialect() -> Dialect:
    from sqlweave.adapters.sqlite import SqliteAdapter

    return Dialect(
        name="sqlite",
        supports=DialectSupports(
            foreign_key_toggle=True,
            alter_foreign_keys=False,
            utc_only=True,
            isolation_levels=frozenset(
                {IsolationLevel.READ_UNCOMMITTED, IsolationLevel.SERIALIZABLE}
            ),
            transaction_types=frozenset(TransactionType),
        ),
        generator=SqliteQueryGenerator(),
        adapter_factory=SqliteAdapter,
    )
