"""Snowflake dialect.

No driver adapter is bundled; pass ``adapter=`` to the Engine.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlweave.core.enums import IsolationLevel, TransactionType
from sqlweave.dialects.base import Dialect, DialectSupports, ForeignKeyReference, QueryGenerator


class SnowflakeQueryGenerator(QueryGenerator):
    paramstyle = "format"
    autoincrement_clause = "AUTOINCREMENT"

    def start_transaction_queries(
        self,
        isolation_level: IsolationLevel | None,
        transaction_type: TransactionType,
    ) -> list[str]:
        return ["BEGIN TRANSACTION"]

    def truncate_table_query(
        self, table: str, schema: str | None = None, cascade: bool = False
    ) -> str:
        return f"TRUNCATE TABLE IF EXISTS {self.quote_table(table, schema)}"

    def foreign_keys_query(self, table: str, schema: str | None = None) -> str:
        return f"SHOW IMPORTED KEYS IN TABLE {self.quote_table(table, schema)}"

    def parse_foreign_keys(
        self, table: str, rows: Iterable[dict[str, Any]]
    ) -> list[ForeignKeyReference]:
        references: list[ForeignKeyReference] = []
        for row in rows:
            lowered = {str(k).lower(): v for k, v in row.items()}
            references.append(
                ForeignKeyReference(
                    constraint_name=lowered.get("fk_name"),
                    table_name=lowered.get("fk_table_name") or table,
                    column_name=lowered["fk_column_name"],
                    referenced_table_name=lowered["pk_table_name"],
                    referenced_column_name=lowered.get("pk_column_name"),
                )
            )
        return references


def create_dialect() -> Dialect:
    return Dialect(
        name="snowflake",
        supports=DialectSupports(
            drop_cascade=True,
            isolation_levels=frozenset({IsolationLevel.READ_COMMITTED}),
        ),
        generator=SnowflakeQueryGenerator(),
    )
