"""Microsoft SQL Server dialect.

No driver adapter is bundled; pass ``adapter=`` to the Engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlweave.core.enums import IsolationLevel, TransactionType
from sqlweave.dialects.base import Dialect, DialectSupports, QueryGenerator

if TYPE_CHECKING:
    from sqlweave.core.models import Column


class MssqlQueryGenerator(QueryGenerator):
    paramstyle = "qmark"
    autoincrement_clause = "IDENTITY(1,1)"
    true_literal = "1"
    false_literal = "0"
    default_schema = "dbo"

    def quote_identifier(self, name: str) -> str:
        return f"[{name.replace(']', ']]')}]"

    def escape_string(self, value: str) -> str:
        return "N'" + value.replace("'", "''") + "'"

    def escape_bytes(self, value: bytes) -> str:
        return f"0x{value.hex()}"

    def start_transaction_queries(
        self,
        isolation_level: IsolationLevel | None,
        transaction_type: TransactionType,
    ) -> list[str]:
        queries: list[str] = []
        if isolation_level is not None:
            queries.append(f"SET TRANSACTION ISOLATION LEVEL {isolation_level.value}")
        queries.append("BEGIN TRANSACTION")
        return queries

    def commit_query(self) -> str:
        return "COMMIT TRANSACTION"

    def rollback_query(self) -> str:
        return "ROLLBACK TRANSACTION"

    def add_column_query(self, table: str, column: Column, schema: str | None = None) -> str:
        return f"ALTER TABLE {self.quote_table(table, schema)} ADD {self.column_definition(column)}"

    def foreign_keys_query(self, table: str, schema: str | None = None) -> str:
        return (
            "SELECT fk.name AS constraint_name, OBJECT_NAME(fk.parent_object_id) AS table_name, "
            "COL_NAME(fkc.parent_object_id, fkc.parent_column_id) AS column_name, "
            "OBJECT_NAME(fk.referenced_object_id) AS referenced_table_name, "
            "COL_NAME(fkc.referenced_object_id, fkc.referenced_column_id) "
            "AS referenced_column_name "
            "FROM sys.foreign_keys AS fk "
            "INNER JOIN sys.foreign_key_columns AS fkc "
            "ON fk.object_id = fkc.constraint_object_id "
            f"WHERE OBJECT_NAME(fk.parent_object_id) = {self.escape_string(table)}"
        )


def create_dialect() -> Dialect:
    return Dialect(
        name="mssql",
        supports=DialectSupports(parallel_ddl=True),
        generator=MssqlQueryGenerator(),
    )
