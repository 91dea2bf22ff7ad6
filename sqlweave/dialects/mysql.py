"""MySQL and MariaDB dialects."""

from __future__ import annotations

from sqlweave.core.enums import IsolationLevel, TransactionType
from sqlweave.dialects.base import Dialect, DialectSupports, QueryGenerator

_BACKSLASH_ESCAPES = {
    "\\": "\\\\",
    "\x00": "\\0",
    "\n": "\\n",
    "\r": "\\r",
    "\x1a": "\\Z",
    "'": "''",
}


class MysqlQueryGenerator(QueryGenerator):
    paramstyle = "format"
    identifier_quote = "`"
    autoincrement_clause = "AUTO_INCREMENT"

    def escape_string(self, value: str) -> str:
        return "'" + "".join(_BACKSLASH_ESCAPES.get(ch, ch) for ch in value) + "'"

    def start_transaction_queries(
        self,
        isolation_level: IsolationLevel | None,
        transaction_type: TransactionType,
    ) -> list[str]:
        queries: list[str] = []
        if isolation_level is not None:
            # applies to the next transaction on this session only
            queries.append(f"SET TRANSACTION ISOLATION LEVEL {isolation_level.value}")
        queries.append("START TRANSACTION")
        return queries

    def foreign_key_checks_query(self, enabled: bool) -> str:
        return f"SET FOREIGN_KEY_CHECKS = {1 if enabled else 0}"

    def drop_table_query(self, table: str, schema: str | None = None, cascade: bool = False) -> str:
        return f"DROP TABLE IF EXISTS {self.quote_table(table, schema)}"

    def truncate_table_query(
        self, table: str, schema: str | None = None, cascade: bool = False
    ) -> str:
        return f"TRUNCATE {self.quote_table(table, schema)}"

    def remove_constraint_query(
        self, table: str, constraint_name: str, schema: str | None = None
    ) -> str:
        return (
            f"ALTER TABLE {self.quote_table(table, schema)} "
            f"DROP FOREIGN KEY {self.quote_identifier(constraint_name)}"
        )

    def foreign_keys_query(self, table: str, schema: str | None = None) -> str:
        schema_clause = self.escape(schema) if schema else "DATABASE()"
        return (
            "SELECT CONSTRAINT_NAME AS constraint_name, TABLE_NAME AS table_name, "
            "COLUMN_NAME AS column_name, REFERENCED_TABLE_NAME AS referenced_table_name, "
            "REFERENCED_COLUMN_NAME AS referenced_column_name "
            "FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE "
            f"WHERE TABLE_NAME = {self.escape(table)} AND TABLE_SCHEMA = {schema_clause} "
            "AND REFERENCED_TABLE_NAME IS NOT NULL"
        )

    def describe_table_query(self, table: str, schema: str | None = None) -> str:
        schema_clause = self.escape(schema) if schema else "DATABASE()"
        return (
            "SELECT COLUMN_NAME AS column_name FROM INFORMATION_SCHEMA.COLUMNS "
            f"WHERE TABLE_NAME = {self.escape(table)} AND TABLE_SCHEMA = {schema_clause}"
        )


def _supports() -> DialectSupports:
    return DialectSupports(foreign_key_toggle=True, parallel_ddl=True)


def create_dialect() -> Dialect:
    from sqlweave.adapters.mysql import MysqlAdapter

    return Dialect(
        name="mysql",
        supports=_supports(),
        generator=MysqlQueryGenerator(),
        adapter_factory=MysqlAdapter,
    )


def create_mariadb_dialect() -> Dialect:
    from sqlweave.adapters.mysql import MysqlAdapter

    return Dialect(
        name="mariadb",
        supports=_supports(),
        generator=MysqlQueryGenerator(),
        adapter_factory=MysqlAdapter,
    )
