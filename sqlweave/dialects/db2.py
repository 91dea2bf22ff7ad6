"""IBM DB2 dialect.

No driver adapter is bundled; pass ``adapter=`` to the Engine.
"""

from __future__ import annotations

from sqlweave.core.enums import IsolationLevel, TransactionType
from sqlweave.dialects.base import Dialect, DialectSupports, QueryGenerator

_ISOLATION_CODES = {
    IsolationLevel.READ_UNCOMMITTED: "UR",
    IsolationLevel.READ_COMMITTED: "CS",
    IsolationLevel.REPEATABLE_READ: "RS",
    IsolationLevel.SERIALIZABLE: "RR",
}


class Db2QueryGenerator(QueryGenerator):
    paramstyle = "qmark"

    def escape_bytes(self, value: bytes) -> str:
        return f"BLOB(X'{value.hex()}')"

    def start_transaction_queries(
        self,
        isolation_level: IsolationLevel | None,
        transaction_type: TransactionType,
    ) -> list[str]:
        # DB2 opens units of work implicitly once autocommit is off
        if isolation_level is None:
            return []
        return [f"SET CURRENT ISOLATION = {_ISOLATION_CODES[isolation_level]}"]

    def drop_table_query(self, table: str, schema: str | None = None, cascade: bool = False) -> str:
        return f"DROP TABLE {self.quote_table(table, schema)}"

    def truncate_table_query(
        self, table: str, schema: str | None = None, cascade: bool = False
    ) -> str:
        return f"TRUNCATE TABLE {self.quote_table(table, schema)} IMMEDIATE"

    def foreign_keys_query(self, table: str, schema: str | None = None) -> str:
        sql = (
            "SELECT R.CONSTNAME AS constraint_name, R.TABNAME AS table_name, "
            "K.COLNAME AS column_name, R.REFTABNAME AS referenced_table_name, "
            "P.COLNAME AS referenced_column_name "
            "FROM SYSCAT.REFERENCES R "
            "JOIN SYSCAT.KEYCOLUSE K ON R.CONSTNAME = K.CONSTNAME AND R.TABSCHEMA = K.TABSCHEMA "
            "JOIN SYSCAT.KEYCOLUSE P ON R.REFKEYNAME = P.CONSTNAME "
            "AND R.REFTABSCHEMA = P.TABSCHEMA AND K.COLSEQ = P.COLSEQ "
            f"WHERE R.TABNAME = {self.escape(table)}"
        )
        if schema:
            sql += f" AND R.TABSCHEMA = {self.escape(schema)}"
        return sql

    def describe_table_query(self, table: str, schema: str | None = None) -> str:
        sql = f"SELECT COLNAME AS column_name FROM SYSCAT.COLUMNS WHERE TABNAME = {self.escape(table)}"
        if schema:
            sql += f" AND TABSCHEMA = {self.escape(schema)}"
        return sql


def create_dialect() -> Dialect:
    return Dialect(
        name="db2",
        supports=DialectSupports(),
        generator=Db2QueryGenerator(),
    )
