"""Query, transaction and dialect enumerations."""

from __future__ import annotations

from enum import Enum


class DatabaseBackend(Enum):
    """Supported database backends (canonical dialect names)."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    MARIADB = "mariadb"
    SQLITE = "sqlite"
    MSSQL = "mssql"
    DB2 = "db2"
    SNOWFLAKE = "snowflake"


class QueryType(Enum):
    """Kind of statement being executed.

    Determines result shape and read/write routing.
    """

    RAW = "RAW"
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    BULKUPDATE = "BULKUPDATE"
    BULKDELETE = "BULKDELETE"
    DELETE = "DELETE"
    UPSERT = "UPSERT"
    SHOWTABLES = "SHOWTABLES"
    DESCRIBE = "DESCRIBE"
    FOREIGNKEYS = "FOREIGNKEYS"
    SHOWINDEXES = "SHOWINDEXES"
    SET = "SET"
    TRANSACTION = "TRANSACTION"
    DDL = "DDL"


class IsolationLevel(Enum):
    READ_UNCOMMITTED = "READ UNCOMMITTED"
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"


class TransactionType(Enum):
    """Locking mode used when a transaction begins (sqlite semantics)."""

    DEFERRED = "DEFERRED"
    IMMEDIATE = "IMMEDIATE"
    EXCLUSIVE = "EXCLUSIVE"


class TransactionState(Enum):
    CREATED = "created"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
