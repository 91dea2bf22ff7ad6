"""sqlweave - async relational database access core.

Query execution with retry, transactions with ambient propagation, and
dependency-ordered schema sync across postgres, mysql, mariadb, sqlite,
mssql, db2 and snowflake dialects.
"""

from __future__ import annotations

from sqlweave.adapters.protocol import Adapter, QueryMetadata
from sqlweave.core.config import (
    ConnectionConfig,
    PoolConfig,
    ReplicaConfig,
    ReplicationConfig,
    RetryOptions,
)
from sqlweave.core.connection import ConnectionManager, ConnectionPool
from sqlweave.core.context import (
    ContextVarNamespace,
    install_ambient_context,
    uninstall_ambient_context,
)
from sqlweave.core.engine import Engine, QueryContext, QueryDescriptor, QueryOptions
from sqlweave.core.enums import (
    DatabaseBackend,
    IsolationLevel,
    QueryType,
    TransactionState,
    TransactionType,
)
from sqlweave.core.exceptions import (
    AdapterError,
    BackendError,
    ConcurrentTransactionUseError,
    ConfigurationError,
    ConnectionError,  # noqa: A004
    DependencyOrderError,
    ForeignKeyConstraintError,
    MappingError,
    ModelError,
    PoolError,
    SqlWeaveError,
    TransactionError,
    TransactionStateError,
    TransientBackendError,
    UniqueConstraintError,
    UnsupportedDialectError,
    UsageError,
)
from sqlweave.core.hooks import Hooks
from sqlweave.core.models import Column, ModelDefinition, ModelRegistry, Reference
from sqlweave.core.transaction import Transaction, TransactionOptions
from sqlweave.dialects import register_dialect, select_dialect, supported_dialects
from sqlweave.mapping.model import ModelMapper

__all__ = [
    # Engine
    "Engine",
    "QueryOptions",
    "QueryDescriptor",
    "QueryContext",
    # Configuration
    "ConnectionConfig",
    "PoolConfig",
    "RetryOptions",
    "ReplicaConfig",
    "ReplicationConfig",
    # Connection
    "ConnectionManager",
    "ConnectionPool",
    "Adapter",
    "QueryMetadata",
    # Transaction
    "Transaction",
    "TransactionOptions",
    "ContextVarNamespace",
    "install_ambient_context",
    "uninstall_ambient_context",
    # Models
    "Column",
    "Reference",
    "ModelDefinition",
    "ModelRegistry",
    "ModelMapper",
    "Hooks",
    # Dialects
    "select_dialect",
    "register_dialect",
    "supported_dialects",
    # Enums
    "DatabaseBackend",
    "QueryType",
    "IsolationLevel",
    "TransactionType",
    "TransactionState",
    # Exceptions
    "SqlWeaveError",
    "ConfigurationError",
    "UnsupportedDialectError",
    "UsageError",
    "TransactionError",
    "TransactionStateError",
    "ConcurrentTransactionUseError",
    "DependencyOrderError",
    "ModelError",
    "MappingError",
    "AdapterError",
    "ConnectionError",
    "PoolError",
    "BackendError",
    "UniqueConstraintError",
    "ForeignKeyConstraintError",
    "TransientBackendError",
]
