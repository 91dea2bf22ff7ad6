"""sqlweave exception hierarchy.

All exceptions are sqlweave-specific. Raw driver exceptions are wrapped in a
BackendError unless a query explicitly asks for ``raw_errors``.
"""

from __future__ import annotations

from typing import Any


class SqlWeaveError(Exception):
    """Base exception for all sqlweave errors."""


# --- Configuration ---


class ConfigurationError(SqlWeaveError):
    """Raised when an Engine cannot be constructed from its configuration."""


class UnsupportedDialectError(ConfigurationError):
    """Raised when a dialect identifier is not in the dialect registry."""

    def __init__(self, dialect: str | None, supported: list[str]) -> None:
        self.dialect = dialect
        self.supported = supported
        if dialect is None:
            message = "Dialect needs to be explicitly supplied"
        else:
            message = f"The dialect {dialect} is not supported"
        super().__init__(f"{message}. Supported dialects: {', '.join(supported)}.")


# --- Usage ---


class UsageError(SqlWeaveError):
    """Raised on invalid per-call option combinations. Never retried."""


# --- Transaction ---


class TransactionError(SqlWeaveError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised when a finished transaction is used again.

    The rejected statement is attached as ``sql``.
    """

    def __init__(
        self,
        transaction_id: str,
        finished: str | None,
        attempted_action: str,
        sql: str | None = None,
    ) -> None:
        self.transaction_id = transaction_id
        self.finished = finished
        self.attempted_action = attempted_action
        self.sql = sql
        if sql is not None:
            message = (
                f"{finished} has been called on this transaction({transaction_id}), "
                f"you can no longer use it. (The rejected query is attached as the "
                f"'sql' property of this error)"
            )
        else:
            message = (
                f"Cannot {attempted_action} transaction({transaction_id}): "
                f"{finished} has already been called"
            )
        super().__init__(message)


class ConcurrentTransactionUseError(TransactionError):
    """Raised when two statements run concurrently on one transaction."""

    def __init__(self, transaction_id: str, sql: str) -> None:
        self.transaction_id = transaction_id
        self.sql = sql
        super().__init__(
            f"Transaction({transaction_id}) is already executing a statement; "
            f"statements on one transaction must be awaited in sequence"
        )


# --- Schema ---


class DependencyOrderError(SqlWeaveError):
    """Raised when no safe processing order exists for a destructive operation."""


class ModelError(SqlWeaveError):
    """Raised for unknown or conflicting model definitions."""


class MappingError(ModelError):
    """Raised when result rows cannot be mapped onto a model's target class."""

    def __init__(self, target_class: str, details: list[str]) -> None:
        self.target_class = target_class
        self.details = details
        super().__init__(f"Cannot map to {target_class}: {details}")


# --- Adapter ---


class AdapterError(SqlWeaveError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""


class PoolError(AdapterError):
    """Raised on connection pool failures."""


class BackendError(AdapterError):
    """Normalized failure reported by the database backend."""

    def __init__(
        self,
        message: str,
        *,
        sql: str | None = None,
        parameters: Any = None,
        original: BaseException | None = None,
    ) -> None:
        self.sql = sql
        self.parameters = parameters
        self.original = original
        super().__init__(message)


class UniqueConstraintError(BackendError):
    """Raised when a unique constraint is violated."""


class ForeignKeyConstraintError(BackendError):
    """Raised when a foreign key constraint is violated."""


class TransientBackendError(BackendError):
    """Raised when a retryable failure persists after every allowed attempt."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        sql = getattr(last_error, "sql", None)
        super().__init__(
            f"Query failed after {attempts} attempt(s): {last_error}",
            sql=sql,
            parameters=getattr(last_error, "parameters", None),
            original=getattr(last_error, "original", None) or last_error,
        )
