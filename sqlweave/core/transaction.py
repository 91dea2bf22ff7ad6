"""Transaction management.

A Transaction owns one connection from BEGIN until COMMIT or ROLLBACK and
releases it exactly once. Once finished, every further statement on it is
rejected with TransactionStateError.
"""

from __future__ import annotations

import inspect
import logging
import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from sqlweave.core.enums import IsolationLevel, QueryType, TransactionState, TransactionType
from sqlweave.core.exceptions import (
    ConcurrentTransactionUseError,
    TransactionStateError,
    UsageError,
)

if TYPE_CHECKING:
    from sqlweave.core.engine import Engine

logger = logging.getLogger(__name__)


class TransactionOptions(BaseModel):
    """Per-transaction settings; unset fields fall back to the engine config."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    isolation_level: IsolationLevel | None = None
    type: TransactionType | None = None
    logging: bool | Callable[..., Any] | None = None


class Transaction:
    """One database transaction.

    Created by ``Engine.transaction()``. In manual mode the caller must call
    ``commit()`` or ``rollback()``; a transaction that is never finished keeps
    its connection checked out. Used as ``async with``, it commits on a clean
    exit and rolls back when the block raises.
    """

    def __init__(self, engine: Engine, options: TransactionOptions | None = None) -> None:
        options = options or TransactionOptions()
        supports = engine.dialect.supports
        self.engine = engine
        self.isolation_level = options.isolation_level or engine.config.isolation_level
        self.type = options.type or engine.config.transaction_type
        if self.isolation_level is not None and self.isolation_level not in supports.isolation_levels:
            raise UsageError(
                f"Isolation level {self.isolation_level.value} is not supported "
                f"by the {engine.dialect.name} dialect"
            )
        if self.type not in supports.transaction_types:
            raise UsageError(
                f"Transaction type {self.type.value} is not supported "
                f"by the {engine.dialect.name} dialect"
            )
        self.logging = options.logging
        self.id = uuid.uuid4().hex
        self.connection: Any = None
        self.finished: str | None = None
        self.state = TransactionState.CREATED
        self._released = True
        self._executing = False
        self._after_commit: list[Callable[..., Any]] = []

    def __repr__(self) -> str:
        return f"Transaction(id={self.id!r}, state={self.state.value!r})"

    async def __aenter__(self) -> Transaction:
        if self.state == TransactionState.CREATED:
            await self.prepare_environment()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self.finished is not None:
            return
        if exc_type is not None:
            await self.rollback()
        else:
            await self.commit()

    def _query_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"transaction": self, "type": QueryType.TRANSACTION}
        if self.logging is not None:
            options["logging"] = self.logging
        return options

    async def prepare_environment(self) -> None:
        """Acquire a write connection and issue the begin statements."""
        manager = self.engine.connection_manager
        self.connection = await manager.acquire(QueryType.TRANSACTION, use_master=True)
        self._released = False
        generator = self.engine.dialect.generator
        try:
            for sql in generator.start_transaction_queries(self.isolation_level, self.type):
                await self.engine.query(sql, **self._query_options())
        except BaseException:
            self.finished = "rollback"
            self.state = TransactionState.ROLLED_BACK
            await self._release()
            raise
        self.state = TransactionState.ACTIVE
        logger.debug("Transaction %s started", self.id)

    async def commit(self) -> None:
        """Commit and release the connection.

        A failed COMMIT still finishes the transaction (``finished`` is
        ``"commit"``) and releases its connection, but the state is
        ROLLED_BACK because the backend discarded the work; the error
        propagates. A commit rejected while another statement is running
        leaves the transaction untouched.
        """
        if self.finished is not None:
            raise TransactionStateError(self.id, self.finished, "commit")
        sql = self.engine.dialect.generator.commit_query()
        self._ensure_idle(sql)
        try:
            await self.engine.query(sql, completes_transaction=True, **self._query_options())
        except ConcurrentTransactionUseError:
            raise
        except BaseException:
            await self._finish("commit", TransactionState.ROLLED_BACK)
            raise
        await self._finish("commit", TransactionState.COMMITTED)
        logger.debug("Transaction %s committed", self.id)

        for callback in list(self._after_commit):
            result = callback(self)
            if inspect.isawaitable(result):
                await result

    async def rollback(self) -> None:
        """Roll back and release the connection."""
        if self.finished is not None:
            raise TransactionStateError(self.id, self.finished, "rollback")
        sql = self.engine.dialect.generator.rollback_query()
        self._ensure_idle(sql)
        try:
            await self.engine.query(sql, completes_transaction=True, **self._query_options())
        except ConcurrentTransactionUseError:
            raise
        except BaseException:
            await self._finish("rollback", TransactionState.ROLLED_BACK)
            raise
        await self._finish("rollback", TransactionState.ROLLED_BACK)
        logger.debug("Transaction %s rolled back", self.id)

    def after_commit(self, callback: Callable[..., Any]) -> None:
        """Run *callback(transaction)* once this transaction has committed."""
        if not callable(callback):
            raise UsageError("after_commit expects a callable")
        self._after_commit.append(callback)

    def check(self, sql: str, *, completes_transaction: bool = False) -> None:
        """Reject *sql* if this transaction is already finished."""
        if self.finished is not None and not completes_transaction:
            raise TransactionStateError(self.id, self.finished, "use", sql=sql)

    def _ensure_idle(self, sql: str) -> None:
        if self._executing:
            raise ConcurrentTransactionUseError(self.id, sql)

    def _claim(self, sql: str) -> None:
        self._ensure_idle(sql)
        self._executing = True

    def _unclaim(self) -> None:
        self._executing = False

    async def _finish(self, finished: str, state: TransactionState) -> None:
        self.finished = finished
        self.state = state
        await self._release()

    async def _release(self) -> None:
        if self._released:
            return
        self._released = True
        await self.engine.connection_manager.release(self.connection)
