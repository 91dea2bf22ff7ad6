"""Unit tests for ambient transaction propagation."""

from __future__ import annotations

import asyncio

import pytest

from sqlweave.core.context import (
    TRANSACTION_KEY,
    ContextVarNamespace,
    current_ambient_context,
    install_ambient_context,
    uninstall_ambient_context,
)
from sqlweave.core.exceptions import ConfigurationError


class TestContextVarNamespace:
    def test_bind_restores_previous_value(self) -> None:
        namespace = ContextVarNamespace()
        assert namespace.get("k") is None
        with namespace.bind("k", 1):
            with namespace.bind("k", 2):
                assert namespace.get("k") == 2
            assert namespace.get("k") == 1
        assert namespace.get("k") is None

    async def test_tasks_do_not_share_values(self) -> None:
        namespace = ContextVarNamespace()

        async def worker(value: int) -> int:
            with namespace.bind("k", value):
                await asyncio.sleep(0)
                return namespace.get("k")  # type: ignore[no-any-return]

        assert await asyncio.gather(worker(1), worker(2)) == [1, 2]


class TestInstall:
    def test_install_default_namespace(self) -> None:
        namespace = install_ambient_context()
        assert isinstance(namespace, ContextVarNamespace)
        assert current_ambient_context() is namespace
        uninstall_ambient_context()
        assert current_ambient_context() is None

    def test_rejects_namespace_without_bind(self) -> None:
        class GetOnly:
            def get(self, key: str) -> None:
                return None

        with pytest.raises(ConfigurationError, match="bind"):
            install_ambient_context(GetOnly())

    def test_rejects_non_callable_get(self) -> None:
        class Broken:
            get = None

            def bind(self, key, value):  # pragma: no cover
                raise NotImplementedError

        with pytest.raises(ConfigurationError, match="get"):
            install_ambient_context(Broken())


class TestAmbientTransaction:
    async def test_queries_in_callback_join_the_transaction(self, make_engine, adapter) -> None:
        install_ambient_context()
        engine = make_engine()

        async def work(transaction) -> None:
            await engine.query("INSERT INTO t VALUES (1)")

        await engine.transaction(work)
        connections = {connection for connection, _, _ in adapter.executed}
        assert len(connections) == 1
        assert adapter.statements == ["START TRANSACTION", "INSERT INTO t VALUES (1)", "COMMIT"]

    async def test_explicit_none_opts_out(self, make_engine, adapter) -> None:
        install_ambient_context()
        engine = make_engine()
        seen = []

        async def work(transaction) -> None:
            await engine.query(
                "SELECT 1", transaction=None, logging=lambda message, elapsed: seen.append(message)
            )

        await engine.transaction(work)
        assert seen == ["Executing (default): SELECT 1"]

    async def test_ambient_is_cleared_after_callback(self, make_engine) -> None:
        namespace = install_ambient_context()
        engine = make_engine()
        await engine.transaction(lambda transaction: None)
        assert namespace.get(TRANSACTION_KEY) is None

    async def test_engine_created_before_install_ignores_ambient(self, make_engine, adapter) -> None:
        engine = make_engine()
        install_ambient_context()
        messages: list[str] = []

        async def work(transaction) -> None:
            await engine.query("SELECT 1", logging=lambda message, elapsed: messages.append(message))

        await engine.transaction(work)
        assert messages == ["Executing (default): SELECT 1"]

    async def test_concurrent_managed_transactions_are_isolated(self, make_engine) -> None:
        namespace = install_ambient_context()
        engine = make_engine()

        async def work(transaction) -> bool:
            await asyncio.sleep(0)
            return namespace.get(TRANSACTION_KEY) is transaction  # type: ignore[no-any-return]

        results = await asyncio.gather(engine.transaction(work), engine.transaction(work))
        assert results == [True, True]
