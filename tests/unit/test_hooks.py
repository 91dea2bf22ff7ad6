"""Unit tests for the per-engine hook table."""

from __future__ import annotations

import pytest

from sqlweave.core.exceptions import UsageError
from sqlweave.core.hooks import Hooks


class TestHooks:
    async def test_runs_sync_and_async_callbacks_in_order(self) -> None:
        seen: list[str] = []

        async def second(value: str) -> None:
            seen.append(f"async {value}")

        hooks = Hooks({"before_bulk_sync": [lambda value: seen.append(f"sync {value}")]})
        hooks.add("before_bulk_sync", second)
        await hooks.run("before_bulk_sync", "x")
        assert seen == ["sync x", "async x"]

    async def test_errors_propagate(self) -> None:
        def fail(*args) -> None:
            raise RuntimeError("hook failed")

        hooks = Hooks()
        hooks.add("after_query", fail)
        with pytest.raises(RuntimeError, match="hook failed"):
            await hooks.run("after_query", None, None)

    def test_remove(self) -> None:
        def callback() -> None:
            pass

        hooks = Hooks()
        hooks.add("after_init", callback)
        assert hooks.has("after_init")
        hooks.remove("after_init", callback)
        assert not hooks.has("after_init")

    def test_unknown_name(self) -> None:
        with pytest.raises(UsageError, match="Unknown hook"):
            Hooks().add("before_save", print)

    def test_sync_hooks_reject_coroutines(self) -> None:
        async def callback(config) -> None:
            pass

        hooks = Hooks({"before_init": [callback]})
        with pytest.raises(UsageError, match="synchronously"):
            hooks.run_sync("before_init", None)
