"""Per-engine lifecycle hooks."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from sqlweave.core.exceptions import UsageError

HOOK_NAMES: frozenset[str] = frozenset(
    {
        "before_init",
        "after_init",
        "before_query",
        "after_query",
        "before_bulk_sync",
        "after_bulk_sync",
    }
)


class Hooks:
    """Named lists of callbacks run in registration order.

    Callbacks may be plain functions or coroutine functions. Errors raised by
    a callback propagate to the operation that ran the hook.
    """

    def __init__(self, initial: Mapping[str, Sequence[Callable[..., Any]]] | None = None) -> None:
        self._hooks: dict[str, list[Callable[..., Any]]] = {}
        for name, callbacks in (initial or {}).items():
            for callback in callbacks:
                self.add(name, callback)

    def add(self, name: str, callback: Callable[..., Any]) -> None:
        self._validate(name)
        self._hooks.setdefault(name, []).append(callback)

    def remove(self, name: str, callback: Callable[..., Any]) -> None:
        self._validate(name)
        callbacks = self._hooks.get(name, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def has(self, name: str) -> bool:
        return bool(self._hooks.get(name))

    async def run(self, name: str, *args: Any) -> None:
        """Run every callback for *name*, awaiting coroutine results."""
        self._validate(name)
        for callback in list(self._hooks.get(name, [])):
            result = callback(*args)
            if inspect.isawaitable(result):
                await result

    def run_sync(self, name: str, *args: Any) -> None:
        """Run callbacks outside an event loop (construction-time hooks)."""
        self._validate(name)
        for callback in list(self._hooks.get(name, [])):
            result = callback(*args)
            if inspect.isawaitable(result):
                # close the coroutine so it is not reported as never awaited
                close = getattr(result, "close", None)
                if close is not None:
                    close()
                raise UsageError(f"Hook '{name}' runs synchronously and cannot be async")

    @staticmethod
    def _validate(name: str) -> None:
        if name not in HOOK_NAMES:
            raise UsageError(
                f"Unknown hook '{name}'. Available hooks: {', '.join(sorted(HOOK_NAMES))}"
            )
