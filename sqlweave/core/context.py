"""Ambient transaction context.

When an ambient namespace is installed, a managed transaction binds itself
into the namespace for the duration of its callback, and every query issued
from that call chain without an explicit ``transaction`` option joins it.

The namespace is process-wide, but ContextVarNamespace keeps one value per
asyncio task and call chain, so concurrent managed transactions never see
each other.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from sqlweave.core.exceptions import ConfigurationError

TRANSACTION_KEY = "transaction"


class ContextVarNamespace:
    """Key/value namespace backed by one ContextVar per key."""

    def __init__(self, name: str = "sqlweave") -> None:
        self.name = name
        self._vars: dict[str, ContextVar[Any]] = {}

    def _var(self, key: str) -> ContextVar[Any]:
        if key not in self._vars:
            self._vars[key] = ContextVar(f"{self.name}.{key}", default=None)
        return self._vars[key]

    def get(self, key: str) -> Any:
        return self._var(key).get()

    @contextmanager
    def bind(self, key: str, value: Any) -> Iterator[None]:
        """Set *key* for the enclosed block, restoring the previous value after."""
        token = self._var(key).set(value)
        try:
            yield
        finally:
            self._var(key).reset(token)


_namespace: Any = None


def install_ambient_context(namespace: Any = None) -> Any:
    """Install *namespace* (a fresh ContextVarNamespace by default).

    Only engines constructed afterwards take part in ambient propagation.

    Raises:
        ConfigurationError: If the namespace lacks callable ``get`` and ``bind``.
    """
    global _namespace
    if namespace is None:
        namespace = ContextVarNamespace()
    for attribute in ("get", "bind"):
        if not callable(getattr(namespace, attribute, None)):
            raise ConfigurationError(
                f"Ambient context namespace must provide a callable '{attribute}'"
            )
    _namespace = namespace
    return namespace


def uninstall_ambient_context() -> None:
    global _namespace
    _namespace = None


def current_ambient_context() -> Any:
    return _namespace
