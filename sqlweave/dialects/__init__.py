"""Dialect selector.

Maps a configured backend identifier to its Dialect through a fixed table.
Unknown identifiers are a configuration-time error; new backends are added
with ``register_dialect`` rather than by importing modules by name.
"""

from __future__ import annotations

from collections.abc import Callable

from sqlweave.core.exceptions import UnsupportedDialectError
from sqlweave.dialects import db2, mssql, mysql, postgres, snowflake, sqlite
from sqlweave.dialects.base import Dialect, DialectSupports, ForeignKeyReference, QueryGenerator

# Dialect name -> factory building a fresh Dialect
_DIALECTS: dict[str, Callable[[], Dialect]] = {
    "postgres": postgres.create_dialect,
    "mysql": mysql.create_dialect,
    "mariadb": mysql.create_mariadb_dialect,
    "sqlite": sqlite.create_dialect,
    "mssql": mssql.create_dialect,
    "db2": db2.create_dialect,
    "snowflake": snowflake.create_dialect,
}

_ALIASES: dict[str, str] = {
    "postgresql": "postgres",
}


def normalize_dialect_name(name: str) -> str:
    lowered = name.lower()
    return _ALIASES.get(lowered, lowered)


def supported_dialects() -> list[str]:
    return sorted(_DIALECTS)


def select_dialect(name: str | None) -> Dialect:
    """Resolve *name* (or an accepted alias) to a Dialect.

    Raises:
        UnsupportedDialectError: If *name* is missing or not registered.
    """
    if not name:
        raise UnsupportedDialectError(None, supported_dialects())
    canonical = normalize_dialect_name(name)
    try:
        factory = _DIALECTS[canonical]
    except KeyError:
        raise UnsupportedDialectError(name, supported_dialects()) from None
    return factory()


def register_dialect(
    name: str,
    factory: Callable[[], Dialect],
    *,
    aliases: tuple[str, ...] = (),
) -> None:
    """Add (or replace) a dialect in the selector table."""
    canonical = name.lower()
    _DIALECTS[canonical] = factory
    for alias in aliases:
        _ALIASES[alias.lower()] = canonical


__all__ = [
    "Dialect",
    "DialectSupports",
    "ForeignKeyReference",
    "QueryGenerator",
    "normalize_dialect_name",
    "register_dialect",
    "select_dialect",
    "supported_dialects",
]
