"""Mapper protocol.

The Engine calls map_many on SELECT results of queries that name a model.
"""

from __future__ import annotations

from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class Mapper(Protocol[T]):
    """Base mapper protocol."""

    def map_one(self, row: dict[str, Any]) -> T:
        """Map a single row dict to a target object."""
        ...

    def map_many(self, rows: list[dict[str, Any]]) -> list[T]:
        """Map multiple row dicts to a list of target objects."""
        ...


def nest_row(row: dict[str, Any]) -> dict[str, Any]:
    """Expand dotted column names into nested dicts.

    ``{"id": 1, "owner.name": "a"}`` becomes ``{"id": 1, "owner": {"name": "a"}}``.
    """
    nested: dict[str, Any] = {}
    for key, value in row.items():
        target = nested
        *parents, leaf = key.split(".")
        for part in parents:
            child = target.get(part)
            if not isinstance(child, dict):
                child = target[part] = {}
            target = child
        target[leaf] = value
    return nested
