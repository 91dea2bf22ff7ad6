"""Row-to-model mapper.

Supports dataclasses, Pydantic models and plain classes. Models defined
without a target class map rows to plain dicts keyed by attribute name.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Generic, TypeVar

from sqlweave.core.exceptions import MappingError

T = TypeVar("T")


def _is_pydantic_model(cls: type) -> bool:
    from pydantic import BaseModel

    return isinstance(cls, type) and issubclass(cls, BaseModel)


class ModelMapper(Generic[T]):
    """Row-to-model mapper.

    Detection order:
    1. No target class -> dict with aliased keys
    2. Pydantic BaseModel -> model_validate(row)
    3. dataclass or plain class -> target_class(**row)

    Args:
        target_class: The class to construct from row data.
        aliases: Optional column-name to attribute-name mapping.
    """

    def __init__(
        self,
        target_class: type[T] | None,
        aliases: dict[str, str] | None = None,
    ) -> None:
        self._target_class = target_class
        self._aliases = aliases
        self._is_pydantic = target_class is not None and _is_pydantic_model(target_class)
        self._is_dataclass = target_class is not None and dataclasses.is_dataclass(target_class)

    def _apply_aliases(self, row: dict[str, Any]) -> dict[str, Any]:
        if not self._aliases:
            return row
        return {self._aliases.get(key, key): value for key, value in row.items()}

    def map_one(self, row: dict[str, Any]) -> T:
        """Map a single row to a target_class instance."""
        row = self._apply_aliases(row)
        if self._target_class is None:
            return row  # type: ignore[return-value]

        if self._is_pydantic:
            try:
                return self._target_class.model_validate(row)  # type: ignore[attr-defined, no-any-return]
            except Exception as e:
                raise MappingError(self._target_class.__name__, [str(e)]) from e

        if self._is_dataclass:
            # ignore columns the dataclass does not declare
            names = {f.name for f in dataclasses.fields(self._target_class)}  # type: ignore[arg-type]
            row = {key: value for key, value in row.items() if key in names}

        try:
            return self._target_class(**row)
        except TypeError as e:
            raise MappingError(self._target_class.__name__, [str(e)]) from e

    def map_many(self, rows: list[dict[str, Any]]) -> list[T]:
        return [self.map_one(row) for row in rows]
