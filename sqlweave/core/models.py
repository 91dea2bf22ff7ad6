"""Data-described models and the model dependency graph.

A ModelDefinition is plain data: a name, a table and its columns. Columns
that reference another model form the edges of the dependency graph the
schema synchronizer orders its work by.
"""

from __future__ import annotations

import dataclasses
import logging
from collections import deque
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlweave.core.exceptions import ModelError
from sqlweave.mapping.model import ModelMapper
from sqlweave.mapping.protocol import Mapper

if TYPE_CHECKING:
    from sqlweave.core.engine import Engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reference:
    """Foreign key target of a column."""

    model: str
    key: str = "id"
    on_delete: str | None = None
    on_update: str | None = None
    constraint_name: str | None = None


@dataclass(frozen=True)
class Column:
    """Column description. ``type`` is a SQL type string such as ``"INTEGER"``."""

    type: str
    primary_key: bool = False
    autoincrement: bool = False
    allow_null: bool = True
    unique: bool = False
    default: Any = None
    field: str | None = None
    references: Reference | None = None

    @classmethod
    def coerce(cls, attribute: str, value: Column | str | Mapping[str, Any]) -> Column:
        """Normalize a column given as a Column, a type string or a mapping."""
        if isinstance(value, str):
            column = cls(type=value)
        elif isinstance(value, Mapping):
            fields = dict(value)
            if isinstance(fields.get("references"), str):
                fields["references"] = Reference(model=fields["references"])
            elif isinstance(fields.get("references"), Mapping):
                fields["references"] = Reference(**fields["references"])
            column = cls(**fields)
        elif isinstance(value, Column):
            column = value
        else:
            raise ModelError(f"Invalid definition for column '{attribute}': {value!r}")
        if column.field is None:
            column = dataclasses.replace(column, field=attribute)
        return column


class ModelDefinition:
    """A model bound to an Engine.

    Args:
        name: Model name, used by references from other models.
        columns: Attribute name to Column (or type string / mapping).
        engine: Owning engine.
        table_name: Table name; defaults to the model name.
        schema: Optional schema the table lives in.
        target: Optional class SELECT results are mapped onto.
    """

    def __init__(
        self,
        name: str,
        columns: Mapping[str, Column | str | Mapping[str, Any]],
        *,
        engine: Engine,
        table_name: str | None = None,
        schema: str | None = None,
        target: type | None = None,
    ) -> None:
        if not columns:
            raise ModelError(f"Model '{name}' must define at least one column")
        self.name = name
        self.engine = engine
        self.table_name = table_name or name
        self.schema = schema
        self.target = target
        self.columns: dict[str, Column] = {
            attribute: Column.coerce(attribute, value) for attribute, value in columns.items()
        }
        self.mapper: Mapper[Any] = ModelMapper(target, aliases=self.field_map)

    def __repr__(self) -> str:
        return f"ModelDefinition({self.name!r}, table_name={self.table_name!r})"

    @property
    def field_map(self) -> dict[str, str]:
        """Database column name to attribute name, for renamed columns only."""
        return {
            column.field: attribute
            for attribute, column in self.columns.items()
            if column.field and column.field != attribute
        }

    @property
    def dependencies(self) -> set[str]:
        """Names of the models this model references (itself included)."""
        return {c.references.model for c in self.columns.values() if c.references is not None}

    def foreign_keys(self) -> list[str]:
        """Attribute names of referencing columns, in declaration order."""
        return [attribute for attribute, c in self.columns.items() if c.references is not None]

    def constraint_name(self, attribute: str) -> str:
        column = self.columns[attribute]
        if column.references is not None and column.references.constraint_name:
            return column.references.constraint_name
        return f"{self.table_name}_{column.field}_fkey"

    def referenced_table(self, reference: Reference) -> str:
        registry = self.engine.models
        if registry.has(reference.model):
            return registry.get(reference.model).table_name
        return reference.model

    async def sync(
        self,
        *,
        force: bool = False,
        alter: bool = False,
        without_foreign_keys: bool = False,
        schema: str | None = None,
        **options: Any,
    ) -> ModelDefinition:
        """Create this model's table.

        ``force`` drops the table first. ``alter`` adds the columns and (where
        the dialect can) the foreign key constraints the live table lacks.
        ``without_foreign_keys`` creates the table without its constraints.
        """
        interface = self.engine.query_interface
        schema = schema or self.schema
        if force:
            await interface.drop_table(self.table_name, schema=schema, **options)

        await interface.create_table(
            self, include_foreign_keys=not without_foreign_keys, schema=schema, **options
        )
        if not alter:
            return self

        existing = set(await interface.describe_table(self.table_name, schema=schema, **options))
        for column in self.columns.values():
            if column.field not in existing:
                logger.info("Adding column %s.%s", self.table_name, column.field)
                await interface.add_column(self.table_name, column, schema=schema, **options)

        if self.engine.dialect.supports.alter_foreign_keys and self.foreign_keys():
            references = await interface.get_foreign_key_references(
                self.table_name, schema=schema, **options
            )
            constrained = {reference.column_name for reference in references}
            for attribute in self.foreign_keys():
                if self.columns[attribute].field not in constrained:
                    await interface.add_foreign_key(self, attribute, schema=schema, **options)
        return self

    async def drop(
        self, *, cascade: bool = False, schema: str | None = None, **options: Any
    ) -> None:
        cascade = cascade and self.engine.dialect.supports.drop_cascade
        await self.engine.query_interface.drop_table(
            self.table_name, schema=schema or self.schema, cascade=cascade, **options
        )

    async def truncate(
        self, *, cascade: bool = False, schema: str | None = None, **options: Any
    ) -> None:
        cascade = cascade and self.engine.dialect.supports.truncate_cascade
        await self.engine.query_interface.truncate_table(
            self.table_name, schema=schema or self.schema, cascade=cascade, **options
        )


class ModelRegistry:
    """Models defined on one engine, in definition order."""

    def __init__(self) -> None:
        self._models: dict[str, ModelDefinition] = {}

    def add(self, model: ModelDefinition) -> ModelDefinition:
        """Register *model*, replacing any model with the same name."""
        if model.name in self._models:
            logger.debug("Redefining model '%s'", model.name)
            del self._models[model.name]
        self._models[model.name] = model
        return model

    def remove(self, name: str) -> None:
        self._models.pop(name, None)

    def get(self, name: str) -> ModelDefinition:
        try:
            return self._models[name]
        except KeyError:
            raise ModelError(f"Model '{name}' has not been defined") from None

    def has(self, name: str) -> bool:
        return name in self._models

    def for_target(self, target: type) -> ModelDefinition | None:
        for model in self._models.values():
            if model.target is target:
                return model
        return None

    def __iter__(self) -> Iterator[ModelDefinition]:
        return iter(list(self._models.values()))

    def __len__(self) -> int:
        return len(self._models)

    def topologically_sorted_models(self) -> list[ModelDefinition] | None:
        """Order models so every model follows the models it references.

        Computed from the live registry on every call. References to models
        that are not defined are ignored. Returns None when the graph has a
        cycle, a model referencing itself included.
        """
        pending: dict[str, set[str]] = {
            name: {dep for dep in model.dependencies if dep in self._models}
            for name, model in self._models.items()
        }
        dependents: dict[str, list[str]] = {name: [] for name in self._models}
        for name, deps in pending.items():
            for dep in deps:
                dependents[dep].append(name)

        ready = deque(name for name, deps in pending.items() if not deps)
        ordered: list[ModelDefinition] = []
        while ready:
            name = ready.popleft()
            ordered.append(self._models[name])
            for dependent in dependents[name]:
                pending[dependent].discard(name)
                if not pending[dependent]:
                    ready.append(dependent)

        if len(ordered) != len(self._models):
            cyclic = sorted(name for name, deps in pending.items() if deps)
            logger.debug("Model dependency cycle among: %s", ", ".join(cyclic))
            return None
        return ordered
