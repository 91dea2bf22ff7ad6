"""Schema lifecycle: bulk sync, truncate and drop of every defined model.

Order follows the model dependency graph, re-sorted from the live registry on
each call. Referenced tables are created first and dropped last. When the
graph has a cycle, the strategy depends on what the dialect supports:
toggling foreign key checks on a pinned connection, or creating tables
without constraints and adding the constraints in a second pass.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlweave.core.enums import QueryType
from sqlweave.core.exceptions import DependencyOrderError, UsageError

if TYPE_CHECKING:
    from sqlweave.core.engine import Engine
    from sqlweave.core.models import ModelDefinition

logger = logging.getLogger(__name__)


class SchemaSynchronizer:
    """Runs sync/truncate/drop across every model defined on an engine."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @property
    def _supports(self) -> Any:
        return self.engine.dialect.supports

    @asynccontextmanager
    async def _foreign_key_checks_disabled(self, options: dict[str, Any]) -> AsyncIterator[dict[str, Any]]:
        """Pin one connection with FK checks off; yields options routed to it.

        A caller-supplied transaction already pins a connection and is reused.
        Checks are restored before the connection goes back to the pool.
        """
        interface = self.engine.query_interface
        if options.get("transaction") is not None or options.get("connection") is not None:
            pinned = dict(options)
            await interface.set_foreign_key_checks(False, **pinned)
            try:
                yield pinned
            finally:
                await interface.set_foreign_key_checks(True, **pinned)
            return

        async with self.engine.connection_manager.get_connection(
            QueryType.RAW, use_master=True
        ) as connection:
            pinned = {**options, "connection": connection, "transaction": None}
            await interface.set_foreign_key_checks(False, **pinned)
            try:
                yield pinned
            finally:
                await interface.set_foreign_key_checks(True, **pinned)

    async def sync(self, **options: Any) -> Engine:
        """Create every model's table, referenced tables first."""
        options = {**self.engine.config.sync, **options}
        run_hooks = options.pop("hooks", True)
        match = options.pop("match", None)
        force = options.pop("force", False)

        if match is not None:
            pattern = match if isinstance(match, re.Pattern) else re.compile(match)
            database = self.engine.database_name or ""
            if not pattern.search(database):
                raise UsageError(
                    f"Database \"{database}\" does not match sync match parameter \"{pattern.pattern}\""
                )

        if run_hooks:
            await self.engine.hooks.run("before_bulk_sync", options)
        if force:
            await self.drop(**options)

        registry = self.engine.models
        if len(registry) == 0:
            await self.engine.authenticate(**_executor_options(options))
        else:
            ordered = registry.topologically_sorted_models()
            if ordered is not None:
                for model in ordered:
                    await model.sync(**options)
            elif self._supports.foreign_key_toggle:
                logger.info("Model graph is cyclic; syncing with foreign key checks disabled")
                async with self._foreign_key_checks_disabled(options) as pinned:
                    for model in registry:
                        await model.sync(**pinned)
            else:
                logger.info("Model graph is cyclic; syncing tables before their constraints")
                models = list(registry)
                for model in models:
                    await model.sync(**{**options, "without_foreign_keys": True})
                for model in models:
                    await model.sync(**{**options, "alter": True})

        if run_hooks:
            await self.engine.hooks.run("after_bulk_sync", options)
        return self.engine

    async def truncate(self, *, cascade: bool = False, **options: Any) -> None:
        """Empty every model's table, dependents before the tables they reference.

        Raises:
            DependencyOrderError: If the graph is cyclic and *cascade* is not set.
        """
        registry = self.engine.models
        ordered = registry.topologically_sorted_models()
        supports = self._supports

        if ordered is None and not cascade:
            raise DependencyOrderError(
                "Model dependency graph has a cycle; truncate with cascade=True "
                "so no safe truncation order is needed"
            )

        if ordered is None and supports.foreign_key_toggle:
            async with self._foreign_key_checks_disabled(options) as pinned:
                for model in registry:
                    await model.truncate(cascade=cascade, **pinned)
            return

        if cascade and supports.parallel_ddl and supports.truncate_cascade:
            await asyncio.gather(
                *(model.truncate(cascade=True, **options) for model in registry)
            )
            return

        models = list(registry) if ordered is None else list(reversed(ordered))
        for model in models:
            await model.truncate(cascade=cascade, **options)

    async def drop(self, *, cascade: bool = False, **options: Any) -> None:
        """Drop every model's table, dependents before the tables they reference."""
        registry = self.engine.models
        supports = self._supports

        if cascade and supports.drop_cascade:
            for model in registry:
                await model.drop(cascade=True, **options)
            return

        ordered = registry.topologically_sorted_models()
        if ordered is not None:
            for model in reversed(ordered):
                await model.drop(cascade=cascade, **options)
            return

        if supports.foreign_key_toggle:
            async with self._foreign_key_checks_disabled(options) as pinned:
                for model in registry:
                    await model.drop(cascade=cascade, **pinned)
            return

        await self._remove_foreign_keys(list(registry), options)
        for model in registry:
            await model.drop(cascade=cascade, **options)

    async def _remove_foreign_keys(
        self, models: list[ModelDefinition], options: dict[str, Any]
    ) -> None:
        interface = self.engine.query_interface
        options = dict(options)
        override = options.pop("schema", None)
        for model in models:
            schema = override or model.schema
            if not await interface.table_exists(model.table_name, schema=schema, **options):
                continue
            references = await interface.get_foreign_key_references(
                model.table_name, schema=schema, **options
            )
            for reference in references:
                if reference.constraint_name:
                    await interface.remove_constraint(
                        model.table_name, reference.constraint_name, schema=schema, **options
                    )


def _executor_options(options: dict[str, Any]) -> dict[str, Any]:
    keys = ("transaction", "logging", "benchmark", "raw_errors", "retry")
    return {key: options[key] for key in keys if key in options}
