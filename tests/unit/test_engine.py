"""Unit tests for the Engine query pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from unittest.mock import AsyncMock

import pytest

from sqlweave.adapters.protocol import QueryMetadata
from sqlweave.core.engine import QueryDescriptor
from sqlweave.core.enums import QueryType
from sqlweave.core.exceptions import BackendError, ModelError, UsageError


@dataclass
class User:
    id: int
    name: str


class TestQueryOptions:
    async def test_replacements_and_bind_conflict(self, make_engine) -> None:
        engine = make_engine()
        engine.connection_manager.acquire = AsyncMock()
        with pytest.raises(UsageError, match="Both replacements and bind"):
            await engine.query("SELECT :a", replacements={"a": 1}, bind=[1])
        engine.connection_manager.acquire.assert_not_called()

    async def test_descriptor_values_conflict_with_replacements(self, make_engine) -> None:
        engine = make_engine()
        engine.connection_manager.acquire = AsyncMock()
        with pytest.raises(UsageError, match="values"):
            await engine.query(QueryDescriptor("SELECT ?", values=[1]), replacements=[2])
        engine.connection_manager.acquire.assert_not_called()

    async def test_descriptor_bind_conflict(self, make_engine) -> None:
        engine = make_engine()
        with pytest.raises(UsageError, match="bind"):
            await engine.query({"query": "SELECT $1", "bind": [1]}, bind=[2])

    async def test_unknown_option(self, make_engine) -> None:
        engine = make_engine()
        with pytest.raises(UsageError, match="Invalid query options"):
            await engine.query("SELECT 1", fetch_size=10)

    async def test_malformed_retry_options(self, make_engine, adapter) -> None:
        engine = make_engine()
        with pytest.raises(UsageError, match="retry"):
            await engine.query("SELECT 1", retry={"max": 0})
        assert adapter.executed == []

    async def test_config_query_defaults_apply(self, make_engine, adapter) -> None:
        engine = make_engine(query={"type": QueryType.SELECT})
        adapter.rows["SELECT 1 AS one"] = [{"one": 1}]
        assert await engine.query("SELECT 1 AS one") == [{"one": 1}]


class TestQueryExecution:
    async def test_descriptor_values_become_replacements(self, make_engine, adapter) -> None:
        engine = make_engine()
        await engine.query(QueryDescriptor("SELECT * FROM t WHERE a = ?", values=["x"]))
        assert adapter.statements == ["SELECT * FROM t WHERE a = 'x'"]

    async def test_bind_is_rewritten_to_native_placeholders(self, make_engine, adapter) -> None:
        engine = make_engine()
        await engine.query("SELECT * FROM t WHERE a = $1 AND b = $2", bind=[1, 2])
        _, sql, params = adapter.executed[0]
        assert sql == "SELECT * FROM t WHERE a = %s AND b = %s"
        assert params == [1, 2]

    async def test_non_select_returns_rows_and_metadata(self, make_engine) -> None:
        engine = make_engine()
        rows, metadata = await engine.query("UPDATE t SET a = 1")
        assert rows == []
        assert isinstance(metadata, QueryMetadata)

    async def test_plain_returns_first_row(self, make_engine, adapter) -> None:
        engine = make_engine()
        adapter.rows["SELECT x FROM t"] = [{"x": 1}, {"x": 2}]
        assert await engine.query("SELECT x FROM t", plain=True) == {"x": 1}
        adapter.rows["SELECT x FROM t"] = []
        assert await engine.query("SELECT x FROM t", plain=True) is None

    async def test_nest_expands_dotted_columns(self, make_engine, adapter) -> None:
        engine = make_engine()
        adapter.rows["SELECT 1"] = [{"id": 1, "owner.name": "ann", "owner.id": 3}]
        assert await engine.query("SELECT 1", nest=True) == [
            {"id": 1, "owner": {"name": "ann", "id": 3}}
        ]

    async def test_model_results_are_mapped(self, make_engine, adapter) -> None:
        engine = make_engine()
        engine.define("User", {"id": "INTEGER", "name": {"type": "TEXT", "field": "full_name"}}, target=User)
        adapter.rows["SELECT * FROM users"] = [{"id": 1, "full_name": "Ann"}]
        assert await engine.query("SELECT * FROM users", model="User") == [User(id=1, name="Ann")]

    async def test_instance_resolves_model(self, make_engine, adapter) -> None:
        engine = make_engine()
        engine.define("User", {"id": "INTEGER", "name": "TEXT"}, target=User)
        adapter.rows["SELECT * FROM users"] = [{"id": 2, "name": "Bo"}]
        result = await engine.query("SELECT * FROM users", instance=User(id=0, name=""))
        assert result == [User(id=2, name="Bo")]

    async def test_raw_with_map_to_model_renames_fields(self, make_engine, adapter) -> None:
        engine = make_engine()
        model = engine.define("User", {"id": "INTEGER", "name": {"type": "TEXT", "field": "full_name"}})
        adapter.rows["SELECT * FROM users"] = [{"id": 1, "full_name": "Ann"}]
        result = await engine.query(
            "SELECT * FROM users", model=model, raw=True, map_to_model=True
        )
        assert result == [{"id": 1, "name": "Ann"}]

    async def test_unknown_model_class(self, make_engine) -> None:
        engine = make_engine()
        with pytest.raises(ModelError):
            await engine.query("SELECT 1", model=User)

    async def test_backend_errors_are_wrapped(self, make_engine, adapter) -> None:
        engine = make_engine()
        adapter.failures.append(RuntimeError("relation does not exist"))
        with pytest.raises(BackendError, match="relation does not exist") as exc_info:
            await engine.query("SELECT * FROM missing")
        assert exc_info.value.sql == "SELECT * FROM missing"
        assert isinstance(exc_info.value.original, RuntimeError)

    async def test_raw_errors_are_not_wrapped(self, make_engine, adapter) -> None:
        engine = make_engine()
        adapter.failures.append(RuntimeError("boom"))
        with pytest.raises(RuntimeError, match="boom"):
            await engine.query("SELECT 1", raw_errors=True)

    async def test_connection_released_after_failure(self, make_engine, adapter) -> None:
        engine = make_engine(pool={"max": 1, "acquire": 0.5})
        adapter.failures.append(RuntimeError("boom"))
        with pytest.raises(BackendError):
            await engine.query("SELECT 1")
        # the single pooled connection is available again
        await engine.query("SELECT 2")
        assert len(adapter.opened) == 1

    async def test_search_path_is_set_first(self, make_engine, adapter) -> None:
        engine = make_engine()
        await engine.query("SELECT 1", search_path="tenant_a")
        assert adapter.statements == ["SET search_path TO tenant_a", "SELECT 1"]

    async def test_search_path_ignored_without_support(self, make_engine, adapter) -> None:
        engine = make_engine("sqlite")
        await engine.query("SELECT 1", search_path="tenant_a")
        assert adapter.statements == ["SELECT 1"]


class TestQueryHooksAndLogging:
    async def test_query_hooks_wrap_execution(self, make_engine, adapter) -> None:
        engine = make_engine()
        events: list[str] = []

        async def before(options, context) -> None:
            events.append(f"before {context.sql}")

        def after(options, context) -> None:
            events.append(f"after {context.sql}")

        engine.hooks.add("before_query", before)
        engine.hooks.add("after_query", after)
        await engine.query("SELECT 1")
        assert events == ["before SELECT 1", "after SELECT 1"]

    async def test_after_query_runs_on_failure(self, make_engine, adapter) -> None:
        engine = make_engine()
        events: list[str] = []
        engine.hooks.add("after_query", lambda options, context: events.append("after"))
        adapter.failures.append(RuntimeError("boom"))
        with pytest.raises(BackendError):
            await engine.query("SELECT 1")
        assert events == ["after"]

    async def test_logging_callable(self, make_engine) -> None:
        engine = make_engine()
        messages: list[str] = []
        await engine.query("SELECT 1", logging=lambda message, elapsed: messages.append(message))
        assert messages == ["Executing (default): SELECT 1"]

    async def test_benchmark_reports_elapsed_time(self, make_engine) -> None:
        engine = make_engine(benchmark=True)
        seen: list[tuple[str, float]] = []
        await engine.query("SELECT 1", logging=lambda message, elapsed: seen.append((message, elapsed)))
        message, elapsed = seen[0]
        assert message.startswith("Executed (default): SELECT 1 Elapsed time:")
        assert elapsed >= 0

    async def test_log_query_parameters(self, make_engine) -> None:
        engine = make_engine(log_query_parameters=True)
        messages: list[str] = []
        await engine.query(
            "SELECT $1", bind=[7], logging=lambda message, elapsed: messages.append(message)
        )
        assert messages == ["Executing (default): SELECT %s; [7]"]

    async def test_logging_true_uses_package_logger(self, make_engine, caplog) -> None:
        engine = make_engine(logging=True)
        with caplog.at_level("DEBUG", logger="sqlweave.core.engine"):
            await engine.query("SELECT 42")
        assert "Executing (default): SELECT 42" in caplog.text


class TestUtilities:
    async def test_authenticate(self, make_engine, adapter) -> None:
        engine = make_engine()
        await engine.authenticate()
        assert adapter.statements == ["SELECT 1+1 AS result"]

    def test_escape(self, make_engine) -> None:
        engine = make_engine()
        assert engine.escape("it's") == "'it''s'"

    async def test_set_requires_mysql(self, make_engine) -> None:
        engine = make_engine()
        with pytest.raises(UsageError, match="mysql"):
            await engine.set({"a": 1})

    async def test_set_requires_transaction(self, make_engine) -> None:
        engine = make_engine("mysql")
        with pytest.raises(UsageError, match="transaction"):
            await engine.set({"a": 1})

    async def test_set_runs_on_transaction(self, make_engine, adapter) -> None:
        engine = make_engine("mysql")
        transaction = await engine.transaction()
        await engine.set({"lock_wait": 5}, transaction=transaction)
        await transaction.commit()
        assert adapter.statements == ["START TRANSACTION", "SET @lock_wait := 5", "COMMIT"]

    async def test_close_closes_idle_connections(self, make_engine, adapter) -> None:
        engine = make_engine()
        await engine.query("SELECT 1")
        await engine.close()
        assert adapter.opened[0].closed
