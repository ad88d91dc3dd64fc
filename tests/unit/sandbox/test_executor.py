"""Unit tests for ExecutionSandbox."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from askdb.config import SandboxSettings
from askdb.connectors.base import QueryResult
from askdb.errors import NotFound, QueryError, StatementNotAllowed
from askdb.sandbox.executor import ExecutionSandbox


class TestExecutionSandbox:
    """Policy, resolution and one-shot execution."""

    @pytest.fixture
    def registry(self, sample_connection):
        registry = AsyncMock()
        registry.resolve = AsyncMock(return_value=sample_connection)
        return registry

    @pytest.fixture
    def factory(self, mock_postgres_connector):
        return MagicMock(return_value=mock_postgres_connector)

    @pytest.mark.asyncio
    async def test_execute_returns_rows(
        self, registry, factory, mock_postgres_connector, sample_connection
    ):
        rows = [{"month": "2024-01", "revenue": 1200}]
        mock_postgres_connector.run.return_value = QueryResult(
            rows=rows, row_count=1, columns=["month", "revenue"], execution_time_ms=3.5
        )
        settings = SandboxSettings(statement_timeout=5)
        sandbox = ExecutionSandbox(registry, settings, connector_factory=factory)

        result = await sandbox.execute(sample_connection.connection_id, "SELECT 1")

        assert result == rows
        registry.resolve.assert_awaited_once_with(sample_connection.connection_id)
        factory.assert_called_once_with(sample_connection, settings)
        mock_postgres_connector.run.assert_awaited_once_with("SELECT 1")

    @pytest.mark.asyncio
    async def test_policy_rejects_before_any_io(self, registry, factory, sample_connection):
        sandbox = ExecutionSandbox(registry, connector_factory=factory)

        with pytest.raises(StatementNotAllowed):
            await sandbox.execute(sample_connection.connection_id, "DELETE FROM users")

        registry.resolve.assert_not_awaited()
        factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_connection(self, registry, factory):
        registry.resolve.side_effect = NotFound("connection", "missing")
        sandbox = ExecutionSandbox(registry, connector_factory=factory)

        with pytest.raises(NotFound):
            await sandbox.execute("missing", "SELECT 1")

        factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_query_error_propagates(
        self, registry, factory, mock_postgres_connector, sample_connection
    ):
        mock_postgres_connector.run.side_effect = QueryError(
            "Query execution failed",
            engine="postgresql",
            native_code="42703",
            native_message='column "revnue" does not exist',
            sql="SELECT revnue FROM sales",
        )
        sandbox = ExecutionSandbox(registry, connector_factory=factory)

        with pytest.raises(QueryError) as exc_info:
            await sandbox.execute(sample_connection.connection_id, "SELECT revnue FROM sales")

        assert exc_info.value.native_code == "42703"
