"""
Unit tests for PostgreSQL connector.

Tests the PostgreSQL adapter with a mocked asyncpg connection.
"""

from unittest.mock import AsyncMock, patch

import pytest
from asyncpg.exceptions import (
    ConnectionDoesNotExistError,
    ConnectionFailureError,
    PostgresSyntaxError,
    QueryCanceledError,
    UndefinedColumnError,
)

from askdb.connectors.postgres import PostgresConnector
from askdb.errors import ConnectionError, IntrospectionError, QueryError


@pytest.fixture
def postgres_config():
    return {
        "host": "localhost",
        "port": 5432,
        "database": "shop",
        "user": "analyst",
        "password": "secret",
        "connect_timeout": 7,
        "statement_timeout": 12,
    }


@pytest.fixture
def mock_conn():
    conn = AsyncMock()
    conn.execute = AsyncMock(return_value="SET")
    conn.fetch = AsyncMock(return_value=[])
    conn.close = AsyncMock()
    return conn


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_passes_timeouts(self, postgres_config, mock_conn):
        with patch("asyncpg.connect", new=AsyncMock(return_value=mock_conn)) as connect:
            connector = PostgresConnector(**postgres_config)
            await connector.connect()

        assert connector.is_connected is True
        kwargs = connect.await_args.kwargs
        assert kwargs["host"] == "localhost"
        assert kwargs["database"] == "shop"
        assert kwargs["timeout"] == 7
        assert kwargs["command_timeout"] == 12

    @pytest.mark.asyncio
    async def test_connect_failure(self, postgres_config):
        with patch("asyncpg.connect", new=AsyncMock(side_effect=OSError("Connection refused"))):
            connector = PostgresConnector(**postgres_config)
            with pytest.raises(ConnectionError) as exc_info:
                await connector.connect()

        assert exc_info.value.engine == "postgresql"
        assert "Connection refused" in exc_info.value.native_message
        assert connector.is_connected is False


class TestExecute:
    @pytest.mark.asyncio
    async def test_execute_returns_rows(self, postgres_config, mock_conn):
        mock_conn.fetch = AsyncMock(
            return_value=[{"month": "2024-01", "revenue": 100}, {"month": "2024-02", "revenue": 150}]
        )
        with patch("asyncpg.connect", new=AsyncMock(return_value=mock_conn)):
            connector = PostgresConnector(**postgres_config)
            await connector.connect()
            result = await connector.execute("SELECT month, revenue FROM sales")

        assert result.row_count == 2
        assert result.columns == ["month", "revenue"]
        assert result.rows[1]["revenue"] == 150
        mock_conn.execute.assert_awaited_once_with("SET statement_timeout = 12000")
        mock_conn.fetch.assert_awaited_once_with("SELECT month, revenue FROM sales")

    @pytest.mark.asyncio
    async def test_execute_without_connection(self, postgres_config):
        connector = PostgresConnector(**postgres_config)

        with pytest.raises(ConnectionError, match="Not connected"):
            await connector.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_execute_timeout(self, postgres_config, mock_conn):
        mock_conn.fetch = AsyncMock(side_effect=QueryCanceledError("canceling statement"))
        with patch("asyncpg.connect", new=AsyncMock(return_value=mock_conn)):
            connector = PostgresConnector(**postgres_config)
            await connector.connect()

            with pytest.raises(QueryError, match="Query timeout") as exc_info:
                await connector.execute("SELECT pg_sleep(100)")

        assert exc_info.value.native_code == "57014"

    @pytest.mark.asyncio
    async def test_execute_carries_native_code(self, postgres_config, mock_conn):
        mock_conn.fetch = AsyncMock(
            side_effect=UndefinedColumnError('column "revnue" does not exist')
        )
        with patch("asyncpg.connect", new=AsyncMock(return_value=mock_conn)):
            connector = PostgresConnector(**postgres_config)
            await connector.connect()

            with pytest.raises(QueryError) as exc_info:
                await connector.execute("SELECT revnue FROM sales")

        error = exc_info.value
        assert error.native_code == "42703"
        assert error.native_message == 'column "revnue" does not exist'
        assert error.sql == "SELECT revnue FROM sales"

    @pytest.mark.asyncio
    async def test_syntax_error(self, postgres_config, mock_conn):
        mock_conn.fetch = AsyncMock(side_effect=PostgresSyntaxError("syntax error"))
        with patch("asyncpg.connect", new=AsyncMock(return_value=mock_conn)):
            connector = PostgresConnector(**postgres_config)
            await connector.connect()

            with pytest.raises(QueryError, match="Query execution failed"):
                await connector.execute("SELEC 1")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("failure", "native_code"),
        [
            (
                ConnectionDoesNotExistError("connection was closed in the middle of operation"),
                "ConnectionDoesNotExistError",
            ),
            (ConnectionFailureError("server closed the connection unexpectedly"), "08006"),
            (ConnectionResetError("Connection reset by peer"), "ConnectionResetError"),
        ],
    )
    async def test_dropped_connection_is_not_a_query_error(
        self, postgres_config, mock_conn, failure, native_code
    ):
        mock_conn.fetch = AsyncMock(side_effect=failure)
        with patch("asyncpg.connect", new=AsyncMock(return_value=mock_conn)):
            connector = PostgresConnector(**postgres_config)
            await connector.connect()

            with pytest.raises(ConnectionError, match="Connection lost") as exc_info:
                await connector.execute("SELECT id FROM orders")

        assert not isinstance(exc_info.value, QueryError)
        assert exc_info.value.native_code == native_code


class TestSchema:
    @pytest.mark.asyncio
    async def test_get_schema_orders_tables_and_columns(self, postgres_config, mock_conn):
        mock_conn.fetch = AsyncMock(
            side_effect=[
                [{"table_name": "orders"}, {"table_name": "users"}],
                [
                    {"column_name": "id", "data_type": "integer", "is_nullable": "NO"},
                    {"column_name": "total", "data_type": "numeric", "is_nullable": "YES"},
                ],
                [{"column_name": "id", "data_type": "integer", "is_nullable": "NO"}],
            ]
        )
        with patch("asyncpg.connect", new=AsyncMock(return_value=mock_conn)):
            connector = PostgresConnector(**postgres_config)
            await connector.connect()
            snapshot = await connector.get_schema()

        assert snapshot.table_names == ["orders", "users"]
        assert [c.column_name for c in snapshot.tables["orders"]] == ["id", "total"]
        assert snapshot.tables["orders"][1].is_nullable is True
        assert snapshot.tables["users"][0].is_nullable is False
        assert mock_conn.fetch.await_args_list[0].args[1] == "public"

    @pytest.mark.asyncio
    async def test_get_schema_failure(self, postgres_config, mock_conn):
        mock_conn.fetch = AsyncMock(side_effect=RuntimeError("boom"))
        with patch("asyncpg.connect", new=AsyncMock(return_value=mock_conn)):
            connector = PostgresConnector(**postgres_config)
            await connector.connect()

            with pytest.raises(IntrospectionError):
                await connector.get_schema()


class TestOneShot:
    @pytest.mark.asyncio
    async def test_run_closes_connection(self, postgres_config, mock_conn):
        mock_conn.fetch = AsyncMock(return_value=[{"n": 1}])
        with patch("asyncpg.connect", new=AsyncMock(return_value=mock_conn)):
            connector = PostgresConnector(**postgres_config)
            result = await connector.run("SELECT 1 AS n")

        assert result.rows == [{"n": 1}]
        mock_conn.close.assert_awaited_once()
        assert connector.is_connected is False

    @pytest.mark.asyncio
    async def test_run_closes_connection_on_error(self, postgres_config, mock_conn):
        mock_conn.fetch = AsyncMock(side_effect=PostgresSyntaxError("syntax error"))
        with patch("asyncpg.connect", new=AsyncMock(return_value=mock_conn)):
            connector = PostgresConnector(**postgres_config)
            with pytest.raises(QueryError):
                await connector.run("SELEC 1")

        mock_conn.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_swallows_driver_errors(self, postgres_config, mock_conn):
        mock_conn.close = AsyncMock(side_effect=OSError("socket closed"))
        with patch("asyncpg.connect", new=AsyncMock(return_value=mock_conn)):
            connector = PostgresConnector(**postgres_config)
            await connector.connect()
            await connector.close()
            await connector.close()

        assert connector.is_connected is False
