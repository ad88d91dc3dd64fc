"""Unit tests for the system database pool owner."""

from unittest.mock import AsyncMock, patch

import pytest

from askdb.config import SystemDatabaseSettings
from askdb.errors import ConfigurationError
from askdb.storage.system_db import SCHEMA_STATEMENTS, SystemDatabase, normalize_postgres_url


def test_normalize_postgres_url_strips_driver_suffix():
    assert (
        normalize_postgres_url("postgresql+asyncpg://u:p@localhost:5432/askdb")
        == "postgresql://u:p@localhost:5432/askdb"
    )
    assert normalize_postgres_url("postgresql://u:p@h/db") == "postgresql://u:p@h/db"


def test_pool_requires_connect():
    database = SystemDatabase("postgresql://u:p@localhost/askdb")

    assert database.is_connected is False
    with pytest.raises(RuntimeError, match="not connected"):
        _ = database.pool


@pytest.mark.asyncio
async def test_connect_without_url():
    with pytest.raises(ConfigurationError) as exc_info:
        await SystemDatabase(None).connect()

    assert exc_info.value.setting == "SYSTEM_DATABASE_URL"


@pytest.mark.asyncio
async def test_connect_creates_pool_once():
    pool = AsyncMock()
    settings = SystemDatabaseSettings(
        url="postgresql://u:p@localhost:5432/askdb", min_pool_size=2, max_pool_size=4
    )
    database = SystemDatabase.from_settings(settings)

    with patch("asyncpg.create_pool", new=AsyncMock(return_value=pool)) as create_pool:
        await database.connect()
        await database.connect()

    create_pool.assert_awaited_once()
    assert create_pool.await_args.kwargs["min_size"] == 2
    assert create_pool.await_args.kwargs["max_size"] == 4
    assert database.pool is pool


@pytest.mark.asyncio
async def test_initialize_runs_every_statement_in_one_transaction(
    system_pool, build_pool_connection
):
    conn = build_pool_connection(system_pool)
    database = SystemDatabase(pool=system_pool)

    await database.initialize()

    conn.transaction.assert_called_once()
    executed = [call.args[0] for call in conn.execute.await_args_list]
    assert executed == list(SCHEMA_STATEMENTS)
    assert any("ON DELETE CASCADE" in statement for statement in executed)


@pytest.mark.asyncio
async def test_close_releases_pool(system_pool):
    database = SystemDatabase(pool=system_pool)

    await database.close()
    await database.close()

    system_pool.close.assert_awaited_once()
    assert database.is_connected is False
