"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import logging
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from pydantic import SecretStr

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires live databases and API keys)",
    )


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (may require external services)"
    )
    config.addinivalue_line("markers", "slow: mark test as slow (takes more than 1 second)")
    config.addinivalue_line("markers", "unit: mark test as unit test (default)")


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly enabled."""
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(
        reason="Integration tests disabled (use --run-integration to enable)."
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """Capture everything down to DEBUG for every test."""
    caplog.set_level(logging.DEBUG)
    yield


@pytest.fixture
def disable_logging():
    """
    Disable logging for specific tests.

    Usage:
        def test_something(disable_logging):
            # Logs are disabled here
            pass
    """
    logging.disable(logging.CRITICAL)
    yield
    logging.disable(logging.NOTSET)


# ============================================================================
# Environment and Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def mock_openai_api_key(monkeypatch):
    """
    Mock OpenAI API key for tests that build settings.

    This prevents tests from attempting real API calls.
    Runs automatically for all tests.
    """
    from askdb.config import clear_settings_cache

    clear_settings_cache()

    test_key = "sk-test-key-1234567890-abcdefghijklmnop"  # 20+ chars
    monkeypatch.setenv("LLM_OPENAI_API_KEY", test_key)
    monkeypatch.setenv("ASKDB_ENV_SOURCE", "environment")
    yield test_key

    clear_settings_cache()


# ============================================================================
# Common Test Data
# ============================================================================


@pytest.fixture
def sample_question() -> str:
    """Sample user question for testing."""
    return "Revenue by month"


@pytest.fixture
def sample_connection():
    """A stored PostgreSQL connection with a decrypted password."""
    from askdb.models.connection import Connection

    now = datetime(2025, 1, 1, tzinfo=UTC)
    return Connection(
        connection_id=uuid4(),
        engine="postgresql",
        host="db.internal",
        port=5432,
        user="analyst",
        password=SecretStr("secret"),
        database="shop",
        owner_id="alice",
        created_at=now,
        updated_at=now,
    )


# ============================================================================
# System Database Pool
# ============================================================================


def _build_pool_connection(pool: AsyncMock) -> AsyncMock:
    """
    Wire ``pool.acquire()`` and ``conn.transaction()`` as async context managers.

    Returns the connection handed out by ``acquire``.
    """
    conn = AsyncMock()
    conn_context = AsyncMock()
    conn_context.__aenter__.return_value = conn
    conn_context.__aexit__.return_value = None
    pool.acquire = MagicMock(return_value=conn_context)
    tx_context = AsyncMock()
    tx_context.__aenter__.return_value = None
    tx_context.__aexit__.return_value = None
    conn.transaction = MagicMock(return_value=tx_context)
    return conn


@pytest.fixture
def build_pool_connection():
    """Factory wiring acquire/transaction context managers on a mocked pool."""
    return _build_pool_connection


@pytest.fixture
def system_pool():
    """Mocked asyncpg pool exposing the query methods used by the stores."""
    pool = AsyncMock()
    pool.fetch = AsyncMock(return_value=[])
    pool.fetchrow = AsyncMock(return_value=None)
    pool.fetchval = AsyncMock(return_value=None)
    pool.execute = AsyncMock(return_value="UPDATE 1")
    return pool


@pytest.fixture
def system_database(system_pool):
    """SystemDatabase wrapping the mocked pool."""
    from askdb.storage.system_db import SystemDatabase

    return SystemDatabase(pool=system_pool)


# ============================================================================
# Mock LLM Provider
# ============================================================================


@pytest.fixture
def mock_llm_provider():
    """
    Mock LLM provider for testing pipeline components.

    Usage:
        def test_classifier(mock_llm_provider):
            mock_llm_provider.set_response('{"visual": {"type": "kpi"}}')
            result = await classifier.classify(question, rows)
    """

    class MockLLMProvider:
        def __init__(self):
            self.provider_name = "mock"
            self.chat = AsyncMock()

        def set_response(self, response: str):
            """Set the text that chat() will return."""
            self.chat.return_value = response

        def set_responses(self, responses: list):
            """Queue several chat() results (strings or exceptions)."""
            self.chat.side_effect = responses

    return MockLLMProvider()


# ============================================================================
# Mock Database Connectors
# ============================================================================


@pytest.fixture
def mock_postgres_connector():
    """
    Mock engine adapter for testing.

    Usage:
        def test_query(mock_postgres_connector):
            mock_postgres_connector.run.return_value = QueryResult(...)
    """
    connector = AsyncMock()
    connector.connect = AsyncMock()
    connector.close = AsyncMock()
    connector.execute = AsyncMock()
    connector.get_schema = AsyncMock()
    connector.run = AsyncMock()
    connector.introspect = AsyncMock()

    return connector
