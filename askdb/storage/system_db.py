"""System database pool and schema.

The system database holds registered connections, their schema snapshots
and the conversation ledger. One ``SystemDatabase`` is created at process
start and handed to every store that needs it.
"""

from __future__ import annotations

import logging

import asyncpg

from askdb.config import SystemDatabaseSettings
from askdb.errors import ConfigurationError

logger = logging.getLogger(__name__)

_CREATE_CONNECTIONS_TABLE = """
CREATE TABLE IF NOT EXISTS connections (
    connection_id UUID PRIMARY KEY,
    owner_id TEXT,
    engine TEXT NOT NULL CHECK (engine IN ('mysql', 'postgresql')),
    host TEXT NOT NULL,
    port INTEGER NOT NULL CHECK (port BETWEEN 1 AND 65535),
    db_user TEXT NOT NULL,
    password_encrypted TEXT NOT NULL,
    database_name TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL
);
"""

_CREATE_CONNECTIONS_OWNER_INDEX = """
CREATE INDEX IF NOT EXISTS connections_owner_updated_idx
ON connections (owner_id, updated_at DESC);
"""

_CREATE_SCHEMA_TABLES_TABLE = """
CREATE TABLE IF NOT EXISTS connection_schema_tables (
    id BIGSERIAL PRIMARY KEY,
    connection_id UUID NOT NULL REFERENCES connections (connection_id) ON DELETE CASCADE,
    table_name TEXT NOT NULL,
    UNIQUE (connection_id, table_name)
);
"""

_CREATE_SCHEMA_COLUMNS_TABLE = """
CREATE TABLE IF NOT EXISTS connection_schema_columns (
    id BIGSERIAL PRIMARY KEY,
    table_id BIGINT NOT NULL REFERENCES connection_schema_tables (id) ON DELETE CASCADE,
    column_name TEXT NOT NULL,
    data_type TEXT NOT NULL,
    is_nullable BOOLEAN NOT NULL
);
"""

_CREATE_CONVERSATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS conversations (
    conversation_id UUID PRIMARY KEY,
    owner_id TEXT NOT NULL,
    connection_id UUID NOT NULL REFERENCES connections (connection_id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL
);
"""

_CREATE_CONVERSATIONS_INDEX = """
CREATE INDEX IF NOT EXISTS conversations_owner_connection_idx
ON conversations (owner_id, connection_id, updated_at DESC);
"""

_CREATE_MESSAGES_TABLE = """
CREATE TABLE IF NOT EXISTS messages (
    message_id BIGSERIAL PRIMARY KEY,
    conversation_id UUID NOT NULL REFERENCES conversations (conversation_id) ON DELETE CASCADE,
    role TEXT NOT NULL CHECK (role IN ('user', 'assistant')),
    content TEXT NOT NULL,
    sql_query TEXT,
    visual_type TEXT,
    created_at TIMESTAMPTZ NOT NULL
);
"""

_CREATE_MESSAGES_INDEX = """
CREATE INDEX IF NOT EXISTS messages_conversation_created_idx
ON messages (conversation_id, created_at, message_id);
"""

SCHEMA_STATEMENTS = (
    _CREATE_CONNECTIONS_TABLE,
    _CREATE_CONNECTIONS_OWNER_INDEX,
    _CREATE_SCHEMA_TABLES_TABLE,
    _CREATE_SCHEMA_COLUMNS_TABLE,
    _CREATE_CONVERSATIONS_TABLE,
    _CREATE_CONVERSATIONS_INDEX,
    _CREATE_MESSAGES_TABLE,
    _CREATE_MESSAGES_INDEX,
)


def normalize_postgres_url(database_url: str) -> str:
    """Strip SQLAlchemy-style driver suffixes that asyncpg does not accept."""
    for prefix in ("postgresql+asyncpg://", "postgres+asyncpg://"):
        if database_url.startswith(prefix):
            return database_url.replace(prefix, "postgresql://", 1)
    return database_url


class SystemDatabase:
    """Owner of the asyncpg pool for the system database."""

    def __init__(
        self,
        url: str | None = None,
        *,
        min_size: int = 1,
        max_size: int = 5,
        pool: asyncpg.Pool | None = None,
    ) -> None:
        self._url = url
        self._min_size = min_size
        self._max_size = max_size
        self._pool = pool

    @classmethod
    def from_settings(cls, settings: SystemDatabaseSettings) -> SystemDatabase:
        return cls(
            str(settings.url) if settings.url else None,
            min_size=settings.min_pool_size,
            max_size=settings.max_pool_size,
        )

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("SystemDatabase is not connected")
        return self._pool

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        """Create the connection pool if it does not exist yet."""
        if self._pool is not None:
            return
        if not self._url:
            raise ConfigurationError(
                "SYSTEM_DATABASE_URL must be set to use the system database.",
                setting="SYSTEM_DATABASE_URL",
            )
        dsn = normalize_postgres_url(self._url)
        self._pool = await asyncpg.create_pool(
            dsn=dsn, min_size=self._min_size, max_size=self._max_size
        )
        logger.info(
            "System database pool created",
            extra={"min_size": self._min_size, "max_size": self._max_size},
        )

    async def initialize(self) -> None:
        """Connect and ensure every system table exists."""
        await self.connect()
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                for statement in SCHEMA_STATEMENTS:
                    await conn.execute(statement)
        logger.info("System database schema ensured")

    async def close(self) -> None:
        """Close the underlying connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
