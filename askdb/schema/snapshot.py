"""
Schema Snapshot Store

Captures a target database's tables and columns at registration time and
keeps a denormalized copy in the system database, so prompts can be
grounded without touching the source again. Snapshots are never refreshed
automatically.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

import asyncpg

from askdb.config import SandboxSettings
from askdb.connectors.factory import ConnectorFactory, connector_for
from askdb.models.schema import ColumnSnapshot, SchemaSnapshot
from askdb.storage.system_db import SystemDatabase

logger = logging.getLogger(__name__)


class SchemaSnapshotStore:
    """Capture, persist and retrieve per-connection schema snapshots."""

    def __init__(
        self,
        database: SystemDatabase,
        sandbox_settings: SandboxSettings | None = None,
        connector_factory: ConnectorFactory = connector_for,
    ) -> None:
        self._database = database
        self._sandbox_settings = sandbox_settings or SandboxSettings()
        self._connector_factory = connector_factory

    async def capture(self, params: Any) -> SchemaSnapshot:
        """
        Introspect the live target database described by ``params``.

        Raises:
            ConnectionError: If the transient connection cannot be opened
            IntrospectionError: If metadata queries fail
        """
        connector = self._connector_factory(params, self._sandbox_settings)
        snapshot = await connector.introspect()
        logger.info(
            f"Captured schema snapshot for {params.engine}://{params.host}:{params.port}/{params.database}",
            extra={"tables": len(snapshot.tables), "columns": snapshot.column_count()},
        )
        return snapshot

    async def persist(
        self,
        connection_id: UUID,
        snapshot: SchemaSnapshot,
        *,
        conn: asyncpg.Connection | None = None,
    ) -> None:
        """
        Store table and column rows.

        When ``conn`` is given the rows are written on it, inside whatever
        transaction the caller holds; otherwise a pooled connection and a new
        transaction are used.
        """
        if conn is not None:
            await self._write_snapshot(conn, connection_id, snapshot)
            return

        async with self._database.pool.acquire() as pooled:
            async with pooled.transaction():
                await self._write_snapshot(pooled, connection_id, snapshot)

    async def retrieve(self, connection_id: UUID) -> SchemaSnapshot:
        """Rebuild the snapshot from stored rows; empty when nothing is stored."""
        rows = await self._database.pool.fetch(
            """
            SELECT
                t.id AS table_id,
                t.table_name,
                c.column_name,
                c.data_type,
                c.is_nullable
            FROM connection_schema_tables t
            LEFT JOIN connection_schema_columns c ON c.table_id = t.id
            WHERE t.connection_id = $1
            ORDER BY t.id, c.id
            """,
            connection_id,
        )

        tables: dict[str, list[ColumnSnapshot]] = {}
        for row in rows:
            columns = tables.setdefault(row["table_name"], [])
            if row["column_name"] is None:
                continue
            columns.append(
                ColumnSnapshot(
                    column_name=row["column_name"],
                    data_type=row["data_type"],
                    is_nullable=bool(row["is_nullable"]),
                )
            )
        return SchemaSnapshot(tables=tables)

    async def _write_snapshot(
        self,
        conn: asyncpg.Connection,
        connection_id: UUID,
        snapshot: SchemaSnapshot,
    ) -> None:
        for table_name, columns in snapshot.tables.items():
            table_id = await conn.fetchval(
                """
                INSERT INTO connection_schema_tables (connection_id, table_name)
                VALUES ($1, $2)
                RETURNING id
                """,
                connection_id,
                table_name,
            )
            if columns:
                await conn.executemany(
                    """
                    INSERT INTO connection_schema_columns (
                        table_id,
                        column_name,
                        data_type,
                        is_nullable
                    ) VALUES ($1, $2, $3, $4)
                    """,
                    [
                        (table_id, column.column_name, column.data_type, column.is_nullable)
                        for column in columns
                    ],
                )
        logger.debug(
            f"Persisted snapshot for connection {connection_id}",
            extra={"tables": len(snapshot.tables)},
        )
