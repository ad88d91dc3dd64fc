"""
Execution Sandbox

Runs one read-only statement against a registered connection over a
connection that lives only for that statement.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from askdb.config import SandboxSettings
from askdb.connectors.factory import ConnectorFactory, connector_for
from askdb.database.registry import ConnectionRegistry
from askdb.sandbox.policy import assert_read_only

logger = logging.getLogger(__name__)


class ExecutionSandbox:
    """Policy check, adapter selection and one-shot execution."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        settings: SandboxSettings | None = None,
        connector_factory: ConnectorFactory = connector_for,
    ) -> None:
        self._registry = registry
        self._settings = settings or SandboxSettings()
        self._connector_factory = connector_factory

    async def execute(self, connection_id: UUID | str, sql: str) -> list[dict[str, Any]]:
        """
        Execute ``sql`` on the connection and return its rows.

        Raises:
            StatementNotAllowed: Before any I/O, if the statement is not read-only
            NotFound: If the connection is not registered
            UnsupportedEngine: If the stored engine has no adapter
            ConnectionError: If the connection cannot be opened
            QueryError: If the statement fails on the target database
        """
        assert_read_only(sql)

        connection = await self._registry.resolve(connection_id)
        connector = self._connector_factory(connection, self._settings)

        logger.info(
            f"Executing statement on {connection.engine} connection {connection.connection_id}",
            extra={"connection_id": str(connection.connection_id), "sql": sql[:200]},
        )
        result = await connector.run(sql)
        logger.info(
            f"Statement returned {result.row_count} rows in {result.execution_time_ms:.2f}ms",
            extra={"connection_id": str(connection.connection_id), "row_count": result.row_count},
        )
        return result.rows
