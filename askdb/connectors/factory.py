"""Engine adapter factory for registered connections."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import SecretStr

from askdb.config import SandboxSettings
from askdb.connectors.base import BaseConnector
from askdb.connectors.mysql import MySQLConnector
from askdb.connectors.postgres import PostgresConnector
from askdb.errors import UnsupportedEngine

CONNECTORS: dict[str, type[BaseConnector]] = {
    "mysql": MySQLConnector,
    "postgresql": PostgresConnector,
}

ConnectorFactory = Callable[[Any, SandboxSettings], BaseConnector]


def create_connector(
    *,
    engine: str,
    host: str,
    port: int,
    database: str,
    user: str,
    password: str,
    connect_timeout: int = 10,
    statement_timeout: int = 30,
    **kwargs,
) -> BaseConnector:
    """Create the engine adapter for a connection's engine type."""
    connector_cls = CONNECTORS.get((engine or "").strip().lower())
    if connector_cls is None:
        raise UnsupportedEngine(engine)
    return connector_cls(
        host=host,
        port=port,
        database=database,
        user=user,
        password=password,
        connect_timeout=connect_timeout,
        statement_timeout=statement_timeout,
        **kwargs,
    )


def connector_for(target: Any, settings: SandboxSettings | None = None) -> BaseConnector:
    """
    Build an adapter from anything carrying connection attributes.

    Accepts a stored ``Connection`` or a ``ConnectionCreate`` payload.
    """
    limits = settings or SandboxSettings()
    password = target.password
    if isinstance(password, SecretStr):
        password = password.get_secret_value()
    return create_connector(
        engine=target.engine,
        host=target.host,
        port=target.port,
        database=target.database,
        user=target.user,
        password=password,
        connect_timeout=limits.connect_timeout,
        statement_timeout=limits.statement_timeout,
    )
