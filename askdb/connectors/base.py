"""
Engine adapter contract.

Every adapter exposes the same two operations over a freshly opened,
short-lived connection:

- introspect(): capture the table/column snapshot of the target database
- run(): execute one statement and return its rows

Both open the connection on entry and close it on every exit path. The
lower-level connect()/execute()/get_schema()/close() hooks are what each
engine implements.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel

from askdb.models.schema import SchemaSnapshot

logger = logging.getLogger(__name__)


class QueryResult(BaseModel):
    """Rows of one statement, each a column-ordered dict."""

    rows: list[dict[str, Any]]
    columns: list[str]
    row_count: int
    execution_time_ms: float


class BaseConnector(ABC):
    """
    One target database, reached through a driver-specific subclass.

    Usage:
        connector = PostgresConnector(host="db.internal", port=5432, ...)
        snapshot = await connector.introspect()
        result = await connector.run("SELECT id FROM users")
    """

    engine: str = ""
    default_port: int = 0

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        connect_timeout: int = 10,
        statement_timeout: int = 30,
        **kwargs,
    ):
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.connect_timeout = connect_timeout
        self.statement_timeout = statement_timeout
        self.kwargs = kwargs

        self._conn = None
        self._connected = False

    @property
    def target(self) -> str:
        """``user@host:port/database`` for log lines; never includes the password."""
        return f"{self.user}@{self.host}:{self.port}/{self.database}"

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection; raises ConnectionError."""

    @abstractmethod
    async def execute(self, query: str) -> QueryResult:
        """Run one statement on the open connection; raises QueryError."""

    @abstractmethod
    async def get_schema(self) -> SchemaSnapshot:
        """
        Read tables (lexical order) and their columns (declared order).

        Raises:
            IntrospectionError: If metadata queries fail
        """

    @abstractmethod
    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""

    async def introspect(self) -> SchemaSnapshot:
        async with self:
            return await self.get_schema()

    async def run(self, query: str) -> QueryResult:
        async with self:
            return await self.execute(query)

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    def __repr__(self) -> str:
        status = "connected" if self._connected else "disconnected"
        return f"<{self.__class__.__name__} {self.target} ({status})>"
