"""
PostgreSQL Connector

Async PostgreSQL adapter using asyncpg. Each instance holds at most one
connection, opened for a single introspection or statement and closed
afterwards.

Usage:
    connector = PostgresConnector(
        host="localhost",
        port=5432,
        database="mydb",
        user="postgres",
        password="secret"
    )

    snapshot = await connector.introspect()
    result = await connector.run("SELECT * FROM users WHERE age > 18")
"""

import logging
import time

import asyncpg

from askdb.connectors.base import BaseConnector, QueryResult
from askdb.errors import ConnectionError, IntrospectionError, QueryError
from askdb.models.schema import ColumnSnapshot, SchemaSnapshot

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "public"

_TABLES_QUERY = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = $1
    AND table_type IN ('BASE TABLE', 'VIEW')
    ORDER BY table_name
"""

_COLUMNS_QUERY = """
    SELECT
        column_name,
        data_type,
        is_nullable
    FROM information_schema.columns
    WHERE table_schema = $1 AND table_name = $2
    ORDER BY ordinal_position
"""


class PostgresConnector(BaseConnector):
    """
    PostgreSQL database connector using asyncpg.

    Introspection is scoped to the ``public`` schema of the target database.
    """

    engine = "postgresql"
    default_port = 5432

    async def connect(self) -> None:
        """
        Open a single asyncpg connection.

        Raises:
            ConnectionError: If connection fails
        """
        if self._connected and self._conn is not None:
            logger.debug("Already connected, skipping connection")
            return

        try:
            logger.info(f"Connecting to PostgreSQL as {self.target}")
            self._conn = await asyncpg.connect(
                host=self.host,
                port=self.port,
                database=self.database,
                user=self.user,
                password=self.password,
                timeout=self.connect_timeout,
                command_timeout=self.statement_timeout,
                **self.kwargs,
            )
            self._connected = True

        except asyncpg.PostgresError as e:
            logger.error(f"PostgreSQL connection failed: {e}")
            raise ConnectionError(
                f"Failed to connect to PostgreSQL: {e}",
                engine=self.engine,
                native_code=getattr(e, "sqlstate", None),
                native_message=str(e),
            ) from e
        except Exception as e:
            logger.error(f"Unexpected error during connection: {e}")
            raise ConnectionError(
                f"Connection error: {e}",
                engine=self.engine,
                native_code=type(e).__name__,
                native_message=str(e),
            ) from e

    async def execute(self, query: str) -> QueryResult:
        """
        Execute a SQL statement.

        Raises:
            QueryError: If query fails
            ConnectionError: If not connected
        """
        if not self._connected or self._conn is None:
            raise ConnectionError(
                "Not connected to database. Call connect() first.", engine=self.engine
            )

        start_time = time.perf_counter()

        try:
            await self._conn.execute(f"SET statement_timeout = {self.statement_timeout * 1000}")
            rows = await self._conn.fetch(query)

            result_rows = [dict(row) for row in rows]
            columns = list(rows[0].keys()) if rows else []
            execution_time_ms = (time.perf_counter() - start_time) * 1000

            logger.debug(
                f"Query executed in {execution_time_ms:.2f}ms, "
                f"returned {len(result_rows)} rows"
            )

            return QueryResult(
                rows=result_rows,
                row_count=len(result_rows),
                columns=columns,
                execution_time_ms=execution_time_ms,
            )

        except asyncpg.QueryCanceledError as e:
            logger.error(f"Query timed out after {self.statement_timeout}s: {query[:100]}...")
            raise QueryError(
                f"Query timeout ({self.statement_timeout}s)",
                engine=self.engine,
                native_code=e.sqlstate,
                native_message=str(e),
                sql=query,
            ) from e
        except (asyncpg.PostgresConnectionError, asyncpg.InterfaceError, OSError) as e:
            logger.error(f"Connection lost while running query: {e}")
            raise ConnectionError(
                f"Connection lost: {e}",
                engine=self.engine,
                native_code=getattr(e, "sqlstate", None) or type(e).__name__,
                native_message=str(e),
            ) from e
        except asyncpg.PostgresError as e:
            logger.error(f"Query failed: {e}\nQuery: {query[:200]}...")
            raise QueryError(
                f"Query execution failed: {e}",
                engine=self.engine,
                native_code=getattr(e, "sqlstate", None),
                native_message=str(e),
                sql=query,
            ) from e
        except Exception as e:
            logger.error(f"Unexpected error during query execution: {e}")
            raise QueryError(
                f"Query error: {e}",
                engine=self.engine,
                native_code=type(e).__name__,
                native_message=str(e),
                sql=query,
            ) from e

    async def get_schema(self) -> SchemaSnapshot:
        """
        Introspect the public schema from information_schema.

        Raises:
            IntrospectionError: If schema introspection fails
        """
        if not self._connected or self._conn is None:
            raise ConnectionError(
                "Not connected to database. Call connect() first.", engine=self.engine
            )

        try:
            tables = await self._conn.fetch(_TABLES_QUERY, DEFAULT_SCHEMA)
            snapshot: dict[str, list[ColumnSnapshot]] = {}

            for table_row in tables:
                table_name = table_row["table_name"]
                columns = await self._conn.fetch(_COLUMNS_QUERY, DEFAULT_SCHEMA, table_name)
                snapshot[table_name] = [
                    ColumnSnapshot(
                        column_name=col["column_name"],
                        data_type=col["data_type"],
                        is_nullable=col["is_nullable"] == "YES",
                    )
                    for col in columns
                ]

            logger.info(
                f"Introspected schema '{DEFAULT_SCHEMA}' of {self.database}: "
                f"found {len(snapshot)} tables"
            )
            return SchemaSnapshot(tables=snapshot)

        except asyncpg.PostgresError as e:
            logger.error(f"Schema introspection failed: {e}")
            raise IntrospectionError(
                f"Failed to introspect schema: {e}",
                engine=self.engine,
                native_code=getattr(e, "sqlstate", None),
                native_message=str(e),
            ) from e
        except Exception as e:
            logger.error(f"Unexpected error during schema introspection: {e}")
            raise IntrospectionError(
                f"Schema introspection error: {e}",
                engine=self.engine,
                native_code=type(e).__name__,
                native_message=str(e),
            ) from e

    async def close(self) -> None:
        """
        Close the connection.

        Safe to call multiple times.
        """
        if self._conn is None:
            logger.debug("No connection to close")
            return

        try:
            await self._conn.close()
            logger.debug("PostgreSQL connection closed")
        except Exception as e:
            logger.warning(f"Error closing PostgreSQL connection: {e}")
        finally:
            self._conn = None
            self._connected = False
