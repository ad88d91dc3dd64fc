"""
MySQL Connector

Async-compatible MySQL adapter using mysql-connector-python.

The underlying driver is synchronous, so connection, query and schema
operations are executed in worker threads via asyncio.to_thread.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import mysql.connector
from mysql.connector import Error as MySQLError
from mysql.connector import errorcode
from mysql.connector.errors import InterfaceError, OperationalError

from askdb.connectors.base import BaseConnector, QueryResult
from askdb.errors import ConnectionError, IntrospectionError, QueryError
from askdb.models.schema import ColumnSnapshot, SchemaSnapshot

logger = logging.getLogger(__name__)

_TABLES_QUERY = """
    SELECT TABLE_NAME AS table_name
    FROM information_schema.tables
    WHERE table_schema = %s
    ORDER BY TABLE_NAME
"""

_COLUMNS_QUERY = """
    SELECT
        COLUMN_NAME AS column_name,
        DATA_TYPE AS data_type,
        IS_NULLABLE AS is_nullable
    FROM information_schema.columns
    WHERE table_schema = %s AND table_name = %s
    ORDER BY ORDINAL_POSITION
"""


def _native_code(exc: Exception) -> str | None:
    errno = getattr(exc, "errno", None)
    if errno is None or errno == -1:
        return None
    return str(errno)


def _native_message(exc: Exception) -> str:
    return str(getattr(exc, "msg", None) or exc)


# Client-side errnos for a socket that dropped or never answered
_CONNECTION_LOST_ERRNOS = frozenset(
    {
        errorcode.CR_CONNECTION_ERROR,
        errorcode.CR_CONN_HOST_ERROR,
        errorcode.CR_SERVER_GONE_ERROR,
        errorcode.CR_SERVER_LOST,
        errorcode.CR_SERVER_LOST_EXTENDED,
    }
)


def _is_connection_lost(exc: MySQLError) -> bool:
    if exc.errno in _CONNECTION_LOST_ERRNOS:
        return True
    # "MySQL Connection not available" and similar carry no errno
    return isinstance(exc, (InterfaceError, OperationalError)) and _native_code(exc) is None


class MySQLConnector(BaseConnector):
    """MySQL database connector using mysql-connector-python."""

    engine = "mysql"
    default_port = 3306

    async def connect(self) -> None:
        """Open a single MySQL connection in a worker thread."""
        if self._connected and self._conn is not None:
            return
        try:
            logger.info(f"Connecting to MySQL as {self.target}")
            self._conn = await asyncio.to_thread(
                mysql.connector.connect, **self._connection_kwargs()
            )
            self._connected = True
        except MySQLError as exc:
            logger.error(f"MySQL connection failed: {exc}")
            raise ConnectionError(
                f"Failed to connect to MySQL: {exc}",
                engine=self.engine,
                native_code=_native_code(exc),
                native_message=_native_message(exc),
            ) from exc
        except Exception as exc:
            logger.error(f"MySQL connection failed: {exc}")
            raise ConnectionError(
                f"Connection error: {exc}",
                engine=self.engine,
                native_code=type(exc).__name__,
                native_message=str(exc),
            ) from exc

    async def execute(self, query: str) -> QueryResult:
        """Execute SQL query and return rows."""
        if not self._connected or self._conn is None:
            raise ConnectionError(
                "Not connected to database. Call connect() first.", engine=self.engine
            )

        start_time = time.perf_counter()
        try:
            rows, columns = await asyncio.to_thread(self._execute_sync, query)
            execution_time_ms = (time.perf_counter() - start_time) * 1000
            logger.debug(
                f"Query executed in {execution_time_ms:.2f}ms, returned {len(rows)} rows"
            )
            return QueryResult(
                rows=rows,
                row_count=len(rows),
                columns=columns,
                execution_time_ms=execution_time_ms,
            )
        except MySQLError as exc:
            if _is_connection_lost(exc):
                raise self._connection_lost(exc) from exc
            logger.error(f"MySQL query failed: {exc}\nQuery: {query[:200]}...")
            raise QueryError(
                f"Query execution failed: {_native_message(exc)}",
                engine=self.engine,
                native_code=_native_code(exc),
                native_message=_native_message(exc),
                sql=query,
            ) from exc
        except OSError as exc:
            raise self._connection_lost(exc) from exc
        except Exception as exc:
            logger.error(f"MySQL query failed: {exc}\nQuery: {query[:200]}...")
            raise QueryError(
                f"Query error: {exc}",
                engine=self.engine,
                native_code=type(exc).__name__,
                native_message=str(exc),
                sql=query,
            ) from exc

    async def get_schema(self) -> SchemaSnapshot:
        """Introspect the target database via information_schema."""
        if not self._connected or self._conn is None:
            raise ConnectionError(
                "Not connected to database. Call connect() first.", engine=self.engine
            )
        try:
            return await asyncio.to_thread(self._get_schema_sync, self.database)
        except MySQLError as exc:
            logger.error(f"MySQL schema introspection failed: {exc}")
            raise IntrospectionError(
                f"Failed to introspect schema: {_native_message(exc)}",
                engine=self.engine,
                native_code=_native_code(exc),
                native_message=_native_message(exc),
            ) from exc
        except Exception as exc:
            logger.error(f"MySQL schema introspection failed: {exc}")
            raise IntrospectionError(
                f"Schema error: {exc}",
                engine=self.engine,
                native_code=type(exc).__name__,
                native_message=str(exc),
            ) from exc

    async def close(self) -> None:
        """Close the connection. Safe to call multiple times."""
        if self._conn is None:
            return
        try:
            await asyncio.to_thread(self._conn.close)
        except Exception as exc:
            logger.warning(f"Error closing MySQL connection: {exc}")
        finally:
            self._conn = None
            self._connected = False

    def _connection_lost(self, exc: Exception) -> ConnectionError:
        logger.error(f"MySQL connection lost while running query: {exc}")
        return ConnectionError(
            f"Connection lost: {_native_message(exc)}",
            engine=self.engine,
            native_code=_native_code(exc) or type(exc).__name__,
            native_message=_native_message(exc),
        )

    def _connection_kwargs(self) -> dict[str, Any]:
        kwargs = {
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "user": self.user,
            "password": self.password,
            "autocommit": True,
            "connection_timeout": self.connect_timeout,
        }
        kwargs.update(self.kwargs)
        return kwargs

    def _execute_sync(self, query: str) -> tuple[list[dict[str, Any]], list[str]]:
        cursor = self._conn.cursor(dictionary=True)
        try:
            self._apply_statement_timeout(cursor)
            cursor.execute(query)
            if cursor.with_rows:
                rows = cursor.fetchall()
                columns = list(rows[0].keys()) if rows else [col[0] for col in cursor.description]
                return rows, columns
            return [], []
        finally:
            cursor.close()

    def _apply_statement_timeout(self, cursor) -> None:
        try:
            cursor.execute(f"SET SESSION MAX_EXECUTION_TIME = {self.statement_timeout * 1000}")
        except MySQLError as exc:
            # MariaDB and older servers lack MAX_EXECUTION_TIME
            logger.warning(f"Could not set MySQL statement timeout: {exc}")

    def _get_schema_sync(self, schema_name: str) -> SchemaSnapshot:
        cursor = self._conn.cursor(dictionary=True)
        try:
            cursor.execute(_TABLES_QUERY, (schema_name,))
            tables = cursor.fetchall()

            snapshot: dict[str, list[ColumnSnapshot]] = {}
            for table_row in tables:
                table_name = str(table_row["table_name"])
                cursor.execute(_COLUMNS_QUERY, (schema_name, table_name))
                snapshot[table_name] = [
                    ColumnSnapshot(
                        column_name=str(col_row["column_name"]),
                        data_type=str(col_row["data_type"]),
                        is_nullable=str(col_row["is_nullable"]).upper() == "YES",
                    )
                    for col_row in cursor.fetchall()
                ]

            logger.info(f"Introspected MySQL schema '{schema_name}': found {len(snapshot)} tables")
            return SchemaSnapshot(tables=snapshot)
        finally:
            cursor.close()
