"""Target database connection registry."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import asyncpg
import pydantic
from cryptography.fernet import Fernet, InvalidToken
from pydantic import SecretStr

from askdb.errors import ConfigurationError, LikelyWrongEngine, NotFound, ValidationError
from askdb.models.connection import DEFAULT_PORTS, Connection, ConnectionCreate
from askdb.schema.snapshot import SchemaSnapshotStore
from askdb.storage.system_db import SystemDatabase

logger = logging.getLogger(__name__)

_CONNECTION_COLUMNS = """
    connection_id,
    owner_id,
    engine,
    host,
    port,
    db_user,
    password_encrypted,
    database_name,
    created_at,
    updated_at
"""


class ConnectionRegistry:
    """Validate, probe, store and resolve target database connections."""

    def __init__(
        self,
        database: SystemDatabase,
        snapshots: SchemaSnapshotStore,
        encryption_key: str | bytes | None = None,
    ) -> None:
        self._database = database
        self._snapshots = snapshots
        self._encryption_key = encryption_key
        self._cipher: Fernet | None = None

    async def register(
        self,
        params: ConnectionCreate | dict[str, Any],
        owner_id: str | None = None,
    ) -> Connection:
        """
        Register a connection after validating and probing it.

        The connection row and its schema snapshot are written in one
        transaction, so a failed probe or write leaves nothing behind.

        Raises:
            ValidationError: If a field is missing or malformed
            LikelyWrongEngine: If the port belongs to the other engine
            ConnectionError: If the probe cannot connect
            IntrospectionError: If the probe cannot read metadata
        """
        payload = self.validate(params)
        self._ensure_cipher()

        snapshot = await self._snapshots.capture(payload)

        connection_id = uuid4()
        now = datetime.now(UTC)
        encrypted_password = self._encrypt(payload.password.get_secret_value())

        async with self._database.pool.acquire() as conn:
            async with conn.transaction():
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO connections (
                        connection_id,
                        owner_id,
                        engine,
                        host,
                        port,
                        db_user,
                        password_encrypted,
                        database_name,
                        created_at,
                        updated_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $9)
                    RETURNING {_CONNECTION_COLUMNS}
                    """,
                    connection_id,
                    owner_id,
                    payload.engine,
                    payload.host,
                    payload.port,
                    payload.user,
                    encrypted_password,
                    payload.database,
                    now,
                )
                await self._snapshots.persist(connection_id, snapshot, conn=conn)

        logger.info(
            f"Registered {payload.engine} connection {connection_id}",
            extra={
                "connection_id": str(connection_id),
                "engine": payload.engine,
                "tables": len(snapshot.tables),
            },
        )
        return self._row_to_connection(row)

    @staticmethod
    def validate(params: ConnectionCreate | dict[str, Any]) -> ConnectionCreate:
        """Validate registration input and flag engine/port mismatches."""
        if isinstance(params, ConnectionCreate):
            payload = params
        else:
            try:
                payload = ConnectionCreate.model_validate(params)
            except pydantic.ValidationError as exc:
                first = exc.errors()[0]
                field = str(first["loc"][0]) if first.get("loc") else None
                raise ValidationError(
                    f"Invalid {field or 'connection'}: {first['msg']}", field=field
                ) from exc

        for other_engine, other_port in DEFAULT_PORTS.items():
            if other_engine != payload.engine and payload.port == other_port:
                raise LikelyWrongEngine(
                    engine=payload.engine,
                    port=payload.port,
                    expected_port=DEFAULT_PORTS[payload.engine],
                )
        return payload

    async def resolve(self, connection_id: UUID | str) -> Connection:
        """Load one connection with its decrypted password."""
        connection_uuid = self._coerce_uuid(connection_id)
        row = await self._database.pool.fetchrow(
            f"""
            SELECT {_CONNECTION_COLUMNS}
            FROM connections
            WHERE connection_id = $1
            """,
            connection_uuid,
        )
        if row is None:
            raise NotFound("connection", connection_id)
        return self._row_to_connection(row)

    async def list_for_owner(self, owner_id: str) -> list[Connection]:
        """List a user's connections, most recent activity first."""
        rows = await self._database.pool.fetch(
            f"""
            SELECT {_CONNECTION_COLUMNS}
            FROM connections
            WHERE owner_id = $1
            ORDER BY updated_at DESC, created_at DESC
            """,
            owner_id,
        )
        return [self._row_to_connection(row) for row in rows]

    async def touch(self, connection_id: UUID | str) -> None:
        """Record activity on a connection."""
        await self._database.pool.execute(
            "UPDATE connections SET updated_at = $2 WHERE connection_id = $1",
            self._coerce_uuid(connection_id),
            datetime.now(UTC),
        )

    def _row_to_connection(self, row: asyncpg.Record) -> Connection:
        return Connection(
            connection_id=row["connection_id"],
            engine=row["engine"],
            host=row["host"],
            port=row["port"],
            user=row["db_user"],
            password=SecretStr(self._decrypt(row["password_encrypted"])),
            database=row["database_name"],
            owner_id=row["owner_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _encrypt(self, secret: str) -> str:
        cipher = self._ensure_cipher()
        return cipher.encrypt(secret.encode("utf-8")).decode("utf-8")

    def _decrypt(self, token: str) -> str:
        cipher = self._ensure_cipher()
        try:
            return cipher.decrypt(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise ConfigurationError(
                "Failed to decrypt stored connection password.",
                setting="DATABASE_CREDENTIALS_KEY",
            ) from exc

    def _ensure_cipher(self) -> Fernet:
        if self._cipher is not None:
            return self._cipher
        if not self._encryption_key:
            raise ConfigurationError(
                "DATABASE_CREDENTIALS_KEY must be set to store connection passwords.",
                setting="DATABASE_CREDENTIALS_KEY",
            )
        key = self._encryption_key
        if isinstance(key, str):
            key = key.encode("utf-8")
        try:
            self._cipher = Fernet(key)
        except (ValueError, TypeError) as exc:
            raise ConfigurationError(
                "Invalid DATABASE_CREDENTIALS_KEY. Use a Fernet-compatible base64 key.",
                setting="DATABASE_CREDENTIALS_KEY",
            ) from exc
        return self._cipher

    @staticmethod
    def _coerce_uuid(connection_id: UUID | str) -> UUID:
        if isinstance(connection_id, UUID):
            return connection_id
        try:
            return UUID(str(connection_id))
        except ValueError as exc:
            raise ValidationError("Invalid connection ID.", field="connection_id") from exc
