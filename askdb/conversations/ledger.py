"""Conversation and message storage in the system database."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID, uuid4

import asyncpg

from askdb.errors import NotFound, ValidationError
from askdb.models.conversation import Conversation, Message, MessageRole
from askdb.storage.system_db import SystemDatabase

logger = logging.getLogger(__name__)

MAX_LISTED_CONVERSATIONS = 50
DEFAULT_TITLE_CHARS = 100


class ConversationLedger:
    """Append-only record of questions and answers per conversation."""

    def __init__(self, database: SystemDatabase, title_max_chars: int = DEFAULT_TITLE_CHARS) -> None:
        self._database = database
        self._title_max_chars = title_max_chars

    async def ensure(
        self,
        conversation_id: UUID | str | None,
        user_id: str | None,
        connection_id: UUID | str,
        question: str,
    ) -> UUID | None:
        """
        Return the conversation to record this question in.

        A supplied id must belong to this user and this connection, otherwise
        ``NotFound`` is raised. Without an id, a conversation is created only
        when a user is present.
        """
        if conversation_id:
            conversation_uuid = self._coerce_uuid(conversation_id, "conversation_id")
            owned = await self._database.pool.fetchval(
                """
                SELECT 1 FROM conversations
                WHERE conversation_id = $1
                  AND connection_id = $2
                  AND owner_id IS NOT DISTINCT FROM $3
                """,
                conversation_uuid,
                self._coerce_uuid(connection_id, "connection_id"),
                user_id,
            )
            if not owned:
                raise NotFound("conversation", conversation_id)
            return conversation_uuid

        if not user_id:
            return None

        conversation_uuid = uuid4()
        now = datetime.now(UTC)
        await self._database.pool.execute(
            """
            INSERT INTO conversations (
                conversation_id,
                owner_id,
                connection_id,
                title,
                created_at,
                updated_at
            ) VALUES ($1, $2, $3, $4, $5, $5)
            """,
            conversation_uuid,
            user_id,
            self._coerce_uuid(connection_id, "connection_id"),
            question.strip()[: self._title_max_chars],
            now,
        )
        logger.info(
            f"Created conversation {conversation_uuid}",
            extra={"conversation_id": str(conversation_uuid), "user_id": user_id},
        )
        return conversation_uuid

    async def append_user(self, conversation_id: UUID, content: str) -> None:
        await self._append(conversation_id, "user", content)

    async def append_assistant(
        self,
        conversation_id: UUID,
        content: str,
        sql: str | None,
        visual_type: str | None,
    ) -> None:
        await self._append(conversation_id, "assistant", content, sql, visual_type)

    async def touch(self, conversation_id: UUID) -> None:
        await self._database.pool.execute(
            "UPDATE conversations SET updated_at = $2 WHERE conversation_id = $1",
            conversation_id,
            datetime.now(UTC),
        )

    async def recent_history(self, conversation_id: UUID, limit: int = 10) -> list[Message]:
        """Most recent ``limit`` messages, returned oldest first."""
        if limit <= 0:
            return []
        rows = await self._database.pool.fetch(
            """
            SELECT
                message_id,
                conversation_id,
                role,
                content,
                sql_query,
                visual_type,
                created_at
            FROM messages
            WHERE conversation_id = $1
            ORDER BY created_at DESC, message_id DESC
            LIMIT $2
            """,
            conversation_id,
            limit,
        )
        return [self._row_to_message(row) for row in reversed(rows)]

    async def list_for_connection(
        self,
        user_id: str,
        connection_id: UUID | str,
        limit: int = MAX_LISTED_CONVERSATIONS,
    ) -> list[Conversation]:
        """A user's conversations on one connection, most recently updated first."""
        bounded_limit = max(1, min(limit, MAX_LISTED_CONVERSATIONS))
        rows = await self._database.pool.fetch(
            """
            SELECT
                conversation_id,
                owner_id,
                connection_id,
                title,
                created_at,
                updated_at
            FROM conversations
            WHERE owner_id = $1 AND connection_id = $2
            ORDER BY updated_at DESC
            LIMIT $3
            """,
            user_id,
            self._coerce_uuid(connection_id, "connection_id"),
            bounded_limit,
        )
        return [self._row_to_conversation(row) for row in rows]

    async def messages(self, conversation_id: UUID | str, user_id: str) -> list[Message]:
        """Full history oldest first, only for the owning user."""
        conversation_uuid = self._coerce_uuid(conversation_id, "conversation_id")
        owned = await self._database.pool.fetchval(
            "SELECT 1 FROM conversations WHERE conversation_id = $1 AND owner_id = $2",
            conversation_uuid,
            user_id,
        )
        if not owned:
            raise NotFound("conversation", conversation_id)

        rows = await self._database.pool.fetch(
            """
            SELECT
                message_id,
                conversation_id,
                role,
                content,
                sql_query,
                visual_type,
                created_at
            FROM messages
            WHERE conversation_id = $1
            ORDER BY created_at ASC, message_id ASC
            """,
            conversation_uuid,
        )
        return [self._row_to_message(row) for row in rows]

    async def delete(self, conversation_id: UUID | str, user_id: str) -> None:
        """Delete an owned conversation; its messages go with it."""
        result = await self._database.pool.execute(
            "DELETE FROM conversations WHERE conversation_id = $1 AND owner_id = $2",
            self._coerce_uuid(conversation_id, "conversation_id"),
            user_id,
        )
        try:
            deleted_count = int(str(result).split()[-1])
        except (ValueError, IndexError):
            deleted_count = 0
        if deleted_count == 0:
            raise NotFound("conversation", conversation_id)
        logger.info(f"Deleted conversation {conversation_id}", extra={"user_id": user_id})

    async def _append(
        self,
        conversation_id: UUID,
        role: MessageRole,
        content: str,
        sql: str | None = None,
        visual_type: str | None = None,
    ) -> None:
        await self._database.pool.execute(
            """
            INSERT INTO messages (
                conversation_id,
                role,
                content,
                sql_query,
                visual_type,
                created_at
            ) VALUES ($1, $2, $3, $4, $5, $6)
            """,
            conversation_id,
            role,
            content or "",
            sql,
            visual_type,
            datetime.now(UTC),
        )

    @staticmethod
    def _coerce_uuid(value: UUID | str, field: str) -> UUID:
        if isinstance(value, UUID):
            return value
        try:
            return UUID(str(value))
        except ValueError as exc:
            raise ValidationError(f"Invalid {field.replace('_', ' ')}.", field=field) from exc

    @staticmethod
    def _row_to_conversation(row: asyncpg.Record) -> Conversation:
        return Conversation(
            conversation_id=row["conversation_id"],
            owner_id=row["owner_id"],
            connection_id=row["connection_id"],
            title=row["title"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _row_to_message(row: asyncpg.Record) -> Message:
        return Message(
            message_id=row["message_id"],
            conversation_id=row["conversation_id"],
            role=row["role"],
            content=row["content"] or "",
            sql_query=row["sql_query"],
            visual_type=row["visual_type"],
            created_at=row["created_at"],
        )
