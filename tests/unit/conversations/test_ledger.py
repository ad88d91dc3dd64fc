"""Unit tests for the conversation ledger."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from askdb.conversations.ledger import ConversationLedger
from askdb.errors import NotFound, ValidationError


def _message_row(message_id: int, conversation_id: UUID, role: str, content: str, **extra) -> dict:
    row = {
        "message_id": message_id,
        "conversation_id": conversation_id,
        "role": role,
        "content": content,
        "sql_query": None,
        "visual_type": None,
        "created_at": datetime(2026, 2, 20, 10, message_id, tzinfo=UTC),
    }
    row.update(extra)
    return row


@pytest.fixture
def ledger(system_database):
    return ConversationLedger(system_database, title_max_chars=20)


class TestEnsure:
    @pytest.mark.asyncio
    async def test_creates_conversation_for_user(self, ledger, system_pool):
        connection_id = uuid4()

        conversation_id = await ledger.ensure(
            None, "alice", connection_id, "  Revenue by month for the last two years  "
        )

        assert isinstance(conversation_id, UUID)
        args = system_pool.execute.await_args.args
        assert "INSERT INTO conversations" in args[0]
        assert args[1] == conversation_id
        assert args[2] == "alice"
        assert args[3] == connection_id
        assert args[4] == "Revenue by month for"

    @pytest.mark.asyncio
    async def test_anonymous_question_has_no_conversation(self, ledger, system_pool):
        assert await ledger.ensure(None, None, uuid4(), "Revenue") is None
        system_pool.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_existing_conversation_passes_through(self, ledger, system_pool):
        conversation_id = uuid4()
        system_pool.fetchval.return_value = 1

        result = await ledger.ensure(str(conversation_id), "alice", uuid4(), "Revenue")

        assert result == conversation_id
        system_pool.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_conversation(self, ledger, system_pool):
        system_pool.fetchval.return_value = None

        with pytest.raises(NotFound):
            await ledger.ensure(uuid4(), "alice", uuid4(), "Revenue")

    @pytest.mark.asyncio
    async def test_existing_conversation_is_scoped_to_owner_and_connection(
        self, ledger, system_pool
    ):
        conversation_id = uuid4()
        connection_id = uuid4()
        system_pool.fetchval.return_value = 1

        await ledger.ensure(conversation_id, "alice", connection_id, "Revenue")

        query, *params = system_pool.fetchval.await_args.args
        assert "connection_id = $2" in query
        assert "owner_id IS NOT DISTINCT FROM $3" in query
        assert params == [conversation_id, connection_id, "alice"]

    @pytest.mark.asyncio
    async def test_other_users_conversation_is_not_found(self, ledger, system_pool):
        # The scoped lookup matches no row for a different owner
        system_pool.fetchval.return_value = None
        foreign_id = uuid4()

        with pytest.raises(NotFound):
            await ledger.ensure(foreign_id, "mallory", uuid4(), "Revenue")

        assert system_pool.fetchval.await_args.args[3] == "mallory"
        system_pool.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_malformed_conversation_id(self, ledger):
        with pytest.raises(ValidationError) as exc_info:
            await ledger.ensure("nope", "alice", uuid4(), "Revenue")

        assert exc_info.value.field == "conversation_id"


class TestAppend:
    @pytest.mark.asyncio
    async def test_append_user_and_assistant(self, ledger, system_pool):
        conversation_id = uuid4()

        await ledger.append_user(conversation_id, "Revenue by month")
        await ledger.append_assistant(
            conversation_id, "Revenue grew steadily.", "SELECT 1", "line"
        )

        user_args, assistant_args = [call.args for call in system_pool.execute.await_args_list]
        assert user_args[1:6] == (conversation_id, "user", "Revenue by month", None, None)
        assert assistant_args[1:6] == (
            conversation_id,
            "assistant",
            "Revenue grew steadily.",
            "SELECT 1",
            "line",
        )
        assert isinstance(assistant_args[6], datetime)

    @pytest.mark.asyncio
    async def test_touch(self, ledger, system_pool):
        conversation_id = uuid4()

        await ledger.touch(conversation_id)

        args = system_pool.execute.await_args.args
        assert "UPDATE conversations SET updated_at" in args[0]
        assert args[1] == conversation_id


class TestHistory:
    @pytest.mark.asyncio
    async def test_recent_history_is_oldest_first(self, ledger, system_pool):
        conversation_id = uuid4()
        system_pool.fetch.return_value = [
            _message_row(3, conversation_id, "user", "third"),
            _message_row(2, conversation_id, "assistant", "second", sql_query="SELECT 2"),
            _message_row(1, conversation_id, "user", "first"),
        ]

        history = await ledger.recent_history(conversation_id, limit=3)

        assert [m.content for m in history] == ["first", "second", "third"]
        assert history[1].sql_query == "SELECT 2"
        assert system_pool.fetch.await_args.args[2] == 3

    @pytest.mark.asyncio
    async def test_recent_history_zero_limit(self, ledger, system_pool):
        assert await ledger.recent_history(uuid4(), limit=0) == []
        system_pool.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_messages_require_ownership(self, ledger, system_pool):
        system_pool.fetchval.return_value = None

        with pytest.raises(NotFound):
            await ledger.messages(uuid4(), "mallory")

        system_pool.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_messages_for_owner(self, ledger, system_pool):
        conversation_id = uuid4()
        system_pool.fetchval.return_value = 1
        system_pool.fetch.return_value = [
            _message_row(1, conversation_id, "user", "first"),
            _message_row(2, conversation_id, "assistant", "", visual_type="table"),
        ]

        messages = await ledger.messages(conversation_id, "alice")

        assert [m.role for m in messages] == ["user", "assistant"]
        assert messages[1].visual_type == "table"
        assert "ORDER BY created_at ASC" in system_pool.fetch.await_args.args[0]


class TestListAndDelete:
    @pytest.mark.asyncio
    async def test_list_for_connection(self, ledger, system_pool):
        connection_id = uuid4()
        now = datetime(2026, 2, 20, tzinfo=UTC)
        system_pool.fetch.return_value = [
            {
                "conversation_id": uuid4(),
                "owner_id": "alice",
                "connection_id": connection_id,
                "title": "Revenue by month",
                "created_at": now,
                "updated_at": now,
            }
        ]

        conversations = await ledger.list_for_connection("alice", str(connection_id), limit=500)

        assert conversations[0].title == "Revenue by month"
        args = system_pool.fetch.await_args.args
        assert "ORDER BY updated_at DESC" in args[0]
        assert args[1:] == ("alice", connection_id, 50)

    @pytest.mark.asyncio
    async def test_delete_owned(self, ledger, system_pool):
        system_pool.execute.return_value = "DELETE 1"

        await ledger.delete(uuid4(), "alice")

    @pytest.mark.asyncio
    async def test_delete_missing(self, ledger, system_pool):
        system_pool.execute.return_value = "DELETE 0"

        with pytest.raises(NotFound):
            await ledger.delete(uuid4(), "alice")
