"""
Conversation ledger models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

MessageRole = Literal["user", "assistant"]


class Conversation(BaseModel):
    """A titled thread of questions against one connection."""

    conversation_id: UUID = Field(..., description="Conversation identifier")
    owner_id: str = Field(..., description="Owning user")
    connection_id: UUID = Field(..., description="Connection the questions target")
    title: str = Field(..., description="First characters of the opening question")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last assistant turn timestamp")


class Message(BaseModel):
    """Single append-only turn in a conversation."""

    message_id: int = Field(..., description="Monotonic message identifier")
    conversation_id: UUID = Field(..., description="Parent conversation")
    role: MessageRole = Field(..., description="Message author")
    content: str = Field(default="", description="Question or assistant summary")
    sql_query: str | None = Field(None, description="SQL that produced the answer")
    visual_type: str | None = Field(None, description="Visualization chosen for the answer")
    created_at: datetime = Field(..., description="Creation timestamp")
