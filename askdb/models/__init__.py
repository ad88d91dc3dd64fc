"""Pydantic models shared across the AskDB pipeline."""

from askdb.models.connection import (
    DEFAULT_PORTS,
    REDACTED_PASSWORD,
    SUPPORTED_ENGINES,
    Connection,
    ConnectionCreate,
    Engine,
)
from askdb.models.conversation import Conversation, Message, MessageRole
from askdb.models.pipeline import (
    UNABLE_TO_ANALYZE,
    AskRequest,
    AskResult,
    Classification,
    SQLErrorResponse,
    SummaryText,
    VisualSpec,
    VisualType,
)
from askdb.models.schema import ColumnSnapshot, SchemaSnapshot

__all__ = [
    "AskRequest",
    "AskResult",
    "Classification",
    "ColumnSnapshot",
    "Connection",
    "ConnectionCreate",
    "Conversation",
    "DEFAULT_PORTS",
    "Engine",
    "Message",
    "MessageRole",
    "REDACTED_PASSWORD",
    "SQLErrorResponse",
    "SUPPORTED_ENGINES",
    "SchemaSnapshot",
    "SummaryText",
    "UNABLE_TO_ANALYZE",
    "VisualSpec",
    "VisualType",
]
