"""
Query pipeline request/response models.
"""

from __future__ import annotations

from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

VisualType = Literal["kpi", "line", "bar", "table"]

UNABLE_TO_ANALYZE = "Unable to analyze data."


class AskRequest(BaseModel):
    """A natural-language question against a registered connection."""

    question: str = Field(default="", description="Natural-language question")
    connection_id: UUID | str | None = Field(None, description="Target connection")
    conversation_id: UUID | str | None = Field(None, description="Existing conversation")
    user_id: str | None = Field(None, description="Authenticated user, if any")


class VisualSpec(BaseModel):
    """Chart description for the result set."""

    type: VisualType = Field(default="table", description="Visualization type")
    index: str | None = Field(None, description="X-axis key for line/bar charts")
    categories: list[str] = Field(default_factory=list, description="Numeric series keys")


class SummaryText(BaseModel):
    """Natural-language explanation of the result."""

    text: str = Field(default="", description="Summary text")


class Classification(BaseModel):
    """Shaped result returned by the result classifier."""

    visual: VisualSpec = Field(default_factory=VisualSpec)
    data: list[dict[str, Any]] = Field(default_factory=list)
    summary: SummaryText = Field(default_factory=SummaryText)

    @classmethod
    def fallback(cls, rows: list[dict[str, Any]]) -> Classification:
        """Deterministic default used when the model output is unusable."""
        return cls(
            visual=VisualSpec(type="table"),
            data=list(rows),
            summary=SummaryText(text=UNABLE_TO_ANALYZE),
        )


class AskResult(BaseModel):
    """Caller-facing answer for one question."""

    sql: str = Field(..., description="Executed SQL")
    visual: VisualSpec = Field(..., description="Visualization description")
    data: list[dict[str, Any]] = Field(..., description="Shaped result rows")
    summary: SummaryText = Field(..., description="Summary text")
    conversation_id: UUID | None = Field(None, description="Conversation the turn was recorded in")
    attempts: int = Field(default=1, ge=1, description="Execution attempts used")


class SQLErrorResponse(BaseModel):
    """Informative payload for a SQL-level failure."""

    message: str
    code: str
    error: bool = True
