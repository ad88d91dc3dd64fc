"""
LLM Request and Response Models

Provider-neutral message and completion types. Prompts are built as lists of
``LLMMessage`` and every provider answers with an ``LLMResponse``.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

MessageRole = Literal["system", "user", "assistant"]
FinishReason = Literal["stop", "length", "content_filter", "error"]


class LLMMessage(BaseModel):
    """One role-tagged turn of a prompt."""

    role: MessageRole
    content: str = Field(..., min_length=1)


class LLMRequest(BaseModel):
    """
    A single completion call.

    ``None`` for model, temperature or max_tokens means "use the provider
    default"; see ``BaseLLMProvider._apply_defaults``.
    """

    messages: list[LLMMessage] = Field(..., min_length=1)
    model: str | None = None
    temperature: float | None = Field(None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(None, gt=0)
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra keyword arguments forwarded to the provider SDK",
    )

    def system_prompt(self) -> str:
        """All system messages joined, for providers that take them out of band."""
        return "\n\n".join(m.content for m in self.messages if m.role == "system")

    def dialogue(self) -> list[LLMMessage]:
        """Messages other than system instructions, in order."""
        return [m for m in self.messages if m.role != "system"]


class LLMUsage(BaseModel):
    """Token accounting reported (or estimated) by a provider."""

    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)

    @classmethod
    def from_counts(cls, prompt_tokens: int | None, completion_tokens: int | None) -> "LLMUsage":
        prompt_tokens = prompt_tokens or 0
        completion_tokens = completion_tokens or 0
        return cls(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )


class LLMResponse(BaseModel):
    """Generated text plus the bookkeeping needed for logging."""

    content: str
    model: str
    provider: str
    usage: LLMUsage = Field(default_factory=LLMUsage)
    finish_reason: FinishReason = "stop"
    metadata: dict[str, Any] = Field(default_factory=dict)
