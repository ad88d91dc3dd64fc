"""Anthropic (Claude) provider over the Messages API."""

import logging

from anthropic import AsyncAnthropic

from askdb.llm.base import BaseLLMProvider
from askdb.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)

STOP_REASONS = {"end_turn": "stop", "stop_sequence": "stop", "max_tokens": "length"}


class AnthropicProvider(BaseLLMProvider):
    """
    Claude behind ``chat()``.

    The Messages API takes system instructions as a separate ``system``
    argument, so they are lifted out of the message list.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-sonnet-20241022",
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 60,
    ):
        super().__init__("anthropic", model, temperature, max_tokens, timeout)
        self.client = AsyncAnthropic(api_key=api_key, timeout=float(timeout))

    async def generate(self, request: LLMRequest) -> LLMResponse:
        request = self._apply_defaults(request)
        self._log_request(request)

        kwargs = dict(request.metadata)
        system = request.system_prompt()
        if system:
            kwargs["system"] = system

        response = await self.client.messages.create(
            model=request.model,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            messages=[{"role": m.role, "content": m.content} for m in request.dialogue()],
            **kwargs,
        )

        llm_response = LLMResponse(
            content="".join(
                block.text for block in response.content if getattr(block, "type", "text") == "text"
            ),
            model=response.model,
            provider=self.provider_name,
            usage=LLMUsage.from_counts(response.usage.input_tokens, response.usage.output_tokens),
            finish_reason=STOP_REASONS.get(response.stop_reason, "stop"),
            metadata={"id": response.id},
        )
        self._log_response(llm_response)
        return llm_response
