"""
OpenAI provider.

Chat Completions through the official async SDK. ``base_url`` lets the same
provider target Azure OpenAI or any other OpenAI-compatible gateway.
"""

import logging

import openai
from openai import AsyncOpenAI

from askdb.llm.base import BaseLLMProvider
from askdb.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)

KNOWN_FINISH_REASONS = ("stop", "length", "content_filter")


class OpenAIProvider(BaseLLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 60,
        base_url: str | None = None,
    ):
        super().__init__("openai", model, temperature, max_tokens, timeout)
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=float(timeout))

    async def generate(self, request: LLMRequest) -> LLMResponse:
        request = self._apply_defaults(request)
        self._log_request(request)

        try:
            completion = await self.client.chat.completions.create(
                model=request.model,
                messages=[m.model_dump() for m in request.messages],
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                **request.metadata,
            )
        except openai.APIError as e:
            logger.warning(f"OpenAI request failed: {e}", extra={"model": request.model})
            raise

        choice = completion.choices[0]
        usage = completion.usage
        finish_reason = choice.finish_reason if choice.finish_reason in KNOWN_FINISH_REASONS else "stop"

        llm_response = LLMResponse(
            content=choice.message.content or "",
            model=completion.model,
            provider=self.provider_name,
            usage=LLMUsage.from_counts(
                usage.prompt_tokens if usage else 0,
                usage.completion_tokens if usage else 0,
            ),
            finish_reason=finish_reason,
            metadata={"id": completion.id},
        )
        self._log_response(llm_response)
        return llm_response
