"""
Google Gemini provider.

Gemini's ``generate_content`` takes a single prompt, so the message list is
folded into ``Role: content`` paragraphs.
"""

import logging
import warnings
from typing import Any

with warnings.catch_warnings():
    warnings.simplefilter("ignore", FutureWarning)
    import google.generativeai as genai

from askdb.llm.base import BaseLLMProvider
from askdb.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)

# Gemini does not always report usage
CHARS_PER_TOKEN = 4


def fold_messages(request: LLMRequest) -> str:
    return "\n\n".join(f"{m.role.capitalize()}: {m.content}" for m in request.messages)


def map_finish_reason(raw: str) -> str:
    raw = raw.lower()
    if "max_tokens" in raw or "length" in raw:
        return "length"
    if any(token in raw for token in ("safety", "blocked", "recitation")):
        return "content_filter"
    return "stop"


class GoogleProvider(BaseLLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 60,
    ):
        super().__init__("google", model, temperature, max_tokens, timeout)
        genai.configure(api_key=api_key)
        self.genai = genai

    async def generate(self, request: LLMRequest) -> LLMResponse:
        request = self._apply_defaults(request)
        self._log_request(request)

        prompt = fold_messages(request)
        model = self.genai.GenerativeModel(request.model)
        result = await model.generate_content_async(
            prompt,
            generation_config=self.genai.types.GenerationConfig(
                temperature=request.temperature,
                max_output_tokens=request.max_tokens,
            ),
        )

        text = result.text if isinstance(getattr(result, "text", None), str) else ""
        raw_reason = _raw_finish_reason(result)

        llm_response = LLMResponse(
            content=text,
            model=request.model,
            provider=self.provider_name,
            usage=LLMUsage.from_counts(len(prompt) // CHARS_PER_TOKEN, len(text) // CHARS_PER_TOKEN),
            finish_reason=map_finish_reason(raw_reason),
            metadata={"raw_finish_reason": raw_reason},
        )
        self._log_response(llm_response)
        return llm_response


def _raw_finish_reason(result: Any) -> str:
    candidates = getattr(result, "candidates", None)
    if not candidates:
        return ""
    return str(getattr(candidates[0], "finish_reason", "") or "")
