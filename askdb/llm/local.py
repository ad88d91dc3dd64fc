"""
Local model server provider.

Talks to Ollama's native ``/api/chat`` and, when that endpoint is absent,
to an OpenAI-compatible ``/v1/chat/completions`` (vLLM, llama.cpp server,
LM Studio) on the same base URL.
"""

import logging
from typing import Any

import httpx

from askdb.llm.base import BaseLLMProvider
from askdb.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)

OLLAMA_PATH = "/api/chat"
OPENAI_COMPATIBLE_PATH = "/v1/chat/completions"


class LocalProvider(BaseLLMProvider):
    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 60,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__("local", model, temperature, max_tokens, timeout)
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=float(timeout))

    async def generate(self, request: LLMRequest) -> LLMResponse:
        request = self._apply_defaults(request)
        self._log_request(request)

        payload = {
            "model": request.model,
            "messages": [m.model_dump() for m in request.messages],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "stream": False,
        }

        try:
            body = await self._post(OLLAMA_PATH, payload)
            content = body.get("message", {}).get("content")
            usage = LLMUsage.from_counts(body.get("prompt_eval_count"), body.get("eval_count"))
        except httpx.HTTPError as e:
            logger.debug(f"Ollama endpoint unavailable ({e}), trying OpenAI-compatible API")
            body = await self._post(OPENAI_COMPATIBLE_PATH, payload)
            choices = body.get("choices") or [{}]
            content = choices[0].get("message", {}).get("content")
            counts = body.get("usage") or {}
            usage = LLMUsage.from_counts(counts.get("prompt_tokens"), counts.get("completion_tokens"))

        llm_response = LLMResponse(
            content=content or "",
            model=body.get("model", request.model),
            provider=self.provider_name,
            usage=usage,
            metadata={"base_url": self.base_url},
        )
        self._log_response(llm_response)
        return llm_response

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self.client.post(f"{self.base_url}{path}", json=payload)
        response.raise_for_status()
        return response.json()
