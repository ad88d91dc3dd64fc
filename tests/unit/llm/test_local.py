"""Tests for the local model server provider."""

import json

import httpx
import pytest

from askdb.llm.local import LocalProvider
from askdb.llm.models import LLMMessage, LLMRequest


def _provider(handler) -> LocalProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LocalProvider(base_url="http://models.local:11434/", model="llama3.1:8b", client=client)


@pytest.mark.asyncio
async def test_ollama_endpoint():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "model": "llama3.1:8b",
                "message": {"role": "assistant", "content": "SELECT 1"},
                "prompt_eval_count": 20,
                "eval_count": 3,
            },
        )

    provider = _provider(handler)
    response = await provider.generate(
        LLMRequest(messages=[LLMMessage(role="user", content="hi")], temperature=0.1)
    )
    await provider.aclose()

    assert response.content == "SELECT 1"
    assert response.usage.total_tokens == 23
    assert seen[0].url.path == "/api/chat"
    payload = json.loads(seen[0].content)
    assert payload["stream"] is False
    assert payload["temperature"] == 0.1


@pytest.mark.asyncio
async def test_falls_back_to_openai_compatible_endpoint():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/chat":
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(
            200,
            json={
                "model": "llama3.1:8b",
                "choices": [{"message": {"role": "assistant", "content": "SELECT 2"}}],
                "usage": {"prompt_tokens": 5, "completion_tokens": 2},
            },
        )

    provider = _provider(handler)
    response = await provider.generate(LLMRequest(messages=[LLMMessage(role="user", content="hi")]))
    await provider.aclose()

    assert response.content == "SELECT 2"
    assert response.usage.prompt_tokens == 5
