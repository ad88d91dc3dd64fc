"""
Language model boundary.

The pipeline only ever talks to providers through ``chat()``: an ordered
list of role/content messages in, generated text out. ``chat()`` bounds the
call by the provider timeout and converts every failure into ``LLMError``.
Concrete providers implement ``generate()`` against their SDK.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

from askdb.errors import AskDBError, LLMError
from askdb.llm.models import LLMMessage, LLMRequest, LLMResponse

logger = logging.getLogger(__name__)


class BaseLLMProvider(ABC):
    """
    Common behaviour for every provider.

    Attributes:
        provider_name: Identifier reported in errors and logs
        model: Model used when a request does not name one
        temperature: Default sampling temperature
        max_tokens: Default completion budget
        timeout: Upper bound for one call, in seconds
    """

    def __init__(
        self,
        provider_name: str,
        model: str,
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 60,
    ):
        self.provider_name = provider_name
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        logger.info(
            f"Initialized {provider_name} provider",
            extra={"provider": provider_name, "model": model, "timeout": timeout},
        )

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Run one completion; SDK exceptions propagate unchanged."""

    async def chat(
        self,
        messages: list[LLMMessage],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """
        Send an ordered message list and return the generated text.

        Raises:
            LLMError: On timeout, upstream failure or an empty completion
        """
        request = LLMRequest(
            messages=messages,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        try:
            response = await asyncio.wait_for(self.generate(request), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"{self.provider_name} call timed out after {self.timeout}s")
            raise LLMError(
                f"{self.provider_name} call timed out after {self.timeout}s",
                provider=self.provider_name,
                reason="timeout",
            ) from e
        except AskDBError:
            raise
        except Exception as e:
            logger.error(f"{self.provider_name} call failed: {e}")
            raise LLMError(
                f"{self.provider_name} call failed: {e}",
                provider=self.provider_name,
                reason="upstream",
            ) from e

        content = response.content.strip()
        if not content:
            raise LLMError(
                f"{self.provider_name} returned an empty completion",
                provider=self.provider_name,
                reason="empty_response",
            )
        return content

    def _apply_defaults(self, request: LLMRequest) -> LLMRequest:
        return request.model_copy(
            update={
                "model": request.model or self.model,
                "temperature": self.temperature if request.temperature is None else request.temperature,
                "max_tokens": request.max_tokens or self.max_tokens,
            }
        )

    def _log_request(self, request: LLMRequest) -> None:
        logger.debug(
            f"{self.provider_name} request: {len(request.messages)} messages",
            extra={"provider": self.provider_name, "model": request.model},
        )

    def _log_response(self, response: LLMResponse) -> None:
        logger.debug(
            f"{self.provider_name} response: {response.usage.total_tokens} tokens "
            f"({response.finish_reason})",
            extra={
                "provider": self.provider_name,
                "model": response.model,
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
            },
        )
