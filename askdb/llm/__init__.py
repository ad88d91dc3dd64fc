"""
LLM Provider Module

Multi-provider LLM abstraction layer supporting OpenAI, Anthropic, Google, and Local models.

Usage:
    from askdb.llm import LLMProviderFactory, LLMMessage
    from askdb.config import get_settings

    config = get_settings()
    provider = LLMProviderFactory.create_default_provider(config.llm)

    text = await provider.chat([LLMMessage(role="user", content="Hello!")])
"""

from askdb.llm.anthropic import AnthropicProvider
from askdb.llm.base import BaseLLMProvider
from askdb.llm.factory import LLMProviderFactory
from askdb.llm.google import GoogleProvider
from askdb.llm.local import LocalProvider
from askdb.llm.models import LLMMessage, LLMRequest, LLMResponse, LLMUsage
from askdb.llm.openai import OpenAIProvider

__all__ = [
    # Base classes
    "BaseLLMProvider",
    # Models
    "LLMMessage",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    # Factory
    "LLMProviderFactory",
    # Providers
    "OpenAIProvider",
    "AnthropicProvider",
    "GoogleProvider",
    "LocalProvider",
]
