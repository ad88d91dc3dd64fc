"""
LLM Provider Factory

Factory and registry for creating LLM provider instances based on configuration.
Provider kinds are a closed enum resolved once at configuration load; each
kind maps to exactly one builder.
"""

import logging
from typing import Callable

from askdb.config import LLMSettings, PipelineRole, ProviderKind
from askdb.errors import LLMError
from askdb.llm.anthropic import AnthropicProvider
from askdb.llm.base import BaseLLMProvider
from askdb.llm.google import GoogleProvider
from askdb.llm.local import LocalProvider
from askdb.llm.openai import OpenAIProvider

logger = logging.getLogger(__name__)


def _require_key(kind: ProviderKind, config: LLMSettings) -> str:
    key = config.api_key_for(kind)
    if not key:
        raise LLMError(
            f"API key is required for the {kind.value} provider but not configured "
            f"(set LLM_{kind.value.upper()}_API_KEY)",
            provider=kind.value,
            reason="credentials_missing",
        )
    return key


def _build_openai(config: LLMSettings) -> OpenAIProvider:
    return OpenAIProvider(
        api_key=_require_key(ProviderKind.OPENAI, config),
        model=config.openai_model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout,
        base_url=config.openai_base_url,
    )


def _build_anthropic(config: LLMSettings) -> AnthropicProvider:
    return AnthropicProvider(
        api_key=_require_key(ProviderKind.ANTHROPIC, config),
        model=config.anthropic_model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout,
    )


def _build_google(config: LLMSettings) -> GoogleProvider:
    return GoogleProvider(
        api_key=_require_key(ProviderKind.GOOGLE, config),
        model=config.google_model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout,
    )


def _build_local(config: LLMSettings) -> LocalProvider:
    return LocalProvider(
        base_url=config.local_base_url,
        model=config.local_model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout,
    )


class LLMProviderFactory:
    """
    Factory for creating LLM provider instances.

    Usage:
        provider = LLMProviderFactory.create_agent_provider("sql", settings.llm)
        text = await provider.chat(messages)
    """

    # Registry of available providers
    PROVIDERS: dict[ProviderKind, Callable[[LLMSettings], BaseLLMProvider]] = {
        ProviderKind.OPENAI: _build_openai,
        ProviderKind.ANTHROPIC: _build_anthropic,
        ProviderKind.GOOGLE: _build_google,
        ProviderKind.LOCAL: _build_local,
    }

    @staticmethod
    def create_provider(provider_type: ProviderKind | str, config: LLMSettings) -> BaseLLMProvider:
        """
        Create an LLM provider instance.

        Raises:
            ValueError: If provider type is unknown
            LLMError: If the provider's credentials are missing
        """
        try:
            kind = ProviderKind(provider_type)
        except ValueError as e:
            raise ValueError(
                f"Unknown provider type: {provider_type}. "
                f"Available providers: {[k.value for k in LLMProviderFactory.PROVIDERS]}"
            ) from e

        logger.info(f"Creating {kind.value} provider", extra={"provider": kind.value})
        return LLMProviderFactory.PROVIDERS[kind](config)

    @staticmethod
    def create_default_provider(config: LLMSettings) -> BaseLLMProvider:
        """Create provider using default_provider from config."""
        return LLMProviderFactory.create_provider(config.default_provider, config)

    @staticmethod
    def create_agent_provider(role: PipelineRole, config: LLMSettings) -> BaseLLMProvider:
        """
        Create the provider serving a pipeline role.

        ``LLMSettings.provider_for`` applies the ``sql_provider`` or
        ``classifier_provider`` override and falls back to ``default_provider``.
        """
        kind = config.provider_for(role)
        logger.info(
            f"Creating provider for {role} role",
            extra={"role": role, "provider": kind.value},
        )
        return LLMProviderFactory.create_provider(kind, config)
