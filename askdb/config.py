"""
Application Configuration

Settings come from the environment (optionally a ``.env`` file) and are
grouped by concern: language model providers, the system database, sandbox
limits for target databases, pipeline behaviour and logging.

Usage:
    from askdb.config import get_settings

    settings = get_settings()
    settings.logging.configure()
    provider = settings.llm.provider_for("sql")
"""

import logging
import os
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, PostgresDsn, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PipelineRole = Literal["sql", "classifier"]

# Key prefixes enforced for providers whose keys have a known shape
API_KEY_PREFIXES = {"openai_api_key": "sk-", "anthropic_api_key": "sk-ant-"}


class ProviderKind(str, Enum):
    """Language model providers; resolved once when settings load."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    LOCAL = "local"

    @property
    def needs_api_key(self) -> bool:
        return self is not ProviderKind.LOCAL


class LLMSettings(BaseSettings):
    """
    Provider selection, credentials and call limits.

    ``sql_provider`` and ``classifier_provider`` override
    ``default_provider`` for one pipeline role each.
    """

    default_provider: ProviderKind = ProviderKind.OPENAI
    sql_provider: ProviderKind | None = None
    classifier_provider: ProviderKind | None = None

    openai_api_key: str | None = Field(None, min_length=20)
    openai_model: str = "gpt-4o"
    openai_base_url: str | None = Field(None, description="OpenAI-compatible gateway URL")

    anthropic_api_key: str | None = Field(None, min_length=20)
    anthropic_model: str = "claude-3-5-sonnet-20241022"

    google_api_key: str | None = None
    google_model: str = "gemini-1.5-flash"

    local_base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama or OpenAI-compatible model server",
    )
    local_model: str = "llama3.1:8b"

    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2000, gt=0, le=65536)
    timeout: int = Field(default=60, gt=0, description="Seconds allowed for one model call")

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("openai_api_key", "anthropic_api_key")
    @classmethod
    def check_key_prefix(cls, v: str | None, info: ValidationInfo) -> str | None:
        prefix = API_KEY_PREFIXES[info.field_name]
        if v and not v.startswith(prefix):
            provider = info.field_name.removesuffix("_api_key")
            label = "OpenAI" if provider == "openai" else "Anthropic"
            raise ValueError(f"{label} API key must start with '{prefix}'")
        return v

    @model_validator(mode="after")
    def require_keys_for_selected_providers(self) -> "LLMSettings":
        selected = {self.default_provider, self.sql_provider, self.classifier_provider}
        for provider in sorted(p for p in selected if p and p.needs_api_key):
            if not self.api_key_for(provider):
                raise ValueError(
                    f"API key required for {provider.value} provider. "
                    f"Set LLM_{provider.value.upper()}_API_KEY"
                )
        return self

    def api_key_for(self, provider: ProviderKind) -> str | None:
        return getattr(self, f"{provider.value}_api_key", None)

    def provider_for(self, role: PipelineRole) -> ProviderKind:
        """Provider serving ``role``, after applying its override."""
        overrides = {"sql": self.sql_provider, "classifier": self.classifier_provider}
        if role not in overrides:
            raise ValueError(f"Unknown pipeline role: {role}")
        return overrides[role] or self.default_provider


class SystemDatabaseSettings(BaseSettings):
    """PostgreSQL database holding connections, snapshots and conversations."""

    url: PostgresDsn | None = None
    min_pool_size: int = Field(default=1, ge=1, le=20)
    max_pool_size: int = Field(default=5, ge=1, le=50)

    model_config = SettingsConfigDict(
        env_prefix="SYSTEM_DATABASE_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("url", mode="before")
    @classmethod
    def normalize_url(cls, v):
        return v or None

    @model_validator(mode="after")
    def validate_pool_bounds(self) -> "SystemDatabaseSettings":
        if self.min_pool_size > self.max_pool_size:
            raise ValueError(
                f"min_pool_size ({self.min_pool_size}) must not exceed "
                f"max_pool_size ({self.max_pool_size})"
            )
        return self


class SandboxSettings(BaseSettings):
    """Limits applied to every statement run against a target database."""

    connect_timeout: int = Field(default=10, gt=0, le=120)
    statement_timeout: int = Field(default=30, gt=0, le=600)

    model_config = SettingsConfigDict(
        env_prefix="SANDBOX_",
        env_file=".env",
        extra="ignore",
    )


class PipelineSettings(BaseSettings):
    max_correction_attempts: int = Field(
        default=1,
        ge=0,
        le=3,
        description="Regenerations allowed after a statement fails to execute",
    )
    history_limit: int = Field(default=10, ge=0, le=50)
    classifier_preview_rows: int = Field(default=50, ge=1, le=500)
    title_max_chars: int = Field(default=100, ge=10, le=255)
    generation_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    classifier_temperature: float = Field(default=0.2, ge=0.0, le=2.0)

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=".env",
        extra="ignore",
    )


class LoggingSettings(BaseSettings):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    file: Path | None = Field(default=None, description="Also write logs here when set")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    def configure(self) -> None:
        """Install root handlers, replacing any configured earlier."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]
        if self.file:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))

        logging.basicConfig(
            level=self.level,
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,
        )


class Settings(BaseSettings):
    """
    Top-level settings.

    Nested groups read their own prefixed variables (``LLM_``,
    ``SYSTEM_DATABASE_``, ``SANDBOX_``, ``PIPELINE_``, ``LOG_``).
    ``DATABASE_CREDENTIALS_KEY`` is the Fernet key used to encrypt stored
    connection passwords.
    """

    environment: Literal["development", "staging", "production"] = "development"
    app_name: str = "AskDB"

    llm: LLMSettings = Field(default_factory=LLMSettings)
    system_database: SystemDatabaseSettings = Field(default_factory=SystemDatabaseSettings)
    sandbox: SandboxSettings = Field(default_factory=SandboxSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    database_credentials_key: str | None = Field(
        default=None,
        validation_alias="DATABASE_CREDENTIALS_KEY",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def model_post_init(self, __context) -> None:
        logging.getLogger(__name__).debug(
            f"Settings loaded for {self.app_name} ({self.environment})",
            extra={
                "llm_provider": self.llm.default_provider.value,
                "max_correction_attempts": self.pipeline.max_correction_attempts,
            },
        )


# ASKDB_ENV_SOURCE=environment keeps process variables authoritative over .env
_DOTENV_PATH = Path.cwd() / ".env"


def _apply_dotenv_precedence() -> None:
    env_source = os.getenv("ASKDB_ENV_SOURCE", "dotenv").lower()
    if env_source in {"dotenv", "envfile", "file"} and _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=True)


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
