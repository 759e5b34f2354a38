"""Application configuration managed via environment variables."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Maat Flow Generator"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://postgres@localhost:5432/maat"
    cors_allow_origins: List[str] = ["*"]

    llm_provider: str = "openai"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_max_output_tokens: int = 16000
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_max_output_tokens: int = 8192
    llm_temperature: float = 0.7
    llm_timeout_seconds: float = 45.0
    llm_placeholder_on_missing_key: bool = True

    flow_cache_ttl_days: int = 7

    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "maat-flow-generator"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()


@dataclass(frozen=True)
class GenerationConfig:
    """Immutable snapshot of everything the generation pipeline needs."""

    provider: str
    model: str
    api_key: Optional[str]
    max_output_tokens: int
    temperature: float
    timeout_seconds: float
    cache_ttl_days: int
    placeholder_on_missing_key: bool
    storage_configured: bool

    @classmethod
    def from_settings(cls, source: Settings) -> "GenerationConfig":
        provider = (source.llm_provider or "openai").strip().lower()
        if provider == "anthropic":
            model = source.anthropic_model
            api_key = source.anthropic_api_key
            ceiling = source.anthropic_max_output_tokens
        else:
            provider = "openai"
            model = source.openai_model
            api_key = source.openai_api_key
            ceiling = source.openai_max_output_tokens
        return cls(
            provider=provider,
            model=model,
            api_key=api_key or None,
            max_output_tokens=ceiling,
            temperature=source.llm_temperature,
            timeout_seconds=source.llm_timeout_seconds,
            cache_ttl_days=source.flow_cache_ttl_days,
            placeholder_on_missing_key=source.llm_placeholder_on_missing_key,
            storage_configured=bool((source.database_url or "").strip()),
        )


@lru_cache
def get_generation_config() -> GenerationConfig:
    """Resolve the pipeline configuration once per process."""
    return GenerationConfig.from_settings(get_settings())
