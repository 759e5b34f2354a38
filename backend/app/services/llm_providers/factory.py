"""Provider factory driven by the resolved generation config."""
from __future__ import annotations

from app.core.config import GenerationConfig
from app.services.llm_providers.anthropic_provider import AnthropicProvider
from app.services.llm_providers.base import LLMProvider
from app.services.llm_providers.openai_provider import OpenAIProvider
from app.services.llm_providers.placeholder import PlaceholderProvider, UnconfiguredProvider


def build_provider(config: GenerationConfig) -> LLMProvider:
    if not config.api_key:
        if config.placeholder_on_missing_key:
            return PlaceholderProvider(missing_for=config.provider, max_output_tokens=config.max_output_tokens)
        return UnconfiguredProvider(
            missing_for=config.provider,
            model=config.model,
            max_output_tokens=config.max_output_tokens,
        )

    if config.provider == "anthropic":
        return AnthropicProvider(
            api_key=config.api_key,
            model=config.model,
            max_output_tokens=config.max_output_tokens,
            timeout_seconds=config.timeout_seconds,
        )
    return OpenAIProvider(
        api_key=config.api_key,
        model=config.model,
        max_output_tokens=config.max_output_tokens,
        timeout_seconds=config.timeout_seconds,
    )
