"""LLM provider clients normalized to a single reply shape."""
from app.services.llm_providers.base import LLMProvider, ProviderError, ProviderReply
from app.services.llm_providers.factory import build_provider

__all__ = ["LLMProvider", "ProviderError", "ProviderReply", "build_provider"]
