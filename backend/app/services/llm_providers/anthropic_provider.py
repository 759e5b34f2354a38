"""Anthropic messages provider."""
from __future__ import annotations

import logging
from typing import Any, Optional

import anthropic

from app.services.llm_providers.base import LLMProvider, ProviderError, ProviderReply, as_envelope, normalize_envelope

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    name = "anthropic"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        max_output_tokens: int,
        timeout_seconds: float,
        client: Optional[Any] = None,
    ) -> None:
        self.model = model
        self.max_output_tokens = max_output_tokens
        self.timeout_seconds = timeout_seconds
        self._client = client or anthropic.Anthropic(api_key=api_key, timeout=timeout_seconds, max_retries=0)

    def invoke(
        self,
        system_instruction: str,
        user_instruction: str,
        *,
        temperature: float,
        output_budget: int,
    ) -> ProviderReply:
        logger.info("Calling Anthropic model=%s max_tokens=%s", self.model, output_budget)
        try:
            message = self._client.messages.create(
                model=self.model,
                system=system_instruction,
                messages=[{"role": "user", "content": user_instruction}],
                max_tokens=output_budget,
                temperature=temperature,
            )
        except anthropic.APITimeoutError as exc:
            raise ProviderError(
                f"AI generation timed out after {self.timeout_seconds:g} seconds. Please try again.",
                timed_out=True,
            ) from exc
        except anthropic.APIStatusError as exc:
            raise ProviderError(f"HTTP {exc.status_code}: {exc.message}", upstream_status=exc.status_code) from exc
        except anthropic.APIError as exc:
            raise ProviderError(f"Anthropic request failed: {exc}") from exc

        return normalize_envelope(as_envelope(message), self.model)
