"""OpenAI chat-completions provider."""
from __future__ import annotations

import logging
from typing import Any, Optional

import openai

from app.services.llm_providers.base import LLMProvider, ProviderError, ProviderReply, as_envelope, normalize_envelope

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    name = "openai"

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
        # Retries are the caller's decision, never the SDK's.
        self._client = client or openai.OpenAI(api_key=api_key, timeout=timeout_seconds, max_retries=0)

    def invoke(
        self,
        system_instruction: str,
        user_instruction: str,
        *,
        temperature: float,
        output_budget: int,
    ) -> ProviderReply:
        logger.info("Calling OpenAI model=%s max_tokens=%s", self.model, output_budget)
        try:
            completion = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_instruction},
                    {"role": "user", "content": user_instruction},
                ],
                temperature=temperature,
                max_tokens=output_budget,
            )
        except openai.APITimeoutError as exc:
            raise ProviderError(
                f"AI generation timed out after {self.timeout_seconds:g} seconds. Please try again.",
                timed_out=True,
            ) from exc
        except openai.APIStatusError as exc:
            raise ProviderError(f"HTTP {exc.status_code}: {exc.message}", upstream_status=exc.status_code) from exc
        except openai.APIError as exc:
            raise ProviderError(f"OpenAI request failed: {exc}") from exc

        return normalize_envelope(as_envelope(completion), self.model)
