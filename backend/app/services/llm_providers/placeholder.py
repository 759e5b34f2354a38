"""Providers used when no credential is configured."""
from __future__ import annotations

import json
import logging

from app.services.llm_providers.base import LLMProvider, ProviderError, ProviderReply

logger = logging.getLogger(__name__)

PLACEHOLDER_MODEL_ID = "placeholder"

PLACEHOLDER_FLOW = {
    "flowName": "AI Draft Flow",
    "overview": {
        "title": "AI Draft Flow",
        "summary": "Placeholder generated without a configured LLM provider.",
    },
    "notes": [
        {
            "day_index": 0,
            "title": "Placeholder Block",
            "details": "No API key configured in environment.",
            "allDay": True,
        }
    ],
}


class PlaceholderProvider(LLMProvider):
    """Returns a clearly-labeled draft so the pipeline stays exercisable offline."""

    name = "placeholder"
    model = PLACEHOLDER_MODEL_ID

    def __init__(self, *, missing_for: str, max_output_tokens: int) -> None:
        self.missing_for = missing_for
        self.max_output_tokens = max_output_tokens

    def invoke(self, system_instruction, user_instruction, *, temperature, output_budget) -> ProviderReply:
        logger.warning("%s API key missing; returning placeholder flow", self.missing_for)
        return ProviderReply(
            ok=True,
            model_id=PLACEHOLDER_MODEL_ID,
            text=json.dumps(PLACEHOLDER_FLOW),
            tokens_in=0,
            tokens_out=0,
            finish_reason="stop",
        )


class UnconfiguredProvider(LLMProvider):
    """Fails every call; used when placeholders are disabled."""

    name = "unconfigured"

    def __init__(self, *, missing_for: str, model: str, max_output_tokens: int) -> None:
        self.missing_for = missing_for
        self.model = model
        self.max_output_tokens = max_output_tokens

    def invoke(self, system_instruction, user_instruction, *, temperature, output_budget) -> ProviderReply:
        raise ProviderError(f"MISSING_{self.missing_for.upper()}_KEY: provider credential is not configured")
