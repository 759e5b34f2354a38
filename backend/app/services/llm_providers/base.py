"""Provider interface and reply-envelope normalization."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional

FINISH_REASON_ALIASES = {
    "length": "length",
    "max_tokens": "length",
    "stop": "stop",
    "end_turn": "stop",
    "stop_sequence": "stop",
}


@dataclass(frozen=True)
class ProviderReply:
    """Provider-agnostic result of a single completion call."""

    ok: bool
    model_id: str
    text: str
    tokens_in: int
    tokens_out: int
    finish_reason: Optional[str]

    @property
    def truncated(self) -> bool:
        return self.finish_reason == "length"


class ProviderError(Exception):
    """Upstream call failed: HTTP error, timeout, or missing credential."""

    def __init__(self, message: str, *, timed_out: bool = False, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.timed_out = timed_out
        self.upstream_status = upstream_status


class LLMProvider:
    """Base interface for completion providers."""

    name = "base"
    model = ""
    max_output_tokens = 4096

    def invoke(
        self,
        system_instruction: str,
        user_instruction: str,
        *,
        temperature: float,
        output_budget: int,
    ) -> ProviderReply:
        raise NotImplementedError


def as_envelope(response: Any) -> Mapping[str, Any]:
    """Turn an SDK response object into its plain JSON envelope."""
    if isinstance(response, Mapping):
        return response
    dump = getattr(response, "model_dump", None)
    if callable(dump):
        return dump()
    return {}


def normalize_envelope(data: Mapping[str, Any], fallback_model: str) -> ProviderReply:
    """Map either a content-array or a choices-array envelope onto ProviderReply."""
    usage = data.get("usage") or {}
    model_id = data.get("model") or fallback_model

    content = data.get("content")
    if isinstance(content, list):
        text = next(
            (block.get("text") for block in content if isinstance(block, Mapping) and isinstance(block.get("text"), str)),
            "",
        )
        return ProviderReply(
            ok=True,
            model_id=model_id,
            text=text,
            tokens_in=_count(usage.get("input_tokens")),
            tokens_out=_count(usage.get("output_tokens")),
            finish_reason=_finish_reason(data.get("stop_reason")),
        )

    choices = data.get("choices")
    if isinstance(choices, list) and choices:
        choice = choices[0] or {}
        message = choice.get("message") or {}
        return ProviderReply(
            ok=True,
            model_id=model_id,
            text=message.get("content") or "",
            tokens_in=_count(usage.get("prompt_tokens")),
            tokens_out=_count(usage.get("completion_tokens")),
            finish_reason=_finish_reason(choice.get("finish_reason")),
        )

    completion = data.get("completion")
    text = completion if isinstance(completion, str) else json.dumps(data, default=str)
    return ProviderReply(
        ok=True,
        model_id=model_id,
        text=text,
        tokens_in=_count(usage.get("input_tokens", usage.get("prompt_tokens"))),
        tokens_out=_count(usage.get("output_tokens", usage.get("completion_tokens"))),
        finish_reason=_finish_reason(data.get("stop_reason")),
    )


def _finish_reason(raw: Any) -> Optional[str]:
    if not isinstance(raw, str) or not raw:
        return None
    lowered = raw.lower()
    return FINISH_REASON_ALIASES.get(lowered, lowered)


def _count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(0, value)
