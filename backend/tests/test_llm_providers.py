from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any, Dict, List

import anthropic
import httpx
import openai
import pytest

from app.core.config import GenerationConfig
from app.services.llm_providers import ProviderError, build_provider
from app.services.llm_providers.anthropic_provider import AnthropicProvider
from app.services.llm_providers.base import normalize_envelope
from app.services.llm_providers.openai_provider import OpenAIProvider
from app.services.llm_providers.placeholder import PLACEHOLDER_MODEL_ID, PlaceholderProvider, UnconfiguredProvider


class _Recorder:
    def __init__(self, result: Any = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.result


def _openai_client(recorder: _Recorder) -> Any:
    return SimpleNamespace(chat=SimpleNamespace(completions=recorder))


def _anthropic_client(recorder: _Recorder) -> Any:
    return SimpleNamespace(messages=recorder)


def _config(**overrides: Any) -> GenerationConfig:
    data: Dict[str, Any] = {
        "provider": "openai",
        "model": "gpt-4o-mini",
        "api_key": None,
        "max_output_tokens": 16000,
        "temperature": 0.7,
        "timeout_seconds": 45.0,
        "cache_ttl_days": 7,
        "placeholder_on_missing_key": True,
        "storage_configured": True,
    }
    data.update(overrides)
    return GenerationConfig(**data)


def test_normalize_choices_envelope() -> None:
    reply = normalize_envelope(
        {
            "model": "gpt-4o-mini-2024-07-18",
            "choices": [{"message": {"content": "{}"}, "finish_reason": "length"}],
            "usage": {"prompt_tokens": 120, "completion_tokens": 3500},
        },
        "gpt-4o-mini",
    )

    assert reply.model_id == "gpt-4o-mini-2024-07-18"
    assert reply.text == "{}"
    assert (reply.tokens_in, reply.tokens_out) == (120, 3500)
    assert reply.truncated is True


def test_normalize_content_array_envelope() -> None:
    reply = normalize_envelope(
        {
            "content": [{"type": "text", "text": '{"flowName": "A"}'}],
            "usage": {"input_tokens": 10, "output_tokens": 20},
            "stop_reason": "end_turn",
        },
        "claude-3-5-haiku-latest",
    )

    assert reply.model_id == "claude-3-5-haiku-latest"
    assert reply.text == '{"flowName": "A"}'
    assert reply.finish_reason == "stop"
    assert reply.truncated is False


def test_normalize_completion_and_bad_usage() -> None:
    reply = normalize_envelope({"completion": "hello", "usage": {"input_tokens": -5, "output_tokens": "9"}}, "m")

    assert reply.text == "hello"
    assert reply.tokens_in == 0
    assert reply.tokens_out == 0
    assert reply.finish_reason is None


def test_normalize_unknown_envelope_serializes_body() -> None:
    reply = normalize_envelope({"result": {"flowName": "X"}}, "m")

    assert json.loads(reply.text) == {"result": {"flowName": "X"}}
    assert reply.tokens_in == 0 and reply.tokens_out == 0


def test_openai_provider_sends_messages_and_budget() -> None:
    recorder = _Recorder(
        result={
            "model": "gpt-4o-mini-2024-07-18",
            "choices": [{"message": {"content": '{"flowName": "Gym"}'}, "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 800, "completion_tokens": 1200},
        }
    )
    provider = OpenAIProvider(
        api_key="sk-test", model="gpt-4o-mini", max_output_tokens=16000, timeout_seconds=45, client=_openai_client(recorder)
    )

    reply = provider.invoke("system", "user", temperature=0.7, output_budget=3500)

    call = recorder.calls[0]
    assert call["model"] == "gpt-4o-mini"
    assert call["max_tokens"] == 3500
    assert call["messages"][0] == {"role": "system", "content": "system"}
    assert call["messages"][1] == {"role": "user", "content": "user"}
    assert reply.ok is True
    assert reply.text == '{"flowName": "Gym"}'
    assert reply.tokens_out == 1200


def test_openai_timeout_maps_to_timed_out_error() -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    recorder = _Recorder(error=openai.APITimeoutError(request=request))
    provider = OpenAIProvider(
        api_key="sk-test", model="gpt-4o-mini", max_output_tokens=16000, timeout_seconds=45, client=_openai_client(recorder)
    )

    with pytest.raises(ProviderError) as excinfo:
        provider.invoke("s", "u", temperature=0.7, output_budget=3500)

    assert excinfo.value.timed_out is True
    assert "45 seconds" in excinfo.value.message


def test_openai_http_error_carries_status() -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(500, request=request)
    recorder = _Recorder(error=openai.APIStatusError("upstream exploded", response=response, body=None))
    provider = OpenAIProvider(
        api_key="sk-test", model="gpt-4o-mini", max_output_tokens=16000, timeout_seconds=45, client=_openai_client(recorder)
    )

    with pytest.raises(ProviderError) as excinfo:
        provider.invoke("s", "u", temperature=0.7, output_budget=3500)

    assert excinfo.value.upstream_status == 500
    assert excinfo.value.message.startswith("HTTP 500")
    assert excinfo.value.timed_out is False


def test_anthropic_provider_maps_max_tokens_to_truncation() -> None:
    recorder = _Recorder(
        result={
            "model": "claude-3-5-haiku-latest",
            "content": [{"type": "text", "text": '{"flowName": "Cut'}],
            "usage": {"input_tokens": 900, "output_tokens": 3500},
            "stop_reason": "max_tokens",
        }
    )
    provider = AnthropicProvider(
        api_key="key",
        model="claude-3-5-haiku-latest",
        max_output_tokens=8192,
        timeout_seconds=30,
        client=_anthropic_client(recorder),
    )

    reply = provider.invoke("system", "user", temperature=0.5, output_budget=3500)

    call = recorder.calls[0]
    assert call["system"] == "system"
    assert call["messages"] == [{"role": "user", "content": "user"}]
    assert call["max_tokens"] == 3500
    assert reply.truncated is True
    assert reply.tokens_in == 900


def test_anthropic_timeout_maps_to_timed_out_error() -> None:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    recorder = _Recorder(error=anthropic.APITimeoutError(request=request))
    provider = AnthropicProvider(
        api_key="key", model="claude-3-5-haiku-latest", max_output_tokens=8192, timeout_seconds=30, client=_anthropic_client(recorder)
    )

    with pytest.raises(ProviderError) as excinfo:
        provider.invoke("s", "u", temperature=0.5, output_budget=3500)

    assert excinfo.value.timed_out is True


def test_placeholder_provider_returns_labeled_draft() -> None:
    provider = PlaceholderProvider(missing_for="openai", max_output_tokens=16000)

    reply = provider.invoke("s", "u", temperature=0.7, output_budget=3500)

    assert reply.model_id == PLACEHOLDER_MODEL_ID
    assert reply.tokens_in == 0 and reply.tokens_out == 0
    payload = json.loads(reply.text)
    assert payload["notes"][0]["details"] == "No API key configured in environment."


def test_build_provider_without_key_uses_placeholder() -> None:
    provider = build_provider(_config(api_key=None))

    assert isinstance(provider, PlaceholderProvider)
    assert provider.max_output_tokens == 16000


def test_build_provider_without_key_can_fail_instead() -> None:
    provider = build_provider(_config(api_key=None, placeholder_on_missing_key=False))

    assert isinstance(provider, UnconfiguredProvider)
    with pytest.raises(ProviderError) as excinfo:
        provider.invoke("s", "u", temperature=0.7, output_budget=3500)
    assert excinfo.value.message.startswith("MISSING_OPENAI_KEY")


def test_build_provider_selects_configured_backend() -> None:
    openai_provider = build_provider(_config(api_key="sk-test"))
    anthropic_provider = build_provider(
        _config(provider="anthropic", model="claude-sonnet-4-20250514", api_key="key", max_output_tokens=8192)
    )

    assert isinstance(openai_provider, OpenAIProvider)
    assert isinstance(anthropic_provider, AnthropicProvider)
    assert anthropic_provider.max_output_tokens == 8192
