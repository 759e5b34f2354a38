"""AI flow generation pipeline.

One request runs strictly in sequence::

    HASH -> CACHE_LOOKUP -> (CACHED | GENERATE -> RECOVER) -> TRANSFORM -> VALIDATE
         -> COST -> PERSIST_LOG -> (CACHE_WRITE if generated) -> RESPOND

Any terminal failure raises a ``FlowGenerationError`` subclass. The usage log
write is attempted for every run that entered the pipeline, and neither it nor
the cache write can turn a successful generation into a failure. Only the raw
provider object is cached, so cache hits are transformed and validated again.
Placeholder drafts are never cached.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from time import perf_counter
from typing import Any, Dict, Optional

from app.api.schemas.flow_generation import GenerationRequest
from app.core.config import GenerationConfig
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.content_hasher import fingerprint
from app.services.cost_estimator import estimate_cost_cents
from app.services.flow_cache import CacheStore
from app.services.flow_errors import (
    AuthFailure,
    FlowGenerationError,
    ParseFailure,
    ProviderFailure,
    StorageMisconfiguration,
    TruncationFailure,
    ValidationFailure,
)
from app.services.flow_models import CanonicalFlow, RawModelFlow
from app.services.flow_prompt import PromptBundle, build_prompt
from app.services.flow_recovery import ParseError, recover
from app.services.flow_transformer import transform
from app.services.flow_validator import FlowValidationError, validate_flow
from app.services.llm_providers.base import LLMProvider, ProviderError, ProviderReply
from app.services.llm_providers.placeholder import PLACEHOLDER_MODEL_ID
from app.services.usage_log import UsageLogStore, UsageRecord

logger = logging.getLogger(__name__)

RAW_PREVIEW_CHARS = 5000


@dataclass(frozen=True)
class FlowGenerationResult:
    flow: CanonicalFlow
    model_used: str
    cached: bool
    fingerprint: str
    tokens_in: int
    tokens_out: int
    cost_cents: Decimal
    duration_ms: int


@dataclass
class _RunLedger:
    """Mutable per-run accounting that feeds the usage log."""

    model_used: str = ""
    tokens_in: int = 0
    tokens_out: int = 0
    cost_cents: Decimal = Decimal("0")
    status: str = "error"


class FlowGenerator:
    def __init__(
        self,
        *,
        config: GenerationConfig,
        provider: LLMProvider,
        cache: CacheStore,
        usage_log: UsageLogStore,
    ) -> None:
        self._config = config
        self._provider = provider
        self._cache = cache
        self._usage_log = usage_log

    def generate(
        self,
        request: GenerationRequest,
        *,
        user_id: Optional[str],
        request_id: Optional[str] = None,
    ) -> FlowGenerationResult:
        if not user_id:
            raise AuthFailure("Missing or invalid Authorization token")
        if not self._config.storage_configured:
            raise StorageMisconfiguration("Server misconfiguration: storage is not configured")

        started = perf_counter()
        input_hash = fingerprint(request.description, request.start_date, request.end_date, request.source_text)
        ledger = _RunLedger()
        cached = False
        trace_metadata: Dict[str, Any] = {
            "input_hash": input_hash,
            "day_count": request.day_count,
            "provider": self._provider.name,
            "llm_input_text": request.description[:500],
        }

        try:
            with trace("flow.generate", metadata=trace_metadata, user_id=user_id, request_id=request_id) as span:
                hit = self._cache.lookup(input_hash)
                cached = hit is not None
                log_metric("flow.cache.hit", 1 if cached else 0, metadata={"provider": self._provider.name})

                if cached:
                    raw = hit.raw
                    ledger.status = "cache_hit"
                    ledger.model_used = hit.model_used or self._provider.model
                    logger.info("Cache hit for %s", input_hash)
                else:
                    raw = self._generate_raw(request, ledger, trace_metadata, user_id, request_id)

                flow = transform(raw, request)
                try:
                    validate_flow(flow)
                except FlowValidationError as exc:
                    raise ValidationFailure(exc.reason) from exc

                if not cached:
                    ledger.cost_cents = estimate_cost_cents(ledger.model_used, ledger.tokens_in, ledger.tokens_out)
                    ledger.status = "success"

                if span:
                    try:
                        span.update(metadata={**trace_metadata, "cached": cached, "notes": len(flow.notes)})
                    except Exception:  # pragma: no cover - best-effort
                        logger.debug("Unable to update flow.generate trace", exc_info=True)
        except FlowGenerationError as exc:
            ledger.status = exc.status_label
            log_metric("flow.failure", 1, metadata={"code": exc.code})
            logger.warning("Flow generation failed: %s (%s)", exc.code, exc.message)
            raise
        finally:
            duration_ms = int((perf_counter() - started) * 1000)
            if not cached and ledger.tokens_out and ledger.status != "success":
                # Failed after the provider answered: the tokens were still spent.
                ledger.cost_cents = estimate_cost_cents(ledger.model_used, ledger.tokens_in, ledger.tokens_out)
            self._usage_log.append(
                UsageRecord(
                    user_id=user_id,
                    fingerprint=input_hash,
                    model_id=ledger.model_used,
                    tokens_in=ledger.tokens_in,
                    tokens_out=ledger.tokens_out,
                    cost_cents=ledger.cost_cents,
                    duration_ms=duration_ms,
                    status=ledger.status,
                    user_prompt=request.description,
                )
            )

        if not cached and ledger.model_used != PLACEHOLDER_MODEL_ID:
            self._cache.write(input_hash, raw, model_used=ledger.model_used, user_prompt=request.description)

        log_metric("flow.tokens_in", ledger.tokens_in)
        log_metric("flow.tokens_out", ledger.tokens_out)
        log_metric("flow.cost_cents", float(ledger.cost_cents))
        log_metric("flow.duration_ms", duration_ms, metadata={"cached": cached})

        return FlowGenerationResult(
            flow=flow,
            model_used=ledger.model_used,
            cached=cached,
            fingerprint=input_hash,
            tokens_in=ledger.tokens_in,
            tokens_out=ledger.tokens_out,
            cost_cents=ledger.cost_cents,
            duration_ms=duration_ms,
        )

    def _generate_raw(
        self,
        request: GenerationRequest,
        ledger: _RunLedger,
        trace_metadata: Dict[str, Any],
        user_id: str,
        request_id: Optional[str],
    ) -> RawModelFlow:
        bundle = build_prompt(request, self._provider.max_output_tokens)
        trace_metadata["flow_category"] = bundle.flow_category
        trace_metadata["output_budget"] = bundle.output_budget

        reply = self._invoke_provider(bundle, user_id, request_id)
        ledger.model_used = reply.model_id
        ledger.tokens_in = reply.tokens_in
        ledger.tokens_out = reply.tokens_out

        preview = reply.text if len(reply.text) <= RAW_PREVIEW_CHARS else reply.text[:RAW_PREVIEW_CHARS] + "...[truncated for logging]"
        logger.debug("LLM raw content: %s", preview)
        logger.info(
            "LLM reply: %s chars, tokens_out=%s/%s, finish_reason=%s",
            len(reply.text),
            reply.tokens_out,
            bundle.output_budget,
            reply.finish_reason,
        )

        if reply.truncated:
            raise TruncationFailure(
                f"Response was too long for {bundle.day_count} days. "
                "Try a shorter date range or the model may need more tokens."
            )

        try:
            raw = recover(reply.text, reply.finish_reason)
        except ParseError as exc:
            suffix = " Response was truncated." if exc.finish_reason == "length" else ""
            raise ParseFailure(
                f"Model did not return valid JSON. Response length: {exc.raw_length} chars, "
                f"tokens: {reply.tokens_out}/{bundle.output_budget}.{suffix}",
                raw_length=exc.raw_length,
                finish_reason=exc.finish_reason,
            ) from exc

        if len(raw.notes) < bundle.day_count:
            logger.warning("Expected %s notes but got %s", bundle.day_count, len(raw.notes))
            log_metric("flow.notes_shortfall", bundle.day_count - len(raw.notes))
        return raw

    def _invoke_provider(self, bundle: PromptBundle, user_id: str, request_id: Optional[str]) -> ProviderReply:
        metadata = {"provider": self._provider.name, "model": self._provider.model, "max_tokens": bundle.output_budget}
        try:
            with trace("flow.provider_call", metadata=metadata, user_id=user_id, request_id=request_id, span_type="llm"):
                return self._provider.invoke(
                    bundle.system_instruction,
                    bundle.user_instruction,
                    temperature=self._config.temperature,
                    output_budget=bundle.output_budget,
                )
        except ProviderError as exc:
            raise ProviderFailure(
                exc.message,
                timed_out=exc.timed_out,
                upstream_status=exc.upstream_status,
            ) from exc
