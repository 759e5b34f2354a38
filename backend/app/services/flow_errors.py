"""Typed failures surfaced by the flow generation pipeline."""
from __future__ import annotations


class FlowGenerationError(Exception):
    """Terminal failure with a stable machine-readable code."""

    code = "INTERNAL_ERROR"
    http_status = 500
    # Value written to flow_generation_logs.llm_status.
    status_label = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        return {"success": False, "error": self.code, "message": self.message}


class AuthFailure(FlowGenerationError):
    code = "UNAUTHENTICATED"
    http_status = 401
    status_label = "unauthenticated"


class ProviderFailure(FlowGenerationError):
    code = "LLM_PROVIDER_ERROR"
    http_status = 502
    status_label = "provider_error"

    def __init__(self, message: str, *, timed_out: bool = False, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.timed_out = timed_out
        self.upstream_status = upstream_status
        if timed_out:
            self.http_status = 504


class TruncationFailure(FlowGenerationError):
    code = "LLM_TRUNCATED"
    http_status = 500
    status_label = "truncated"


class ParseFailure(FlowGenerationError):
    code = "LLM_PARSE_ERROR"
    http_status = 500
    status_label = "parse_error"

    def __init__(self, message: str, *, raw_length: int, finish_reason: str | None) -> None:
        super().__init__(message)
        self.raw_length = raw_length
        self.finish_reason = finish_reason


class ValidationFailure(FlowGenerationError):
    code = "LLM_VALIDATION_ERROR"
    http_status = 400
    status_label = "validation_error"


class StorageMisconfiguration(FlowGenerationError):
    code = "SERVER_MISCONFIGURED"
    http_status = 500
    status_label = "misconfigured"
