"""Recover a JSON flow object from free-text model output."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from pydantic import ValidationError

from app.services.flow_models import RawModelFlow

logger = logging.getLogger(__name__)

CODE_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
OBJECT_RE = re.compile(r"\{[\s\S]*\}")


class ParseError(Exception):
    """Neither the strict nor the salvaged parse produced a JSON object."""

    def __init__(self, raw_length: int, finish_reason: Optional[str]) -> None:
        super().__init__(f"Model did not return valid JSON (length={raw_length}, finish_reason={finish_reason})")
        self.raw_length = raw_length
        self.finish_reason = finish_reason


def strip_code_fences(text: str) -> str:
    if not text:
        return text
    return CODE_FENCE_RE.sub(r"\1", text).strip()


def recover(raw_text: str, finish_reason: Optional[str] = None) -> RawModelFlow:
    """Strict parse first; on failure salvage the outermost brace-delimited span."""
    raw_text = raw_text or ""
    cleaned = strip_code_fences(raw_text)

    payload = _load_object(cleaned)
    if payload is None:
        match = OBJECT_RE.search(cleaned)
        if match:
            payload = _load_object(match.group(0))
            if payload is not None:
                logger.warning("Used regex-extracted JSON from model output (may be incomplete)")

    if payload is None:
        raise ParseError(len(raw_text), finish_reason)

    try:
        return RawModelFlow.model_validate(payload)
    except ValidationError as exc:  # pragma: no cover - lenient model accepts any object
        raise ParseError(len(raw_text), finish_reason) from exc


def _load_object(text: str) -> Optional[dict]:
    try:
        value: Any = json.loads(text)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None
