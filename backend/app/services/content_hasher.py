"""Deterministic fingerprint of a generation request (cache key)."""
from __future__ import annotations

import hashlib
import json
from datetime import date
from typing import Optional


def fingerprint(
    description: str,
    start_date: date | str,
    end_date: date | str,
    source_text: Optional[str] = None,
) -> str:
    """SHA-256 hex digest over exactly description, dates, and source_text.

    The payload mirrors the mobile client's historical cache key: compact JSON
    with keys in this order, ``source_text`` omitted when absent.
    """
    payload = {
        "description": description,
        "startDate": _as_iso(start_date),
        "endDate": _as_iso(end_date),
    }
    if source_text is not None:
        payload["source_text"] = source_text
    canonical = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _as_iso(value: date | str) -> str:
    return value.isoformat() if isinstance(value, date) else str(value)
