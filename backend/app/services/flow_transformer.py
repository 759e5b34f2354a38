"""Map a raw model flow onto the canonical shape returned to clients."""
from __future__ import annotations

import math
import re
from typing import Any, Optional

from app.api.schemas.flow_generation import GenerationRequest
from app.services.flow_models import CanonicalFlow, CanonicalNote, RawModelFlow, RawModelNote

DEFAULT_FLOW_NAME = "Untitled Flow"
DEFAULT_COLOR = 0x4DD0E1
MAX_COLOR = 0xFFFFFF

TIME_RE = re.compile(r"\d{1,2}:\d{2}")
HEX_PREFIX_RE = re.compile(r"^[+-]?[0-9a-fA-F]+")


def transform(raw: RawModelFlow, request: GenerationRequest) -> CanonicalFlow:
    """Total mapping: never raises, defaults only genuinely optional fields.

    ``day_index`` is always the note's position in the output; whatever index
    the model reported is discarded, as are ``chips``.
    """
    # Only an absent name is defaulted; a blank one is left for validation to reject.
    flow_name = DEFAULT_FLOW_NAME if raw.flow_name is None else raw.flow_name.strip()
    overview = raw.overview
    overview_title = _clean(overview.title if overview else None) or flow_name
    overview_summary = _clean(overview.summary if overview else None) or ""

    notes = [_transform_note(note, idx) for idx, note in enumerate(raw.notes)]
    return CanonicalFlow(
        flow_name=flow_name,
        flow_color=format_color(coerce_color(request.flow_color)),
        overview_title=overview_title,
        overview_summary=overview_summary,
        notes=notes,
    )


def _transform_note(note: RawModelNote, idx: int) -> CanonicalNote:
    return CanonicalNote(
        day_index=idx,
        title=_clean(note.title) or f"Day {idx + 1}",
        details=(note.details or "").strip(),
        all_day=note.all_day if isinstance(note.all_day, bool) else False,
        start_time=_time_or_none(note.starts_at),
        end_time=_time_or_none(note.ends_at),
        location=_clean(note.location),
    )


def _time_or_none(value: Optional[str]) -> Optional[str]:
    # Anything without an hour:minute pattern is dropped rather than guessed.
    if value and TIME_RE.search(value):
        return value.strip()
    return None


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def coerce_color(value: Any) -> int:
    """Coerce hex text or an integer into a 24-bit RGB value; fall back to the default."""
    if isinstance(value, bool):
        return DEFAULT_COLOR
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return DEFAULT_COLOR
        number = math.floor(value)
        if number < 0:
            return DEFAULT_COLOR
        return min(number, MAX_COLOR)
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("#"):
            text = text[1:]
        if text[:2].lower() == "0x":
            text = text[2:]
        match = HEX_PREFIX_RE.match(text)
        if match:
            number = int(match.group(0), 16)
            return max(0, min(number, MAX_COLOR))
    return DEFAULT_COLOR


def format_color(value: int) -> str:
    return f"#{value:06x}"
