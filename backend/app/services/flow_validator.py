"""Structural acceptance check on the canonical flow."""
from __future__ import annotations

import math
from typing import Any, Optional


class FlowValidationError(Exception):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def validate_flow(flow: Any) -> None:
    """Raise FlowValidationError carrying the first failing reason."""
    reason = find_violation(flow)
    if reason is not None:
        raise FlowValidationError(reason)


def find_violation(flow: Any) -> Optional[str]:
    """Return the first structural problem, or None when the flow is acceptable.

    Checks short-circuit in order and never raise. Day-index contiguity,
    category discipline and richness are prompt-level contracts, not gates.
    """
    if flow is None:
        return "Parsed content is not an object"

    flow_name = getattr(flow, "flow_name", None)
    if not isinstance(flow_name, str) or not flow_name.strip():
        return "Missing or invalid flow_name"

    notes = getattr(flow, "notes", None)
    if not isinstance(notes, (list, tuple)) or not notes:
        return "notes must be a non-empty array"

    for i, note in enumerate(notes):
        if note is None:
            return f"notes[{i}] is not an object"

        day_index = getattr(note, "day_index", None)
        if (
            isinstance(day_index, bool)
            or not isinstance(day_index, (int, float))
            or not math.isfinite(day_index)
            or day_index < 0
        ):
            return f"notes[{i}].day_index is required and must be a non-negative number"

        title = getattr(note, "title", None)
        if not isinstance(title, str) or not title.strip():
            return f"notes[{i}].title is required"

        details = getattr(note, "details", None)
        if not isinstance(details, str) or not details.strip():
            return f"notes[{i}].details must be a non-empty string"

        if not isinstance(getattr(note, "all_day", None), bool):
            return f"notes[{i}].all_day must be a boolean"

        for field in ("start_time", "end_time", "location"):
            value = getattr(note, field, None)
            if value is not None and not isinstance(value, str):
                return f"notes[{i}].{field} must be a string if provided"

    return None
