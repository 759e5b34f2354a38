from __future__ import annotations

import pytest

from app.services.flow_models import CanonicalFlow, CanonicalNote
from app.services.flow_validator import FlowValidationError, find_violation, validate_flow


def _note(**overrides) -> CanonicalNote:
    data = {"day_index": 0, "title": "Push day", "details": "1) Bench 4x5", "all_day": False}
    data.update(overrides)
    return CanonicalNote.model_construct(**data)


def _flow(notes=None, **overrides) -> CanonicalFlow:
    data = {
        "flow_name": "Strength",
        "flow_color": "#4dd0e1",
        "overview_title": "Strength",
        "overview_summary": "",
        "notes": [_note()] if notes is None else notes,
    }
    data.update(overrides)
    return CanonicalFlow.model_construct(**data)


def test_well_formed_flow_passes() -> None:
    flow = _flow([_note(), _note(day_index=1, start_time="18:00", end_time="19:00", location="Gym")])

    assert find_violation(flow) is None
    validate_flow(flow)


def test_missing_object() -> None:
    assert find_violation(None) == "Parsed content is not an object"


@pytest.mark.parametrize(
    ("flow", "reason"),
    [
        (_flow(flow_name="  "), "Missing or invalid flow_name"),
        (_flow(flow_name=None), "Missing or invalid flow_name"),
        (_flow(notes=[]), "notes must be a non-empty array"),
        (_flow(notes="nope"), "notes must be a non-empty array"),
        (_flow([None]), "notes[0] is not an object"),
        (_flow([_note(), _note(day_index=-1)]), "notes[1].day_index is required and must be a non-negative number"),
        (_flow([_note(day_index=True)]), "notes[0].day_index is required and must be a non-negative number"),
        (_flow([_note(day_index=float("nan"))]), "notes[0].day_index is required and must be a non-negative number"),
        (_flow([_note(title="")]), "notes[0].title is required"),
        (_flow([_note(details="   ")]), "notes[0].details must be a non-empty string"),
        (_flow([_note(all_day="yes")]), "notes[0].all_day must be a boolean"),
        (_flow([_note(start_time=1800)]), "notes[0].start_time must be a string if provided"),
        (_flow([_note(location=["Gym"])]), "notes[0].location must be a string if provided"),
    ],
)
def test_first_violation_is_reported(flow, reason) -> None:
    assert find_violation(flow) == reason
    with pytest.raises(FlowValidationError) as excinfo:
        validate_flow(flow)
    assert excinfo.value.reason == reason


def test_checks_short_circuit_in_order() -> None:
    flow = _flow([_note(title="", details="")], flow_name="")

    assert find_violation(flow) == "Missing or invalid flow_name"
