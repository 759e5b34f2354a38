"""Raw (untrusted) and canonical (validated) flow shapes.

``RawModelFlow`` mirrors what the model is asked to emit but assumes nothing:
every field is optional and malformed values collapse to ``None`` instead of
raising. Only ``flow_transformer.transform`` turns it into a ``CanonicalFlow``.
"""
from __future__ import annotations

from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _lenient_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _lenient_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def _lenient_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _lenient_list(value: Any) -> Optional[list]:
    return value if isinstance(value, list) else None


def _dict_items(value: Any) -> list:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _dict_or_none(value: Any) -> Any:
    return value if isinstance(value, dict) else None


LenientText = Annotated[Optional[str], BeforeValidator(_lenient_text)]
LenientBool = Annotated[Optional[bool], BeforeValidator(_lenient_bool)]
LenientInt = Annotated[Optional[int], BeforeValidator(_lenient_int)]
LenientList = Annotated[Optional[list], BeforeValidator(_lenient_list)]


class RawOverview(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: LenientText = None
    summary: LenientText = None


class RawModelNote(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    day_index: LenientInt = None
    title: LenientText = None
    details: LenientText = None
    all_day: LenientBool = Field(default=None, alias="allDay")
    starts_at: LenientText = Field(default=None, alias="startsAt")
    ends_at: LenientText = Field(default=None, alias="endsAt")
    location: LenientText = None
    # Decan grouping hints; a reasoning aid for the model, never persisted.
    chips: LenientList = None


class RawModelFlow(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    flow_name: LenientText = Field(default=None, alias="flowName")
    overview: Annotated[Optional[RawOverview], BeforeValidator(_dict_or_none)] = None
    notes: Annotated[List[RawModelNote], BeforeValidator(_dict_items)] = Field(default_factory=list)

    def to_cache_payload(self) -> dict:
        """Serialize back to the provider's camelCase shape for caching."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CanonicalNote(BaseModel):
    model_config = ConfigDict(frozen=True)

    day_index: int
    title: str
    details: str
    all_day: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[str] = None


class CanonicalFlow(BaseModel):
    model_config = ConfigDict(frozen=True)

    flow_name: str
    flow_color: Optional[str] = None
    overview_title: str
    overview_summary: str
    notes: List[CanonicalNote]
