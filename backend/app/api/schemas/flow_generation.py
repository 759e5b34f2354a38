"""Pydantic schemas for the AI flow generation API."""
from __future__ import annotations

from datetime import date
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.services.flow_models import CanonicalNote


class GenerationRequest(BaseModel):
    """Inbound request; accepts snake_case or the mobile client's camelCase."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    description: str = Field(..., min_length=1)
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")
    flow_name: Optional[str] = Field(default=None, alias="flowName")
    flow_color: Any = Field(default=None, alias="flowColor")
    timezone: Optional[str] = None
    source_text: Optional[str] = None

    @model_validator(mode="after")
    def _check_range(self) -> "GenerationRequest":
        if not self.description.strip():
            raise ValueError("description must not be blank")
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self

    @property
    def day_count(self) -> int:
        """Inclusive number of calendar days in the requested range."""
        return (self.end_date - self.start_date).days + 1


class GenerationMetadata(BaseModel):
    generated: bool = True
    model: str
    prompt: str


class FlowGenerationResponse(BaseModel):
    success: bool = True
    flow_name: str
    flow_color: str
    overview_title: str
    overview_summary: str
    notes: List[CanonicalNote]
    ai_metadata: GenerationMetadata
    model_used: str
    cached: bool


class FlowGenerationErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: str
