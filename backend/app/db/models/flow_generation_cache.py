"""Cached raw model responses keyed by request fingerprint."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import JSONPayload


class FlowGenerationCache(Base):
    __tablename__ = "flow_generation_cache"
    __table_args__ = (Index("ix_flow_generation_cache_input_hash_created_at", "input_hash", "created_at"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    input_hash = Column(String(64), nullable=False)
    user_prompt = Column(Text, nullable=True)
    model_used = Column(Text, nullable=True)
    # Raw provider object, never the canonical flow.
    response_json = Column(JSONPayload, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
