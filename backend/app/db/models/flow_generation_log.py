"""Append-only audit trail of generation requests."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, Index, Integer, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class FlowGenerationLog(Base):
    __tablename__ = "flow_generation_logs"
    __table_args__ = (
        Index("ix_flow_generation_logs_user_id", "user_id"),
        Index("ix_flow_generation_logs_input_hash", "input_hash"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(Text, nullable=False)
    flow_id = Column(UUID(as_uuid=True), nullable=True)
    input_hash = Column(String(64), nullable=False)
    user_prompt_raw = Column(Text, nullable=True)
    model_used = Column(Text, nullable=True)
    tokens_in = Column(Integer, nullable=False, default=0)
    tokens_out = Column(Integer, nullable=False, default=0)
    cost_cents = Column(Numeric(12, 4), nullable=False, default=0)
    duration_ms = Column(Integer, nullable=False, default=0)
    llm_status = Column(String(32), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
