"""Append-only usage and cost audit trail."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models.flow_generation_log import FlowGenerationLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UsageRecord:
    user_id: str
    fingerprint: str
    model_id: str
    tokens_in: int
    tokens_out: int
    cost_cents: Decimal
    duration_ms: int
    status: str
    user_prompt: Optional[str] = None


class UsageLogStore:
    def __init__(self, db: Session) -> None:
        self._db = db

    def append(self, record: UsageRecord) -> bool:
        """Insert one row; failures are logged and swallowed."""
        row = FlowGenerationLog(
            user_id=record.user_id,
            flow_id=None,
            input_hash=record.fingerprint,
            user_prompt_raw=record.user_prompt,
            model_used=record.model_id,
            tokens_in=max(0, record.tokens_in),
            tokens_out=max(0, record.tokens_out),
            cost_cents=record.cost_cents,
            duration_ms=max(0, record.duration_ms),
            llm_status=record.status,
        )
        try:
            self._db.add(row)
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            logger.error("Failed to insert flow_generation_logs", exc_info=True)
            return False
        return True
