"""Best-effort cache of raw model output keyed by request fingerprint."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models.flow_generation_cache import FlowGenerationCache
from app.services.flow_models import RawModelFlow

logger = logging.getLogger(__name__)

DEFAULT_TTL_DAYS = 7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CachedFlow:
    raw: RawModelFlow
    model_used: Optional[str] = None


class CacheStore:
    """Reads and writes never raise: a broken cache only costs a provider call."""

    def __init__(
        self,
        db: Session,
        *,
        ttl_days: int = DEFAULT_TTL_DAYS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._db = db
        self._ttl = timedelta(days=ttl_days)
        self._clock = clock

    def lookup(self, input_hash: str) -> Optional[CachedFlow]:
        cutoff = self._clock() - self._ttl
        try:
            row = (
                self._db.query(FlowGenerationCache)
                .filter(
                    FlowGenerationCache.input_hash == input_hash,
                    FlowGenerationCache.created_at >= cutoff,
                )
                .order_by(FlowGenerationCache.created_at.desc())
                .first()
            )
        except SQLAlchemyError:
            logger.warning("Cache lookup failed for %s; treating as miss", input_hash, exc_info=True)
            self._db.rollback()
            return None

        if row is None or not self._is_fresh(row.created_at):
            return None
        try:
            raw = RawModelFlow.model_validate(row.response_json)
        except ValidationError:
            logger.warning("Cached payload for %s is not a flow object; ignoring", input_hash)
            return None
        return CachedFlow(raw=raw, model_used=row.model_used)

    def write(
        self,
        input_hash: str,
        raw: RawModelFlow,
        *,
        model_used: Optional[str] = None,
        user_prompt: Optional[str] = None,
    ) -> bool:
        entry = FlowGenerationCache(
            input_hash=input_hash,
            model_used=model_used,
            user_prompt=user_prompt,
            response_json=raw.to_cache_payload(),
            created_at=self._clock(),
        )
        try:
            self._db.add(entry)
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            logger.error("Failed to insert into flow_generation_cache", exc_info=True)
            return False
        return True

    def _is_fresh(self, created_at: Optional[datetime]) -> bool:
        if created_at is None:
            return False
        if created_at.tzinfo is None:
            # SQLite hands back naive values; everything is stored in UTC.
            created_at = created_at.replace(tzinfo=timezone.utc)
        return self._clock() - created_at <= self._ttl
