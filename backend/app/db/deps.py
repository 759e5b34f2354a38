"""FastAPI dependencies for database access."""
from __future__ import annotations

from typing import Iterator

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_session_factory
from app.services.flow_errors import StorageMisconfiguration


def get_db() -> Iterator[Session]:
    if not (settings.database_url or "").strip():
        raise StorageMisconfiguration("Server misconfiguration: DATABASE_URL is not set")
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
