"""FastAPI dependencies for the flow generation endpoint."""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.auth import IdentityResolver, get_identity_resolver
from app.core.config import GenerationConfig, get_generation_config
from app.db.deps import get_db
from app.services.flow_cache import CacheStore
from app.services.flow_errors import AuthFailure
from app.services.flow_generator import FlowGenerator
from app.services.llm_providers import LLMProvider, build_provider
from app.services.usage_log import UsageLogStore


def require_user_id(
    authorization: Optional[str] = Header(default=None),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> str:
    user_id = resolver.resolve(authorization)
    if not user_id:
        raise AuthFailure("Missing or invalid Authorization token")
    return user_id


@lru_cache
def get_provider() -> LLMProvider:
    """One provider (and SDK client) per process."""
    return build_provider(get_generation_config())


def get_flow_generator(
    db: Session = Depends(get_db),
    config: GenerationConfig = Depends(get_generation_config),
    provider: LLMProvider = Depends(get_provider),
) -> FlowGenerator:
    return FlowGenerator(
        config=config,
        provider=provider,
        cache=CacheStore(db, ttl_days=config.cache_ttl_days),
        usage_log=UsageLogStore(db),
    )
