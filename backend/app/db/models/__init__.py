"""ORM models exposed for metadata discovery."""
from app.db.models.flow_generation_cache import FlowGenerationCache
from app.db.models.flow_generation_log import FlowGenerationLog

__all__ = [
    "FlowGenerationCache",
    "FlowGenerationLog",
]
