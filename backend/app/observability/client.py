"""Process-wide Opik client, created lazily on first use."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

import opik

from app.core import config as core_config

logger = logging.getLogger(__name__)

_client: Optional[opik.Opik] = None
_client_lock = Lock()
_init_attempted = False


def init_opik() -> Optional[opik.Opik]:
    """Build the Opik client once; later calls return the cached result."""
    global _client, _init_attempted

    with _client_lock:
        if _init_attempted:
            return _client
        _init_attempted = True

        current = core_config.get_settings()
        if not current.opik_enabled:
            logger.debug("Opik disabled; traces and metrics are no-ops.")
            return None
        if not current.opik_api_key:
            logger.warning("OPIK_ENABLED is true but OPIK_API_KEY is missing; skipping Opik init.")
            return None

        try:
            _client = opik.Opik(project_name=current.opik_project, api_key=current.opik_api_key)
        except Exception as exc:  # pragma: no cover - best-effort
            logger.warning("Failed to initialize Opik, tracing will be disabled: %s", exc)
            _client = None
            return None

        logger.info("Opik enabled (project=%s).", current.opik_project)
        return _client


def get_opik_client() -> Optional[opik.Opik]:
    if _client is not None:
        return _client
    return init_opik()


def shutdown_opik() -> None:
    """Flush buffered traces and forget the client."""
    global _client, _init_attempted

    with _client_lock:
        client, _client = _client, None
        _init_attempted = False
    if client is None:
        return
    try:
        client.flush()
    except Exception:  # pragma: no cover
        logger.debug("Opik flush failed during shutdown", exc_info=True)
