"""Tracing helpers on top of Opik.

The outermost ``trace`` block opens an Opik trace; blocks nested inside it
become spans of that trace, so ``flow.provider_call`` shows up under
``flow.generate``. With Opik disabled every block yields ``None``.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional

from app.core.context import get_request_id, get_user_id
from app.observability.client import get_opik_client

logger = logging.getLogger(__name__)

_active_trace: ContextVar[Optional[Any]] = ContextVar("opik_active_trace", default=None)


def current_trace() -> Optional[Any]:
    """Return the innermost open trace or span, if any."""
    return _active_trace.get()


@contextmanager
def trace(
    name: str,
    metadata: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    request_id: Optional[str] = None,
    span_type: str = "general",
) -> Iterator[Optional[Any]]:
    client = get_opik_client()
    handle: Optional[Any] = None

    if client:
        payload = dict(metadata or {})
        user_id = user_id or get_user_id()
        request_id = request_id or get_request_id()
        if user_id:
            payload.setdefault("user_id", str(user_id))
        if request_id:
            payload.setdefault("request_id", request_id)

        parent = _active_trace.get()
        try:
            if parent is not None:
                handle = parent.span(name=name, type=span_type, metadata=payload or None)
            else:
                handle = client.trace(name=name, metadata=payload or None)
        except Exception as exc:  # pragma: no cover - best-effort
            logger.debug("Unable to start Opik trace %s: %s", name, exc)
            handle = None

    token = _active_trace.set(handle) if handle is not None else None
    try:
        yield handle
    except Exception as exc:
        if handle is not None:
            try:
                handle.update(error_info={"exception_type": type(exc).__name__, "message": str(exc)})
            except Exception:  # pragma: no cover
                logger.debug("Failed to attach error info to Opik trace %s", name, exc_info=True)
        raise
    finally:
        if token is not None:
            _active_trace.reset(token)
        if handle is not None:
            try:
                handle.end()
            except Exception:  # pragma: no cover
                logger.debug("Failed to close Opik trace %s cleanly", name, exc_info=True)
