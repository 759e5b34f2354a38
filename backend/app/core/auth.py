"""Bearer-token identity resolution for inbound requests."""
from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Resolve the calling user's id from the Authorization header.

    Signature verification belongs to the identity provider in front of this
    service; here we only read the ``sub`` claim of the JWT payload.
    """

    def resolve(self, authorization: str | None) -> Optional[str]:
        token = _strip_bearer(authorization)
        if not token:
            return None
        claims = decode_jwt_claims(token)
        if not claims:
            return None
        subject = claims.get("sub")
        if isinstance(subject, str) and subject.strip():
            return subject.strip()
        return None


def decode_jwt_claims(token: str) -> Optional[Dict[str, Any]]:
    """Decode the (unverified) payload segment of a JWT."""
    parts = token.split(".")
    if len(parts) < 2:
        return None
    payload = parts[1].replace("-", "+").replace("_", "/")
    payload += "=" * (-len(payload) % 4)
    try:
        decoded = base64.b64decode(payload)
        claims = json.loads(decoded)
    except (binascii.Error, ValueError):
        logger.debug("Authorization token payload is not decodable")
        return None
    return claims if isinstance(claims, dict) else None


def _strip_bearer(authorization: str | None) -> str:
    value = (authorization or "").strip()
    if value.lower().startswith("bearer "):
        return value[7:].strip()
    return value


_default_resolver = IdentityResolver()


def get_identity_resolver() -> IdentityResolver:
    return _default_resolver
