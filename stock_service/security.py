"""Bearer token issuing and the admin auth guard."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import os

import jwt
from fastapi import Header

from .errors import InvalidToken, Unauthenticated

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "your-secret-key-change-this"

# Signing secret. The fallback exists for local development only.
JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
JWT_ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(hours=24)


@dataclass(frozen=True)
class AdminContext:
    """Identity of the admin that presented a valid token."""
    admin_id: str


def using_default_secret() -> bool:
    return JWT_SECRET == DEFAULT_JWT_SECRET


def issue_token(admin_id: str, now: Optional[datetime] = None) -> str:
    """Signs a token for ``admin_id`` that expires after TOKEN_LIFETIME."""
    now = now or datetime.now(timezone.utc)
    payload = {"id": admin_id, "iat": now, "exp": now + TOKEN_LIFETIME}
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> AdminContext:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.warning("Rejected token: %s", e)
        raise InvalidToken()

    admin_id = payload.get("id")
    if not isinstance(admin_id, str) or not admin_id:
        logger.warning("Rejected token without an admin id")
        raise InvalidToken()
    return AdminContext(admin_id=admin_id)


def require_admin(authorization: Optional[str] = Header(default=None)) -> AdminContext:
    """
    FastAPI dependency guarding admin routes.

    - No ``Authorization: Bearer <token>`` header -> Unauthenticated (403).
    - Token that does not verify -> InvalidToken (401).
    The store is never consulted; the signature alone is trusted.
    """
    parts = authorization.split(" ") if authorization else []
    token = parts[1] if len(parts) > 1 else ""
    if not token:
        raise Unauthenticated()
    return decode_token(token)
