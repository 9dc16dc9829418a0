"""Common FastAPI dependencies.

Authentication is a signed bearer token (``Authorization: Bearer <jwt>``) that
proves who the caller is. Class-scoped rights are checked in the services
against ClassroomMember, never taken from the token.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.errors import DependencyUnavailable, InvalidToken, Unauthorized
from app.core.security import safe_decode_token
from app.db.session import get_db, ping
from app.schemas.auth import Identity


def ensure_db(db: Session = Depends(get_db)) -> Session:
    """Fail fast with 503 when storage is unreachable instead of hanging the request."""
    if not ping(db):
        raise DependencyUnavailable()
    return db


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    header = (authorization or "").strip()
    if not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


def require_user(authorization: Optional[str] = Header(default=None, alias="Authorization")) -> Identity:
    token = _bearer_token(authorization)
    if not token:
        raise Unauthorized()

    claims = safe_decode_token(token)
    if not claims:
        raise InvalidToken()
    try:
        return Identity(id=int(claims["sub"]), role=str(claims.get("role") or ""), name=str(claims.get("name") or ""))
    except (KeyError, TypeError, ValueError):
        raise InvalidToken()
