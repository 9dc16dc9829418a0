"""Password hashing and session tokens.

A session token is an HS256 JWT whose ``sub`` is the account id. It also carries
the signup ``role`` and display ``name``, never any class-scoped right.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    # A corrupt stored hash counts as a mismatch
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def session_claims(account_id: int, role: str, name: str, *, now: Optional[datetime] = None, ttl: Optional[timedelta] = None) -> Dict[str, Any]:
    issued = now or datetime.now(timezone.utc)
    expires = issued + (ttl if ttl is not None else timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    return {
        "sub": str(account_id),
        "role": role,
        "name": name,
        "iat": int(issued.timestamp()),
        "exp": int(expires.timestamp()),
    }


def encode_token(claims: Dict[str, Any]) -> str:
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def issue_session_token(account_id: int, role: str, name: str, *, ttl: Optional[timedelta] = None) -> str:
    return encode_token(session_claims(account_id, role, name, ttl=ttl))


def decode_token(token: str) -> Dict[str, Any]:
    """Verified claims. Raises ``JWTError`` on a bad signature, malformed token or past ``exp``."""
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


def safe_decode_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        return decode_token(token)
    except JWTError:
        return None
