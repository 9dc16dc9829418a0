from __future__ import annotations

from typing import Optional

from app.schemas.common import ApiModel


class SignupRequest(ApiModel):
    name: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None  # teacher|student


class LoginRequest(ApiModel):
    name: Optional[str] = None
    password: Optional[str] = None


class UserOut(ApiModel):
    id: int
    name: str
    role: str


class AuthResponse(ApiModel):
    token: str
    user: UserOut


class Identity(ApiModel):
    """Caller identity decoded from a verified token. Carries no class-scoped rights."""

    id: int
    role: str
    name: str = ""
