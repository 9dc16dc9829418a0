from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, InvalidCredentials, ValidationFailed
from app.core.security import get_password_hash, issue_session_token, verify_password
from app.models.user import ROLES, User


logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> str:
    return str(value or "").strip()


def _normalize_role(role: Optional[str]) -> str:
    r = _clean(role).lower()
    if r not in ROLES:
        raise ValidationFailed("Invalid role. Use 'student' or 'teacher'.")
    return r


def issue_token(user: User) -> str:
    """Signed session token carrying identity only (id, signup role, name)."""
    return issue_session_token(int(user.id), user.role, user.name)


def signup(db: Session, *, name: Optional[str], password: Optional[str], role: Optional[str]) -> User:
    name = _clean(name)
    if not name or not password or not _clean(role):
        raise ValidationFailed("Missing required fields")
    role = _normalize_role(role)

    if db.query(User).filter(User.name == name).first():
        raise Conflict("User already exists", code="USER_EXISTS")

    user = User(name=name, password_hash=get_password_hash(password), role=role)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent signup with the same name
        db.rollback()
        raise Conflict("User already exists", code="USER_EXISTS")
    db.refresh(user)
    logger.info("Account created id=%s role=%s", user.id, user.role)
    return user


def authenticate(db: Session, *, name: Optional[str], password: Optional[str]) -> User:
    """Return the account for valid credentials.

    Unknown name and wrong password raise the same error.
    """
    name = _clean(name)
    if not name or not password:
        raise ValidationFailed("Missing credentials")

    user = db.query(User).filter(User.name == name).first()
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login attempt")
        raise InvalidCredentials()
    return user


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == int(user_id)).first()
