from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.api.deps import ensure_db, require_user
from app.api.envelope import ok
from app.schemas.auth import AuthResponse, Identity, LoginRequest, SignupRequest, UserOut
from app.services import user_service


router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_out(user) -> dict:
    out = AuthResponse(token=user_service.issue_token(user), user=UserOut.model_validate(user))
    return out.model_dump(by_alias=True)


@router.post("/signup", status_code=201)
def signup(request: Request, payload: SignupRequest, db: Session = Depends(ensure_db)):
    user = user_service.signup(db, name=payload.name, password=payload.password, role=payload.role)
    return ok(request, _auth_out(user))


@router.post("/login")
def login(request: Request, payload: LoginRequest, db: Session = Depends(ensure_db)):
    user = user_service.authenticate(db, name=payload.name, password=payload.password)
    return ok(request, _auth_out(user))


@router.get("/me")
def me(request: Request, user: Identity = Depends(require_user)):
    return ok(request, {"user": UserOut(id=user.id, name=user.name, role=user.role).model_dump(by_alias=True)})
