from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.api.deps import ensure_db, require_user
from app.api.envelope import ok
from app.schemas.auth import Identity
from app.schemas.progress import ProgressOut, ProgressUpdateRequest
from app.services import progress_service


router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("")
def list_my_progress(request: Request, user: Identity = Depends(require_user), db: Session = Depends(ensure_db)):
    rows = progress_service.list_progress_for_user(db, int(user.id))
    return ok(request, {"progress": [ProgressOut.model_validate(r).model_dump(by_alias=True) for r in rows]})


@router.get("/{lesson_id}")
def get_my_progress(
    request: Request,
    lesson_id: int,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    row = progress_service.get_progress(db, int(user.id), lesson_id)
    out = ProgressOut.model_validate(row).model_dump(by_alias=True) if row else None
    return ok(request, {"progress": out})


@router.put("/{lesson_id}")
def update_my_progress(
    request: Request,
    lesson_id: int,
    payload: ProgressUpdateRequest,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    row = progress_service.upsert_progress(db, user, lesson_id, payload.model_dump(exclude_unset=True))
    return ok(request, {"progress": ProgressOut.model_validate(row).model_dump(by_alias=True)})
