from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.api.deps import ensure_db, require_user
from app.api.envelope import ok
from app.models.lesson import Lesson
from app.schemas.auth import Identity
from app.schemas.lessons import LessonOut, LessonWriteRequest
from app.services import lesson_service


router = APIRouter(prefix="/lessons", tags=["lessons"])


def _lesson_out(row: Lesson) -> dict:
    return LessonOut.model_validate(row).model_dump(by_alias=True)


@router.get("")
def list_lessons(
    request: Request,
    class_id: Optional[int] = Query(default=None, alias="classId"),
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    rows = lesson_service.list_lessons(db, user, class_id)
    return ok(request, {"lessons": [_lesson_out(r) for r in rows]})


@router.get("/{lesson_id}")
def get_lesson(
    request: Request,
    lesson_id: int,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    return ok(request, {"lesson": _lesson_out(lesson_service.get_lesson(db, user, lesson_id))})


@router.post("", status_code=201)
def create_lesson(
    request: Request,
    payload: LessonWriteRequest,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    row = lesson_service.create_lesson(db, user, payload.model_dump())
    return ok(request, {"lesson": _lesson_out(row)})


@router.put("/{lesson_id}")
def update_lesson(
    request: Request,
    lesson_id: int,
    payload: LessonWriteRequest,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    row = lesson_service.update_lesson(db, user, lesson_id, payload.model_dump())
    return ok(request, {"lesson": _lesson_out(row)})


@router.delete("/{lesson_id}")
def delete_lesson(
    request: Request,
    lesson_id: int,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    lesson_service.delete_lesson(db, user, lesson_id)
    return ok(request, {"success": True})
