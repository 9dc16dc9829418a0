"""Per-student lesson progress.

Progress is a snapshot, not a ratchet: the student may move a lesson between
any statuses (running code again reopens a completed lesson).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import ValidationFailed
from app.db.upsert import upsert
from app.models.lesson_progress import PROGRESS_STATUSES, LessonProgress
from app.services import lesson_service, membership_service


UPDATABLE_FIELDS = ("status", "last_code", "last_answer", "attempts", "last_run_at", "completed_at")


def list_progress_for_user(db: Session, user_id: int) -> List[LessonProgress]:
    return (
        db.query(LessonProgress)
        .filter(LessonProgress.user_id == int(user_id))
        .order_by(LessonProgress.updated_at.desc(), LessonProgress.id.desc())
        .all()
    )


def get_progress(db: Session, user_id: int, lesson_id: int) -> Optional[LessonProgress]:
    return (
        db.query(LessonProgress)
        .filter(LessonProgress.user_id == int(user_id), LessonProgress.lesson_id == int(lesson_id))
        .first()
    )


def build_update(partial: Dict[str, Any], *, now: datetime | None = None) -> Dict[str, Any]:
    """Keep only supplied fields and fill in the automatic timestamps."""
    now = now or datetime.now(timezone.utc)
    update = {k: partial[k] for k in UPDATABLE_FIELDS if partial.get(k) is not None}

    if "status" in update and update["status"] not in PROGRESS_STATUSES:
        raise ValidationFailed("Invalid status")
    if "attempts" in update:
        try:
            update["attempts"] = max(0, int(update["attempts"]))
        except (TypeError, ValueError):
            raise ValidationFailed("attempts must be a number")

    if update.get("status") == "completed" and not update.get("completed_at"):
        update["completed_at"] = now
    if "last_code" in update and not update.get("last_run_at"):
        update["last_run_at"] = now
    return update


def upsert_progress(db: Session, user, lesson_id: int, partial: Dict[str, Any]) -> LessonProgress:
    lesson = lesson_service.get_lesson_or_404(db, lesson_id)
    membership_service.require_student_member(db, int(user.id), int(lesson.classroom_id))

    now = datetime.now(timezone.utc)
    update = build_update(partial, now=now)

    upsert(
        db,
        LessonProgress,
        keys=("user_id", "lesson_id"),
        values={"user_id": int(user.id), "lesson_id": int(lesson.id), **update},
        on_insert={"created_at": now, "updated_at": now},
        on_update={"updated_at": now},
    )
    db.commit()

    row = get_progress(db, int(user.id), int(lesson.id))
    db.refresh(row)
    return row
