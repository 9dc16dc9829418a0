from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.core.errors import Forbidden, NotFound, ValidationFailed
from app.models.lesson import Lesson
from app.models.lesson_progress import LessonProgress
from app.services import membership_service


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("unit", "heading", "duration", "body", "instructions", "question")


def _clean_hints(raw: Any) -> List[str]:
    if not isinstance(raw, (list, tuple)):
        return []
    return [str(h) for h in raw if h is not None]


def get_lesson_or_404(db: Session, lesson_id: int) -> Lesson:
    row = db.query(Lesson).filter(Lesson.id == int(lesson_id)).first()
    if not row:
        raise NotFound("Lesson not found")
    return row


def list_class_lessons(db: Session, classroom_id: int) -> List[Lesson]:
    return (
        db.query(Lesson)
        .filter(Lesson.classroom_id == int(classroom_id))
        .order_by(Lesson.created_at.asc(), Lesson.id.asc())
        .all()
    )


def list_lessons(db: Session, user, classroom_id: int | None) -> List[Lesson]:
    if classroom_id is None:
        raise ValidationFailed("classId is required")
    c = membership_service.get_classroom_or_404(db, int(classroom_id))
    membership_service.require_member(db, int(user.id), int(c.id))
    return list_class_lessons(db, int(c.id))


def get_lesson(db: Session, user, lesson_id: int) -> Lesson:
    row = get_lesson_or_404(db, lesson_id)
    membership_service.require_member(db, int(user.id), int(row.classroom_id))
    return row


def create_lesson(db: Session, user, payload: Dict[str, Any]) -> Lesson:
    if user.role != "teacher":
        raise Forbidden("Only teachers can create lessons")
    classroom_id = payload.get("class_id")
    if classroom_id is None:
        raise ValidationFailed("classId is required")
    c = membership_service.get_classroom_or_404(db, int(classroom_id))
    membership_service.require_teacher_member(db, int(user.id), int(c.id))

    missing = [f for f in REQUIRED_FIELDS if not str(payload.get(f) or "").strip()]
    if missing:
        raise ValidationFailed(f"Missing required fields: {', '.join(missing)}")

    row = Lesson(
        classroom_id=int(classroom_id),
        hints=_clean_hints(payload.get("hints")),
        code_starter=str(payload.get("code_starter") or ""),
        created_by=int(user.id),
        **{f: str(payload[f]) for f in REQUIRED_FIELDS},
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_lesson(db: Session, user, lesson_id: int, payload: Dict[str, Any]) -> Lesson:
    if user.role != "teacher":
        raise Forbidden("Only teachers can update lessons")
    row = get_lesson_or_404(db, lesson_id)
    membership_service.require_teacher_member(db, int(user.id), int(row.classroom_id))

    for f in REQUIRED_FIELDS:
        value = str(payload.get(f) or "").strip()
        if value:
            setattr(row, f, str(payload[f]))
    if payload.get("hints") is not None:
        row.hints = _clean_hints(payload.get("hints"))
    if payload.get("code_starter") is not None:
        row.code_starter = str(payload.get("code_starter"))
    db.commit()
    db.refresh(row)
    return row


def delete_lesson(db: Session, user, lesson_id: int) -> None:
    if user.role != "teacher":
        raise Forbidden("Only teachers can delete lessons")
    row = get_lesson_or_404(db, lesson_id)
    membership_service.require_teacher_member(db, int(user.id), int(row.classroom_id))

    lid = int(row.id)
    db.query(LessonProgress).filter(LessonProgress.lesson_id == lid).delete(synchronize_session=False)
    db.query(Lesson).filter(Lesson.id == lid).delete(synchronize_session=False)
    db.commit()
    logger.info("Lesson %s deleted by %s", lid, user.id)
