"""Teacher view of one student in one class.

Left joins only: lessons without progress get defaults, attempts whose item (or
topic) was deleted get placeholder labels instead of disappearing.
"""

from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.models.topic import Topic, TopicItem
from app.services import lesson_service, membership_service, progress_service, quiz_attempt_service, user_service


def _progress_rows(db: Session, classroom_id: int, student_id: int) -> List[Dict[str, Any]]:
    lessons = lesson_service.list_class_lessons(db, classroom_id)
    by_lesson = {int(p.lesson_id): p for p in progress_service.list_progress_for_user(db, student_id)}

    rows: List[Dict[str, Any]] = []
    for lesson in lessons:
        p = by_lesson.get(int(lesson.id))
        rows.append(
            {
                "lesson_id": int(lesson.id),
                "unit": lesson.unit,
                "heading": lesson.heading,
                "duration": lesson.duration,
                "status": (p.status if p else None) or "not_started",
                "attempts": int(p.attempts or 0) if p else 0,
                "last_run_at": p.last_run_at if p else None,
                "completed_at": p.completed_at if p else None,
                "updated_at": p.updated_at if p else None,
                "last_code": (p.last_code if p else "") or "",
                "last_answer": (p.last_answer if p else "") or "",
            }
        )
    return rows


def _attempt_rows(db: Session, classroom_id: int, student_id: int) -> List[Dict[str, Any]]:
    attempts = quiz_attempt_service.list_attempts_in_class(db, student_id, classroom_id)
    item_ids = sorted({int(a.item_id) for a in attempts})
    items = {int(i.id): i for i in db.query(TopicItem).filter(TopicItem.id.in_(item_ids)).all()} if item_ids else {}
    topic_ids = sorted({int(i.topic_id) for i in items.values()})
    topics = {int(t.id): t for t in db.query(Topic).filter(Topic.id.in_(topic_ids)).all()} if topic_ids else {}

    rows: List[Dict[str, Any]] = []
    for a in attempts:
        item = items.get(int(a.item_id))
        topic = topics.get(int(item.topic_id)) if item else None
        rows.append(
            {
                "attempt": a,
                "item_title": (item.title if item else None) or "Quiz",
                "quiz_subtype": (item.quiz_subtype if item else None) or "mcq",
                "quiz_question": (item.quiz_question if item else None) or "",
                "topic_title": (topic.title if topic else None) or "",
            }
        )
    return rows


def student_report(db: Session, user, classroom_id: int, student_id: int) -> Dict[str, Any]:
    c = membership_service.get_classroom_or_404(db, classroom_id)
    membership_service.require_teacher_member(db, int(user.id), int(c.id))
    membership_service.require_enrolled_student(db, int(student_id), int(c.id))

    student = user_service.get_user(db, int(student_id))
    return {
        "student": {"id": int(student_id), "name": student.name if student else "Student"},
        "progress": _progress_rows(db, int(c.id), int(student_id)),
        "quiz_attempts": _attempt_rows(db, int(c.id), int(student_id)),
    }
