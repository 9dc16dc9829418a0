from __future__ import annotations

import logging
import secrets
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import Forbidden, JoinCodeUnavailable, NotFound, ValidationFailed
from app.models.classroom import Classroom, ClassroomMember
from app.models.lesson import Lesson
from app.models.lesson_progress import LessonProgress
from app.models.quiz_attempt import QuizAttempt
from app.models.topic import Topic, TopicItem
from app.models.user import User
from app.services import membership_service


logger = logging.getLogger(__name__)

# No 0/O or 1/I so codes can be read aloud and typed by hand
JOIN_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def make_join_code(length: int | None = None) -> str:
    n = int(length or settings.JOIN_CODE_LENGTH)
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(n))


def _unique_join_code(db: Session) -> str:
    for _ in range(int(settings.JOIN_CODE_MAX_TRIES)):
        code = make_join_code()
        if not db.query(Classroom.id).filter(Classroom.join_code == code).first():
            return code
    logger.error("No free join code after %s tries", settings.JOIN_CODE_MAX_TRIES)
    raise JoinCodeUnavailable()


def create_classroom(db: Session, user, name: Optional[str]) -> Classroom:
    if user.role != "teacher":
        raise Forbidden("Only teachers can create classes")
    name = str(name or "").strip()
    if not name:
        raise ValidationFailed("Class name is required")

    row = Classroom(name=name, join_code=_unique_join_code(db), created_by=int(user.id))
    db.add(row)
    db.flush()
    membership_service.add_membership(db, classroom_id=int(row.id), user_id=int(user.id), role="teacher")
    db.commit()
    db.refresh(row)
    logger.info("Class created id=%s by teacher=%s", row.id, user.id)
    return row


def join_classroom(db: Session, user, join_code: Optional[str]) -> Tuple[Classroom, bool]:
    """Join by code. Returns (classroom, created); re-joining is not an error."""
    if user.role != "student":
        raise Forbidden("Only students can join classes")
    code = str(join_code or "").strip().upper()
    if not code:
        raise ValidationFailed("Join code is required")

    c = db.query(Classroom).filter(Classroom.join_code == code).first()
    if not c:
        raise NotFound("Class not found")

    created = membership_service.add_membership(db, classroom_id=int(c.id), user_id=int(user.id), role="student")
    db.commit()
    if created:
        logger.info("Student %s joined class %s", user.id, c.id)
    return c, created


def list_classrooms(db: Session, user) -> List[Classroom]:
    ids = [
        int(r[0])
        for r in db.query(ClassroomMember.classroom_id).filter(ClassroomMember.user_id == int(user.id)).all()
    ]
    if not ids:
        return []
    return (
        db.query(Classroom)
        .filter(Classroom.id.in_(ids))
        .order_by(Classroom.updated_at.desc(), Classroom.id.desc())
        .all()
    )


def get_classroom(db: Session, user, classroom_id: int) -> Classroom:
    c = membership_service.get_classroom_or_404(db, classroom_id)
    membership_service.require_member(db, int(user.id), int(c.id))
    return c


def list_students(db: Session, user, classroom_id: int) -> List[User]:
    c = membership_service.get_classroom_or_404(db, classroom_id)
    membership_service.require_teacher_member(db, int(user.id), int(c.id))

    student_ids = [int(m.user_id) for m in membership_service.list_members(db, int(c.id), role="student")]
    if not student_ids:
        return []
    rows = db.query(User).filter(User.id.in_(student_ids)).all()
    by_id = {int(u.id): u for u in rows}
    return [by_id[sid] for sid in student_ids if sid in by_id]


def delete_classroom(db: Session, user, classroom_id: int) -> Dict[str, int]:
    """Delete a class and everything under it, children first."""
    if user.role != "teacher":
        raise Forbidden("Only teachers can delete classes")
    c = membership_service.get_classroom_or_404(db, classroom_id)
    membership_service.require_teacher_member(db, int(user.id), int(c.id))
    cid = int(c.id)

    counts: Dict[str, int] = {}
    counts["quiz_attempts"] = (
        db.query(QuizAttempt).filter(QuizAttempt.classroom_id == cid).delete(synchronize_session=False)
    )
    counts["topic_items"] = db.query(TopicItem).filter(TopicItem.classroom_id == cid).delete(synchronize_session=False)
    counts["topics"] = db.query(Topic).filter(Topic.classroom_id == cid).delete(synchronize_session=False)

    lesson_ids = [int(r[0]) for r in db.query(Lesson.id).filter(Lesson.classroom_id == cid).all()]
    counts["lesson_progress"] = (
        db.query(LessonProgress).filter(LessonProgress.lesson_id.in_(lesson_ids)).delete(synchronize_session=False)
        if lesson_ids
        else 0
    )
    counts["lessons"] = db.query(Lesson).filter(Lesson.classroom_id == cid).delete(synchronize_session=False)
    counts["memberships"] = (
        db.query(ClassroomMember).filter(ClassroomMember.classroom_id == cid).delete(synchronize_session=False)
    )
    db.query(Classroom).filter(Classroom.id == cid).delete(synchronize_session=False)
    db.commit()

    logger.info("Class %s deleted by %s: %s", cid, user.id, counts)
    return counts
