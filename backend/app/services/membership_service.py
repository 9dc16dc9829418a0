"""Per-class authorization.

A token only proves who the caller is. Whatever a caller may do inside a class
is decided by their ClassroomMember row for *that* class: a teacher of class A
has no rights in class B.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.errors import Forbidden, NotFound
from app.db.upsert import insert_or_ignore
from app.models.classroom import Classroom, ClassroomMember


def resolve_membership(db: Session, user_id: int, classroom_id: int) -> Optional[ClassroomMember]:
    return (
        db.query(ClassroomMember)
        .filter(ClassroomMember.classroom_id == int(classroom_id), ClassroomMember.user_id == int(user_id))
        .first()
    )


def add_membership(db: Session, *, classroom_id: int, user_id: int, role: str) -> bool:
    """Create a membership unless one already exists. Returns True if created.

    Does not commit.
    """
    return insert_or_ignore(
        db,
        ClassroomMember,
        keys=("classroom_id", "user_id"),
        values={"classroom_id": int(classroom_id), "user_id": int(user_id), "role": role},
    )


def list_members(db: Session, classroom_id: int, *, role: Optional[str] = None) -> List[ClassroomMember]:
    q = db.query(ClassroomMember).filter(ClassroomMember.classroom_id == int(classroom_id))
    if role:
        q = q.filter(ClassroomMember.role == role)
    return q.order_by(ClassroomMember.joined_at.asc(), ClassroomMember.id.asc()).all()


def get_classroom_or_404(db: Session, classroom_id: int) -> Classroom:
    c = db.query(Classroom).filter(Classroom.id == int(classroom_id)).first()
    if not c:
        raise NotFound("Class not found")
    return c


def require_member(db: Session, user_id: int, classroom_id: int) -> ClassroomMember:
    m = resolve_membership(db, user_id, classroom_id)
    if not m:
        raise Forbidden()
    return m


def require_teacher_member(db: Session, user_id: int, classroom_id: int) -> ClassroomMember:
    m = resolve_membership(db, user_id, classroom_id)
    if not m or m.role != "teacher":
        raise Forbidden()
    return m


def require_student_member(db: Session, user_id: int, classroom_id: int) -> ClassroomMember:
    m = resolve_membership(db, user_id, classroom_id)
    if not m or m.role != "student":
        raise Forbidden()
    return m


def require_enrolled_student(db: Session, student_id: int, classroom_id: int) -> ClassroomMember:
    """Target-student check used by teacher actions: a missing enrolment is a 404, not a 403."""
    m = resolve_membership(db, student_id, classroom_id)
    if not m or m.role != "student":
        raise NotFound("Student not enrolled")
    return m
