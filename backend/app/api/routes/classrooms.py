from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from app.api.deps import ensure_db, require_user
from app.api.envelope import ok
from app.models.classroom import Classroom
from app.schemas.auth import Identity
from app.schemas.classrooms import ClassroomCreateRequest, ClassroomJoinRequest, ClassroomOut, StudentOut
from app.schemas.progress import LessonProgressRow, ReportQuizAttemptRow, StudentReportOut, StudentRef
from app.schemas.quiz import QuizAttemptOut
from app.services import classroom_service, report_service


router = APIRouter(prefix="/classes", tags=["classrooms"])


def _classroom_out(c: Classroom) -> dict:
    return ClassroomOut.model_validate(c).model_dump(by_alias=True)


@router.get("")
def list_my_classrooms(request: Request, user: Identity = Depends(require_user), db: Session = Depends(ensure_db)):
    rows = classroom_service.list_classrooms(db, user)
    return ok(request, {"classes": [_classroom_out(c) for c in rows]})


@router.post("", status_code=201)
def create_classroom(
    request: Request,
    payload: ClassroomCreateRequest,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    row = classroom_service.create_classroom(db, user, payload.name)
    return ok(request, {"classroom": _classroom_out(row)})


@router.post("/join")
def join_classroom(
    request: Request,
    response: Response,
    payload: ClassroomJoinRequest,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    c, created = classroom_service.join_classroom(db, user, payload.join_code)
    response.status_code = 201 if created else 200
    return ok(request, {"classroom": _classroom_out(c)})


@router.get("/{classroom_id}")
def get_classroom(
    request: Request,
    classroom_id: int,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    c = classroom_service.get_classroom(db, user, classroom_id)
    return ok(request, {"classroom": _classroom_out(c)})


@router.delete("/{classroom_id}")
def delete_classroom(
    request: Request,
    classroom_id: int,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    classroom_service.delete_classroom(db, user, classroom_id)
    return ok(request, {"success": True})


@router.get("/{classroom_id}/students")
def list_students(
    request: Request,
    classroom_id: int,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    rows = classroom_service.list_students(db, user, classroom_id)
    return ok(request, {"students": [StudentOut.model_validate(u).model_dump(by_alias=True) for u in rows]})


@router.get("/{classroom_id}/students/{student_id}/progress")
def student_progress(
    request: Request,
    classroom_id: int,
    student_id: int,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    report = report_service.student_report(db, user, classroom_id, student_id)

    attempts = []
    for row in report["quiz_attempts"]:
        base = QuizAttemptOut.model_validate(row.pop("attempt")).model_dump()
        attempts.append(ReportQuizAttemptRow(**base, **row))

    out = StudentReportOut(
        student=StudentRef(**report["student"]),
        progress=[LessonProgressRow(**p) for p in report["progress"]],
        quiz_attempts=attempts,
    )
    return ok(request, out.model_dump(by_alias=True))
