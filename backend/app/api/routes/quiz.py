from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.api.deps import ensure_db, require_user
from app.api.envelope import ok
from app.models.quiz_attempt import QuizAttempt
from app.schemas.auth import Identity
from app.schemas.quiz import (
    QuizAttemptOut,
    QuizGradeRequest,
    QuizItemOut,
    QuizItemWithAttemptOut,
    QuizSubmitRequest,
    TopicRef,
)
from app.services import quiz_attempt_service


router = APIRouter(prefix="/classes/{classroom_id}", tags=["quiz"])


def _attempt_out(a: QuizAttempt | None) -> dict | None:
    if a is None:
        return None
    return QuizAttemptOut.model_validate(a).model_dump(by_alias=True)


@router.get("/quiz/{item_id}")
def get_quiz_item(
    request: Request,
    classroom_id: int,
    item_id: int,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    it, topic_id, topic_title, attempt = quiz_attempt_service.get_quiz_item(db, user, classroom_id, item_id)
    # The expected answer stays on the server
    out = QuizItemWithAttemptOut(
        item=QuizItemOut(
            id=it.id,
            title=it.title,
            type=it.type,
            quiz_subtype=it.quiz_subtype or "mcq",
            quiz_question=it.quiz_question or "",
            quiz_options=list(it.quiz_options or []),
            topic=TopicRef(id=topic_id, title=topic_title),
        ),
        attempt=QuizAttemptOut.model_validate(attempt) if attempt is not None else None,
    )
    return ok(request, out.model_dump(by_alias=True))


@router.put("/quiz/{item_id}/attempt")
def submit_attempt(
    request: Request,
    classroom_id: int,
    item_id: int,
    payload: QuizSubmitRequest,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    attempt = quiz_attempt_service.submit_attempt(db, user, classroom_id, item_id, payload.response_text)
    return ok(request, {"attempt": _attempt_out(attempt)})


@router.put("/students/{student_id}/quiz-attempts/{attempt_id}/grade")
def grade_attempt(
    request: Request,
    classroom_id: int,
    student_id: int,
    attempt_id: int,
    payload: QuizGradeRequest,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    attempt = quiz_attempt_service.grade_attempt(
        db,
        user,
        classroom_id,
        student_id,
        attempt_id,
        is_correct=payload.is_correct,
        score=payload.score,
        feedback=payload.feedback,
    )
    return ok(request, {"attempt": _attempt_out(attempt)})
