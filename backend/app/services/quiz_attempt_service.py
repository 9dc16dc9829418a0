"""Quiz attempt lifecycle: submission, auto-grading and manual grading.

One row per (student, item). States::

    no_attempt -> submitted/pending -> graded/auto_graded
                                    -> graded/manual_graded

Every submission re-runs the submission path: it replaces the response,
recomputes (or resets) grading and clears teacher feedback, so a teacher grade
only stands until the student submits again.

Grade and resubmit are not version-checked against each other; whichever write
lands last wins.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.errors import Forbidden, InvalidType, NotFound, ValidationFailed
from app.db.upsert import upsert
from app.models.quiz_attempt import QuizAttempt
from app.models.topic import TopicItem
from app.services import membership_service, topic_service


logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_answer(value: Any) -> str:
    return str(value if value is not None else "").strip().lower()


def get_attempt(db: Session, user_id: int, item_id: int) -> Optional[QuizAttempt]:
    return (
        db.query(QuizAttempt)
        .filter(QuizAttempt.user_id == int(user_id), QuizAttempt.item_id == int(item_id))
        .first()
    )


def get_attempt_by_id(db: Session, attempt_id: int) -> Optional[QuizAttempt]:
    return db.query(QuizAttempt).filter(QuizAttempt.id == int(attempt_id)).first()


def list_attempts_in_class(db: Session, user_id: int, classroom_id: int) -> List[QuizAttempt]:
    return (
        db.query(QuizAttempt)
        .filter(QuizAttempt.user_id == int(user_id), QuizAttempt.classroom_id == int(classroom_id))
        .order_by(QuizAttempt.updated_at.desc(), QuizAttempt.id.desc())
        .all()
    )


def _require_quiz_item(db: Session, classroom_id: int, item_id: int) -> TopicItem:
    it = topic_service.get_item_in_class(db, classroom_id, item_id)
    if it.type != "quiz":
        raise InvalidType("Not a quiz item")
    return it


def get_quiz_item(db: Session, user, classroom_id: int, item_id: int) -> Tuple[TopicItem, Optional[int], str, Optional[QuizAttempt]]:
    """A quiz item as a member sees it, plus the caller's own attempt (if any)."""
    c = membership_service.get_classroom_or_404(db, classroom_id)
    membership_service.require_member(db, int(user.id), int(c.id))
    it = _require_quiz_item(db, int(c.id), item_id)
    topic_id, topic_title = topic_service.get_topic_title(db, int(it.topic_id))
    return it, topic_id, topic_title, get_attempt(db, int(user.id), int(it.id))


def evaluate_submission(item: TopicItem, response_text: str) -> Dict[str, Any]:
    """Grading fields for a (validated, trimmed) response to ``item``.

    * mcq with an expected answer: auto-graded by trimmed, case-insensitive equality.
    * mcq without an expected answer, or short_answer: pending.
    """
    result: Dict[str, Any] = {
        "status": "submitted",
        "grading_status": "pending",
        "is_correct": None,
        "score": None,
        "graded_at": None,
    }
    subtype = item.quiz_subtype or "mcq"
    if subtype != "mcq":
        return result

    options = list(item.quiz_options or [])
    if response_text not in options:
        raise ValidationFailed("Response must match one of the options")

    expected = str(item.quiz_answer or "").strip()
    if expected:
        is_correct = _normalize_answer(response_text) == _normalize_answer(expected)
        result.update(
            status="graded",
            grading_status="auto_graded",
            is_correct=is_correct,
            score=1.0 if is_correct else 0.0,
            graded_at=_now(),
        )
    return result


def submit_attempt(db: Session, user, classroom_id: int, item_id: int, response_text: Any) -> QuizAttempt:
    if user.role != "student":
        raise Forbidden("Only students can submit quiz answers")
    c = membership_service.get_classroom_or_404(db, classroom_id)
    membership_service.require_student_member(db, int(user.id), int(c.id))
    it = _require_quiz_item(db, int(c.id), item_id)

    text = str(response_text if response_text is not None else "").strip()
    if not text:
        raise ValidationFailed("Response is required")

    grading = evaluate_submission(it, text)
    now = _now()

    upsert(
        db,
        QuizAttempt,
        keys=("user_id", "item_id"),
        values={
            "user_id": int(user.id),
            "item_id": int(it.id),
            "response_text": text,
            "feedback": "",
            "submitted_at": now,
            **grading,
        },
        # Stamped once; later submissions never move an attempt between classes/topics.
        on_insert={
            "classroom_id": int(c.id),
            "topic_id": int(it.topic_id),
            "attempts": 1,
            "created_at": now,
            "updated_at": now,
        },
        on_update={"attempts": QuizAttempt.attempts + 1, "updated_at": now},
    )
    db.commit()

    attempt = get_attempt(db, int(user.id), int(it.id))
    db.refresh(attempt)
    logger.info(
        "Quiz attempt user=%s item=%s attempts=%s grading=%s",
        user.id, it.id, attempt.attempts, attempt.grading_status,
    )
    return attempt


def _resolve_score(score: Any, is_correct: bool) -> float:
    value: Optional[float] = None
    if isinstance(score, (int, float)) and not isinstance(score, bool):
        try:
            value = float(score)
        except OverflowError:
            # ints beyond float range
            value = None
    if value is None or not math.isfinite(value):
        return 1.0 if is_correct else 0.0
    return value


def grade_attempt(
    db: Session,
    user,
    classroom_id: int,
    student_id: int,
    attempt_id: int,
    *,
    is_correct: Any,
    score: Any = None,
    feedback: Any = None,
) -> QuizAttempt:
    """Teacher override: always lands as graded/manual_graded."""
    if user.role != "teacher":
        raise Forbidden("Only teachers can grade quiz answers")
    c = membership_service.get_classroom_or_404(db, classroom_id)
    membership_service.require_teacher_member(db, int(user.id), int(c.id))
    membership_service.require_enrolled_student(db, int(student_id), int(c.id))

    attempt = get_attempt_by_id(db, attempt_id)
    if not attempt or int(attempt.classroom_id) != int(c.id):
        raise NotFound("Quiz attempt not found")
    if int(attempt.user_id) != int(student_id):
        raise ValidationFailed("Quiz attempt does not belong to this student")

    if not isinstance(is_correct, bool):
        raise ValidationFailed("isCorrect must be true or false")

    attempt.status = "graded"
    attempt.grading_status = "manual_graded"
    attempt.is_correct = is_correct
    attempt.score = _resolve_score(score, is_correct)
    attempt.feedback = str(feedback if feedback is not None else "").strip()
    attempt.graded_at = _now()
    db.commit()
    db.refresh(attempt)

    logger.info("Quiz attempt %s graded by %s: correct=%s score=%s", attempt.id, user.id, is_correct, attempt.score)
    return attempt
