from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from app.schemas.common import ApiModel


class QuizSubmitRequest(ApiModel):
    response_text: Optional[Any] = None


class QuizGradeRequest(ApiModel):
    # Checked by the service: is_correct must be a real boolean, score a finite number.
    is_correct: Optional[Any] = None
    score: Optional[Any] = None
    feedback: Optional[Any] = None


class TopicRef(ApiModel):
    id: Optional[int] = None
    title: str = ""


class QuizItemOut(ApiModel):
    id: int
    title: str
    type: str
    quiz_subtype: str = "mcq"
    quiz_question: str = ""
    quiz_options: List[str] = Field(default_factory=list)
    topic: TopicRef


class PracticeItemOut(ApiModel):
    id: int
    title: str
    type: str
    topic: TopicRef


class QuizAttemptOut(ApiModel):
    id: int
    item_id: int
    topic_id: int
    classroom_id: int
    user_id: int
    response_text: str = ""
    status: str
    grading_status: str
    is_correct: Optional[bool] = None
    score: Optional[float] = None
    feedback: str = ""
    attempts: int = 0
    submitted_at: Optional[datetime] = None
    graded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class QuizItemWithAttemptOut(ApiModel):
    item: QuizItemOut
    attempt: Optional[QuizAttemptOut] = None
