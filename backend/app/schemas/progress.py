from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common import ApiModel
from app.schemas.quiz import QuizAttemptOut


class ProgressUpdateRequest(ApiModel):
    status: Optional[str] = None
    last_code: Optional[str] = None
    last_answer: Optional[str] = None
    attempts: Optional[int] = None
    last_run_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ProgressOut(ApiModel):
    id: int
    user_id: int
    lesson_id: int
    status: str
    last_code: str = ""
    last_answer: str = ""
    attempts: int = 0
    last_run_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LessonProgressRow(ApiModel):
    lesson_id: int
    unit: str
    heading: str
    duration: str
    status: str = "not_started"
    attempts: int = 0
    last_run_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_code: str = ""
    last_answer: str = ""


class ReportQuizAttemptRow(QuizAttemptOut):
    item_title: str = "Quiz"
    quiz_subtype: str = "mcq"
    quiz_question: str = ""
    topic_title: str = ""


class StudentRef(ApiModel):
    id: int
    name: str


class StudentReportOut(ApiModel):
    student: StudentRef
    progress: List[LessonProgressRow] = Field(default_factory=list)
    quiz_attempts: List[ReportQuizAttemptRow] = Field(default_factory=list)
