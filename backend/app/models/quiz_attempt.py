from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base


class QuizAttempt(Base):
    """Current state of one student's answer to one quiz item.

    There is exactly one row per (user_id, item_id). Resubmissions overwrite the
    row in place and bump ``attempts``; nothing is appended.

    ``classroom_id``/``topic_id``/``item_id`` carry no foreign keys: the rows are
    removed by explicit cascades in the services, and reports must tolerate an
    attempt whose item is already gone.
    """

    __tablename__ = "quiz_attempts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    classroom_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    topic_id: Mapped[int] = mapped_column(Integer, nullable=False)
    item_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)

    response_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="submitted")
    grading_status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    is_correct: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    feedback: Mapped[str] = mapped_column(Text, nullable=False, default="")
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    graded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_quiz_attempt_user_item"),
        Index("ix_quiz_attempts_class_user", "classroom_id", "user_id"),
    )
