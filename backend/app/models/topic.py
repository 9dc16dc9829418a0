from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base


TOPIC_ITEM_TYPES = ("learning", "quiz", "practice")
QUIZ_SUBTYPES = ("mcq", "short_answer")


class Topic(Base):
    __tablename__ = "topics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    classroom_id: Mapped[int] = mapped_column(Integer, ForeignKey("classrooms.id"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    # Free-text concept tags
    concepts: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class TopicItem(Base):
    __tablename__ = "topic_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    topic_id: Mapped[int] = mapped_column(Integer, ForeignKey("topics.id"), index=True, nullable=False)
    # Denormalized from the topic for class-scoped queries
    classroom_id: Mapped[int] = mapped_column(Integer, ForeignKey("classrooms.id"), index=True, nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    # Quiz fields; empty unless type == "quiz"
    quiz_subtype: Mapped[str | None] = mapped_column(String(32), nullable=True)
    quiz_question: Mapped[str] = mapped_column(Text, nullable=False, default="")
    quiz_options: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    quiz_answer: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
