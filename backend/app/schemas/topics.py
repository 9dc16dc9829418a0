from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from app.schemas.common import ApiModel


class TopicCreateRequest(ApiModel):
    title: Optional[str] = None
    concepts: Optional[List[str]] = None


class TopicUpdateRequest(ApiModel):
    title: Optional[str] = None
    concepts: Optional[List[str]] = None


class TopicItemWriteRequest(ApiModel):
    """Create/update body for a topic item.

    Quiz fields are loosely typed on purpose: they are coerced and sanitized by
    ``topic_service.resolve_quiz_fields``.
    """

    title: Optional[str] = None
    type: Optional[str] = None
    quiz_subtype: Optional[str] = None
    quiz_question: Optional[Any] = None
    quiz_options: Optional[Any] = None
    quiz_answer: Optional[Any] = None


class TopicOut(ApiModel):
    id: int
    classroom_id: int
    title: str
    concepts: List[str] = Field(default_factory=list)
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TopicItemOut(ApiModel):
    id: int
    topic_id: int
    type: str
    title: str
    quiz_subtype: Optional[str] = None
    quiz_question: str = ""
    quiz_options: List[str] = Field(default_factory=list)
    quiz_answer: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TopicWithItemsOut(TopicOut):
    items: List[TopicItemOut] = Field(default_factory=list)
