from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common import ApiModel


class LessonWriteRequest(ApiModel):
    class_id: Optional[int] = None
    unit: Optional[str] = None
    heading: Optional[str] = None
    duration: Optional[str] = None
    body: Optional[str] = None
    instructions: Optional[str] = None
    question: Optional[str] = None
    hints: Optional[List[str]] = None
    code_starter: Optional[str] = None


class LessonOut(ApiModel):
    id: int
    classroom_id: int
    unit: str
    heading: str
    duration: str
    body: str
    instructions: str
    question: str
    hints: List[str] = Field(default_factory=list)
    code_starter: str = ""
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
