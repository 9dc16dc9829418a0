from __future__ import annotations

from datetime import datetime
from typing import Optional

from app.schemas.common import ApiModel


class ClassroomCreateRequest(ApiModel):
    name: Optional[str] = None


class ClassroomJoinRequest(ApiModel):
    join_code: Optional[str] = None


class ClassroomOut(ApiModel):
    id: int
    name: str
    join_code: str
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StudentOut(ApiModel):
    id: int
    name: str
