from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.api.deps import ensure_db, require_user
from app.api.envelope import ok
from app.models.topic import Topic, TopicItem
from app.schemas.auth import Identity
from app.schemas.quiz import PracticeItemOut, TopicRef
from app.schemas.topics import (
    TopicCreateRequest,
    TopicItemOut,
    TopicItemWriteRequest,
    TopicOut,
    TopicUpdateRequest,
    TopicWithItemsOut,
)
from app.services import topic_service


router = APIRouter(prefix="/classes/{classroom_id}/topics", tags=["topics"])


def _item_model(it: TopicItem, *, hide_answer: bool = False) -> TopicItemOut:
    out = TopicItemOut.model_validate(it)
    if hide_answer:
        out.quiz_answer = ""
    return out


def _item_out(it: TopicItem) -> dict:
    return _item_model(it).model_dump(by_alias=True)


def _topic_out(t: Topic) -> dict:
    return TopicOut.model_validate(t).model_dump(by_alias=True)


@router.get("")
def list_topics(
    request: Request,
    classroom_id: int,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    membership, rows = topic_service.list_topics(db, user, classroom_id)
    # Students see the questions, never the expected answers
    hide = membership.role == "student"

    topics: List[dict] = []
    for t, items in rows:
        out = TopicWithItemsOut(
            **TopicOut.model_validate(t).model_dump(),
            items=[_item_model(it, hide_answer=hide) for it in items],
        )
        topics.append(out.model_dump(by_alias=True))
    return ok(request, {"topics": topics})


@router.post("", status_code=201)
def create_topic(
    request: Request,
    classroom_id: int,
    payload: TopicCreateRequest,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    t = topic_service.create_topic(db, user, classroom_id, title=payload.title, concepts=payload.concepts)
    return ok(request, {"topic": _topic_out(t)})


@router.put("/{topic_id}")
def update_topic(
    request: Request,
    classroom_id: int,
    topic_id: int,
    payload: TopicUpdateRequest,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    t = topic_service.update_topic(db, user, classroom_id, topic_id, payload.model_dump())
    return ok(request, {"topic": _topic_out(t)})


@router.delete("/{topic_id}")
def delete_topic(
    request: Request,
    classroom_id: int,
    topic_id: int,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    topic_service.delete_topic(db, user, classroom_id, topic_id)
    return ok(request, {"success": True})


@router.post("/{topic_id}/items", status_code=201)
def create_item(
    request: Request,
    classroom_id: int,
    topic_id: int,
    payload: TopicItemWriteRequest,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    it = topic_service.create_item(db, user, classroom_id, topic_id, payload.model_dump())
    return ok(request, {"item": _item_out(it)})


@router.put("/{topic_id}/items/{item_id}")
def update_item(
    request: Request,
    classroom_id: int,
    topic_id: int,
    item_id: int,
    payload: TopicItemWriteRequest,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    it = topic_service.update_item(db, user, classroom_id, topic_id, item_id, payload.model_dump())
    return ok(request, {"item": _item_out(it)})


@router.delete("/{topic_id}/items/{item_id}")
def delete_item(
    request: Request,
    classroom_id: int,
    topic_id: int,
    item_id: int,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    topic_service.delete_item(db, user, classroom_id, topic_id, item_id)
    return ok(request, {"success": True})


practice_router = APIRouter(tags=["topics"])


@practice_router.get("/classes/{classroom_id}/practice/{item_id}")
def get_practice_item(
    request: Request,
    classroom_id: int,
    item_id: int,
    user: Identity = Depends(require_user),
    db: Session = Depends(ensure_db),
):
    it, topic_id, topic_title = topic_service.get_practice_item(db, user, classroom_id, item_id)
    out = PracticeItemOut(id=it.id, title=it.title, type=it.type, topic=TopicRef(id=topic_id, title=topic_title))
    return ok(request, {"item": out.model_dump(by_alias=True)})
