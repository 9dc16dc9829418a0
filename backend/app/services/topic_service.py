from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.errors import InvalidType, NotFound, ValidationFailed
from app.models.classroom import ClassroomMember
from app.models.quiz_attempt import QuizAttempt
from app.models.topic import QUIZ_SUBTYPES, TOPIC_ITEM_TYPES, Topic, TopicItem
from app.services import membership_service


logger = logging.getLogger(__name__)


def _pick(payload: Dict[str, Any], key: str, fallback: Any) -> Any:
    """``payload[key]`` unless missing or None."""
    v = payload.get(key)
    return fallback if v is None else v


def _sanitize_options(raw: Any) -> List[str]:
    # Trim, drop blanks, keep order and duplicates
    if not isinstance(raw, (list, tuple)):
        return []
    out: List[str] = []
    for opt in raw:
        s = ("" if opt is None else str(opt)).strip()
        if s:
            out.append(s)
    return out


def resolve_quiz_fields(payload: Dict[str, Any], current_type: Optional[str], existing: Optional[TopicItem] = None) -> Dict[str, Any]:
    """Compute the quiz columns for an item being created or updated.

    A non-quiz item always gets empty quiz fields, whatever the payload says, so
    retyping an item away from quiz never leaves stale answers behind. For quiz
    items each field falls back to the existing item, then to a default.

    Only sanitizes: ">= 2 options" and "answer is one of the options" for mcq are
    left to the client.
    """
    item_type = payload.get("type") or current_type
    if item_type != "quiz":
        return {"quiz_subtype": None, "quiz_question": "", "quiz_options": [], "quiz_answer": ""}

    subtype = _pick(payload, "quiz_subtype", getattr(existing, "quiz_subtype", None) or "mcq")
    if subtype not in QUIZ_SUBTYPES:
        raise ValidationFailed("Invalid quiz subtype")

    options = _sanitize_options(_pick(payload, "quiz_options", getattr(existing, "quiz_options", None) or []))
    question = _pick(payload, "quiz_question", getattr(existing, "quiz_question", None) or "")
    answer = _pick(payload, "quiz_answer", getattr(existing, "quiz_answer", None) or "")

    return {
        "quiz_subtype": subtype,
        "quiz_question": str(question).strip(),
        "quiz_options": options if subtype == "mcq" else [],
        "quiz_answer": str(answer).strip(),
    }


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def get_topic_in_class(db: Session, classroom_id: int, topic_id: int) -> Topic:
    t = db.query(Topic).filter(Topic.id == int(topic_id)).first()
    if not t or int(t.classroom_id) != int(classroom_id):
        raise NotFound("Topic not found")
    return t


def get_item_in_class(db: Session, classroom_id: int, item_id: int) -> TopicItem:
    """The item, or NotFound when it is missing or belongs to another class."""
    it = db.query(TopicItem).filter(TopicItem.id == int(item_id)).first()
    if not it or int(it.classroom_id) != int(classroom_id):
        raise NotFound("Item not found")
    return it


def get_topic_title(db: Session, topic_id: int) -> Tuple[Optional[int], str]:
    t = db.query(Topic).filter(Topic.id == int(topic_id)).first()
    if not t:
        return int(topic_id), ""
    return int(t.id), str(t.title or "")


def _delete_items(db: Session, item_ids: List[int]) -> int:
    """Attempts first, then the items. Does not commit."""
    if not item_ids:
        return 0
    db.query(QuizAttempt).filter(QuizAttempt.item_id.in_(item_ids)).delete(synchronize_session=False)
    return db.query(TopicItem).filter(TopicItem.id.in_(item_ids)).delete(synchronize_session=False)


# ---------------------------------------------------------------------------
# Topics
# ---------------------------------------------------------------------------


def list_topics(db: Session, user, classroom_id: int) -> Tuple[ClassroomMember, List[Tuple[Topic, List[TopicItem]]]]:
    """Topics of a class (newest first), each with its items in creation order."""
    c = membership_service.get_classroom_or_404(db, classroom_id)
    membership = membership_service.require_member(db, int(user.id), int(c.id))

    topics = (
        db.query(Topic)
        .filter(Topic.classroom_id == int(c.id))
        .order_by(Topic.created_at.desc(), Topic.id.desc())
        .all()
    )
    items = (
        db.query(TopicItem)
        .filter(TopicItem.classroom_id == int(c.id))
        .order_by(TopicItem.created_at.asc(), TopicItem.id.asc())
        .all()
    )
    by_topic: Dict[int, List[TopicItem]] = {}
    for it in items:
        by_topic.setdefault(int(it.topic_id), []).append(it)

    return membership, [(t, by_topic.get(int(t.id), [])) for t in topics]


def _clean_concepts(raw: Any) -> List[str]:
    if not isinstance(raw, (list, tuple)):
        return []
    return [str(c).strip() for c in raw if c is not None and str(c).strip()]


def create_topic(db: Session, user, classroom_id: int, *, title: Optional[str], concepts: Any = None) -> Topic:
    c = membership_service.get_classroom_or_404(db, classroom_id)
    membership_service.require_teacher_member(db, int(user.id), int(c.id))
    title = str(title or "").strip()
    if not title:
        raise ValidationFailed("Topic title is required")

    row = Topic(classroom_id=int(c.id), title=title, concepts=_clean_concepts(concepts), created_by=int(user.id))
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_topic(db: Session, user, classroom_id: int, topic_id: int, payload: Dict[str, Any]) -> Topic:
    c = membership_service.get_classroom_or_404(db, classroom_id)
    membership_service.require_teacher_member(db, int(user.id), int(c.id))
    t = get_topic_in_class(db, int(c.id), topic_id)

    title = str(payload.get("title") or "").strip()
    if title:
        t.title = title
    if payload.get("concepts") is not None:
        t.concepts = _clean_concepts(payload.get("concepts"))
    db.commit()
    db.refresh(t)
    return t


def delete_topic(db: Session, user, classroom_id: int, topic_id: int) -> int:
    """Delete a topic with its items and their attempts. Returns the number of items removed."""
    c = membership_service.get_classroom_or_404(db, classroom_id)
    membership_service.require_teacher_member(db, int(user.id), int(c.id))
    tid = int(get_topic_in_class(db, int(c.id), topic_id).id)

    item_ids = [int(r[0]) for r in db.query(TopicItem.id).filter(TopicItem.topic_id == tid).all()]
    removed = _delete_items(db, item_ids)
    db.query(Topic).filter(Topic.id == tid).delete(synchronize_session=False)
    db.commit()
    logger.info("Topic %s deleted from class %s (%s items)", tid, classroom_id, removed)
    return removed


# ---------------------------------------------------------------------------
# Topic items
# ---------------------------------------------------------------------------


def _check_type(item_type: Optional[str]) -> str:
    if item_type not in TOPIC_ITEM_TYPES:
        raise ValidationFailed("Invalid type")
    return str(item_type)


def create_item(db: Session, user, classroom_id: int, topic_id: int, payload: Dict[str, Any]) -> TopicItem:
    c = membership_service.get_classroom_or_404(db, classroom_id)
    membership_service.require_teacher_member(db, int(user.id), int(c.id))

    title = str(payload.get("title") or "").strip()
    if not title or not payload.get("type"):
        raise ValidationFailed("Title and type are required")
    item_type = _check_type(payload.get("type"))
    quiz_fields = resolve_quiz_fields(payload, item_type)
    t = get_topic_in_class(db, int(c.id), topic_id)

    row = TopicItem(classroom_id=int(c.id), topic_id=int(t.id), type=item_type, title=title, **quiz_fields)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_item(db: Session, user, classroom_id: int, topic_id: int, item_id: int, payload: Dict[str, Any]) -> TopicItem:
    c = membership_service.get_classroom_or_404(db, classroom_id)
    membership_service.require_teacher_member(db, int(user.id), int(c.id))
    it = get_item_in_class(db, int(c.id), item_id)
    if int(it.topic_id) != int(topic_id):
        raise NotFound("Item not found")

    title = str(payload.get("title") or "").strip() or it.title
    item_type = _check_type(payload.get("type") or it.type)
    quiz_fields = resolve_quiz_fields(payload, item_type, it)

    it.title = title
    it.type = item_type
    for k, v in quiz_fields.items():
        setattr(it, k, v)
    db.commit()
    db.refresh(it)
    return it


def delete_item(db: Session, user, classroom_id: int, topic_id: int, item_id: int) -> None:
    c = membership_service.get_classroom_or_404(db, classroom_id)
    membership_service.require_teacher_member(db, int(user.id), int(c.id))
    it = get_item_in_class(db, int(c.id), item_id)
    if int(it.topic_id) != int(topic_id):
        raise NotFound("Item not found")

    iid = int(it.id)
    _delete_items(db, [iid])
    db.commit()
    logger.info("Item %s deleted from class %s", iid, classroom_id)


def get_practice_item(db: Session, user, classroom_id: int, item_id: int) -> Tuple[TopicItem, Optional[int], str]:
    c = membership_service.get_classroom_or_404(db, classroom_id)
    membership_service.require_member(db, int(user.id), int(c.id))
    it = get_item_in_class(db, int(c.id), item_id)
    if it.type != "practice":
        raise InvalidType("Not a practice item")
    topic_id, topic_title = get_topic_title(db, int(it.topic_id))
    return it, topic_id, topic_title
