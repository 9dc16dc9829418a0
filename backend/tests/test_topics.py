from types import SimpleNamespace

import pytest

from app.core.errors import ValidationFailed
from app.models.quiz_attempt import QuizAttempt
from app.models.topic import TopicItem
from app.services.topic_service import resolve_quiz_fields

API = "/api/v1"


def test_resolve_quiz_fields_clears_everything_for_non_quiz_items():
    out = resolve_quiz_fields(
        {"type": "learning", "quiz_subtype": "mcq", "quiz_options": ["a"], "quiz_answer": "a"},
        "quiz",
    )
    assert out == {"quiz_subtype": None, "quiz_question": "", "quiz_options": [], "quiz_answer": ""}


def test_resolve_quiz_fields_sanitizes_options():
    out = resolve_quiz_fields(
        {"type": "quiz", "quiz_question": "  2+2? ", "quiz_options": ["  4 ", "", None, 5, "4"], "quiz_answer": " 4 "},
        None,
    )
    assert out["quiz_subtype"] == "mcq"
    assert out["quiz_question"] == "2+2?"
    assert out["quiz_options"] == ["4", "5", "4"]
    assert out["quiz_answer"] == "4"


def test_resolve_quiz_fields_falls_back_to_existing_item():
    existing = SimpleNamespace(quiz_subtype="mcq", quiz_question="Q", quiz_options=["x", "y"], quiz_answer="y")
    out = resolve_quiz_fields({"quiz_answer": "x"}, "quiz", existing)
    assert out == {"quiz_subtype": "mcq", "quiz_question": "Q", "quiz_options": ["x", "y"], "quiz_answer": "x"}


def test_resolve_quiz_fields_short_answer_has_no_options():
    out = resolve_quiz_fields({"type": "quiz", "quiz_subtype": "short_answer", "quiz_options": ["a", "b"]}, None)
    assert out["quiz_subtype"] == "short_answer"
    assert out["quiz_options"] == []


def test_resolve_quiz_fields_rejects_unknown_subtype():
    with pytest.raises(ValidationFailed):
        resolve_quiz_fields({"type": "quiz", "quiz_subtype": "essay"}, None)


def test_topic_crud(client, make_class):
    teacher, classroom, _ = make_class(n_students=0)
    base = f"{API}/classes/{classroom['id']}/topics"

    r = client.post(base, json={"title": "Fractions", "concepts": [" halves ", ""]}, headers=teacher["headers"])
    assert r.status_code == 201
    topic = r.json()["data"]["topic"]
    assert topic["concepts"] == ["halves"]

    r = client.put(f"{base}/{topic['id']}", json={"title": "  "}, headers=teacher["headers"])
    assert r.json()["data"]["topic"]["title"] == "Fractions"

    r = client.put(f"{base}/{topic['id']}", json={"title": "Ratios"}, headers=teacher["headers"])
    assert r.json()["data"]["topic"]["title"] == "Ratios"

    r = client.post(base, json={"title": ""}, headers=teacher["headers"])
    assert r.status_code == 400

    r = client.delete(f"{base}/{topic['id']}", headers=teacher["headers"])
    assert r.status_code == 200
    assert client.get(base, headers=teacher["headers"]).json()["data"]["topics"] == []


def test_topics_listed_newest_first_with_items_in_creation_order(client, make_class):
    teacher, classroom, _ = make_class(n_students=0)
    base = f"{API}/classes/{classroom['id']}/topics"
    first = client.post(base, json={"title": "First"}, headers=teacher["headers"]).json()["data"]["topic"]
    second = client.post(base, json={"title": "Second"}, headers=teacher["headers"]).json()["data"]["topic"]
    for title in ("one", "two", "three"):
        client.post(f"{base}/{first['id']}/items", json={"title": title, "type": "learning"}, headers=teacher["headers"])

    topics = client.get(base, headers=teacher["headers"]).json()["data"]["topics"]
    assert [t["id"] for t in topics] == [second["id"], first["id"]]
    assert [i["title"] for i in topics[1]["items"]] == ["one", "two", "three"]
    assert topics[0]["items"] == []


def test_item_requires_title_and_known_type(client, make_class):
    teacher, classroom, _ = make_class(n_students=0)
    base = f"{API}/classes/{classroom['id']}/topics"
    topic = client.post(base, json={"title": "T"}, headers=teacher["headers"]).json()["data"]["topic"]

    r = client.post(f"{base}/{topic['id']}/items", json={"title": "x"}, headers=teacher["headers"])
    assert r.status_code == 400
    r = client.post(f"{base}/{topic['id']}/items", json={"title": "x", "type": "video"}, headers=teacher["headers"])
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


def test_students_never_see_expected_answers(client, make_class, make_quiz_item):
    teacher, classroom, (student,) = make_class()
    make_quiz_item(teacher, classroom, quizOptions=["3", "4"], quizAnswer="4")
    base = f"{API}/classes/{classroom['id']}/topics"

    teacher_view = client.get(base, headers=teacher["headers"]).json()["data"]["topics"][0]["items"][0]
    student_view = client.get(base, headers=student["headers"]).json()["data"]["topics"][0]["items"][0]

    assert teacher_view["quizAnswer"] == "4"
    assert student_view["quizAnswer"] == ""
    assert student_view["quizOptions"] == ["3", "4"]


def test_students_cannot_write_topics(client, make_class):
    _, classroom, (student,) = make_class()
    r = client.post(f"{API}/classes/{classroom['id']}/topics", json={"title": "x"}, headers=student["headers"])
    assert r.status_code == 403


def test_retyping_quiz_item_clears_quiz_fields(client, make_class, make_quiz_item):
    teacher, classroom, _ = make_class(n_students=0)
    topic, item = make_quiz_item(teacher, classroom, quizQuestion="Q?", quizOptions=["a", "b"], quizAnswer="a")
    url = f"{API}/classes/{classroom['id']}/topics/{topic['id']}/items/{item['id']}"

    r = client.put(url, json={"type": "learning"}, headers=teacher["headers"])

    out = r.json()["data"]["item"]
    assert r.status_code == 200
    assert out["type"] == "learning"
    assert out["title"] == item["title"]
    assert out["quizSubtype"] is None
    assert out["quizQuestion"] == ""
    assert out["quizOptions"] == []
    assert out["quizAnswer"] == ""


def test_item_update_must_match_topic(client, make_class, make_quiz_item):
    teacher, classroom, _ = make_class(n_students=0)
    topic, item = make_quiz_item(teacher, classroom, quizOptions=["a", "b"])
    other = client.post(
        f"{API}/classes/{classroom['id']}/topics", json={"title": "Other"}, headers=teacher["headers"]
    ).json()["data"]["topic"]

    url = f"{API}/classes/{classroom['id']}/topics/{other['id']}/items/{item['id']}"
    assert client.put(url, json={"title": "x"}, headers=teacher["headers"]).status_code == 404
    assert client.delete(url, headers=teacher["headers"]).status_code == 404


def test_item_cannot_be_added_to_a_topic_of_another_class(client, make_class):
    teacher_a, class_a, _ = make_class(n_students=0, name="A")
    teacher_b, class_b, _ = make_class(n_students=0, name="B")
    topic_a = client.post(
        f"{API}/classes/{class_a['id']}/topics", json={"title": "A1"}, headers=teacher_a["headers"]
    ).json()["data"]["topic"]

    r = client.post(
        f"{API}/classes/{class_b['id']}/topics/{topic_a['id']}/items",
        json={"title": "x", "type": "learning"},
        headers=teacher_b["headers"],
    )
    assert r.status_code == 404


def test_deleting_topic_removes_items_and_their_attempts(client, db_session, make_class, make_quiz_item):
    teacher, classroom, (student,) = make_class()
    topic, item = make_quiz_item(teacher, classroom, quizOptions=["a", "b"], quizAnswer="b")
    cid = classroom["id"]
    client.put(f"{API}/classes/{cid}/quiz/{item['id']}/attempt", json={"responseText": "a"}, headers=student["headers"])
    assert db_session.query(QuizAttempt).count() == 1

    r = client.delete(f"{API}/classes/{cid}/topics/{topic['id']}", headers=teacher["headers"])

    assert r.status_code == 200
    assert db_session.query(TopicItem).count() == 0
    assert db_session.query(QuizAttempt).count() == 0


def test_deleting_item_removes_its_attempts(client, db_session, make_class, make_quiz_item):
    teacher, classroom, (student,) = make_class()
    topic, item = make_quiz_item(teacher, classroom, quizOptions=["a", "b"])
    cid = classroom["id"]
    client.put(f"{API}/classes/{cid}/quiz/{item['id']}/attempt", json={"responseText": "a"}, headers=student["headers"])

    r = client.delete(f"{API}/classes/{cid}/topics/{topic['id']}/items/{item['id']}", headers=teacher["headers"])

    assert r.status_code == 200
    assert db_session.query(QuizAttempt).count() == 0


def test_practice_item(client, make_class, make_quiz_item):
    teacher, classroom, (student,) = make_class()
    cid = classroom["id"]
    topic, quiz_item = make_quiz_item(teacher, classroom, quizOptions=["a", "b"])
    practice = client.post(
        f"{API}/classes/{cid}/topics/{topic['id']}/items",
        json={"title": "Try it", "type": "practice"},
        headers=teacher["headers"],
    ).json()["data"]["item"]

    r = client.get(f"{API}/classes/{cid}/practice/{practice['id']}", headers=student["headers"])
    assert r.status_code == 200
    assert r.json()["data"]["item"] == {
        "id": practice["id"],
        "title": "Try it",
        "type": "practice",
        "topic": {"id": topic["id"], "title": topic["title"]},
    }

    r = client.get(f"{API}/classes/{cid}/practice/{quiz_item['id']}", headers=student["headers"])
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_TYPE"
