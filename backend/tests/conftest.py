import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.db.base  # noqa: F401
from app.core.security import pwd_context
from app.db.base_class import Base
from app.db.session import get_db
from app.main import app


# Hashing at production cost makes every signup slow
pwd_context.update(bcrypt__rounds=4)

API = "/api/v1"


@pytest.fixture()
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def signup(client):
    """Create an account through the API; returns token, user and auth headers."""

    def _signup(role: str = "student", name: str | None = None, password: str = "secret123"):
        name = name or f"{role}-{uuid.uuid4().hex[:8]}"
        r = client.post(f"{API}/auth/signup", json={"name": name, "password": password, "role": role})
        assert r.status_code == 201, r.text
        data = r.json()["data"]
        return {
            "token": data["token"],
            "user": data["user"],
            "headers": {"Authorization": f"Bearer {data['token']}"},
        }

    return _signup


@pytest.fixture()
def make_class(client, signup):
    """Teacher-owned class, optionally with enrolled students."""

    def _make_class(n_students: int = 1, name: str = "Algebra"):
        teacher = signup("teacher")
        r = client.post(f"{API}/classes", json={"name": name}, headers=teacher["headers"])
        assert r.status_code == 201, r.text
        classroom = r.json()["data"]["classroom"]

        students = []
        for _ in range(n_students):
            s = signup("student")
            j = client.post(f"{API}/classes/join", json={"joinCode": classroom["joinCode"]}, headers=s["headers"])
            assert j.status_code == 201, j.text
            students.append(s)
        return teacher, classroom, students

    return _make_class


@pytest.fixture()
def make_quiz_item(client):
    """Topic plus a quiz item in it, created by ``teacher``."""

    def _make_quiz_item(teacher, classroom, **quiz):
        cid = classroom["id"]
        t = client.post(f"{API}/classes/{cid}/topics", json={"title": "Numbers"}, headers=teacher["headers"])
        assert t.status_code == 201, t.text
        topic = t.json()["data"]["topic"]

        body = {"title": quiz.pop("title", "Quick check"), "type": "quiz"}
        body.update(quiz)
        i = client.post(f"{API}/classes/{cid}/topics/{topic['id']}/items", json=body, headers=teacher["headers"])
        assert i.status_code == 201, i.text
        return topic, i.json()["data"]["item"]

    return _make_quiz_item


@pytest.fixture()
def file_session_factory(tmp_path):
    """Sessions on a file-backed SQLite database, each with its own connection.

    Needed where several threads must write at once; the in-memory engine above
    shares a single connection.
    """
    eng = create_engine(
        f"sqlite:///{tmp_path / 'classroom.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=eng)
    yield sessionmaker(bind=eng, autoflush=False, expire_on_commit=False)
    eng.dispose()
