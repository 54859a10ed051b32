import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="exam-uploads-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db.init_db import init_db  # noqa: F401  registers every model on Base.metadata
from db.database import Base, get_db
from db.models.teachers import Teacher
from grading.enrollment import create_exam, get_or_create_student
from main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def teacher(db):
    t = Teacher(username="guru", password_hash="not-a-real-hash")
    db.add(t)
    db.commit()
    db.refresh(t)
    return t


@pytest.fixture
def exam(db, teacher):
    return create_exam(db, teacher.id, "Midterm")


@pytest.fixture
def student(db):
    return get_or_create_student(db, "Ada", "ada@example.org", "7A")


def register_and_login(client, username="teacher", password="s3cret"):
    resp = client.post("/api/teacher/register", json={"username": username, "password": password})
    assert resp.status_code == 201, resp.text
    resp = client.post("/api/teacher/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
