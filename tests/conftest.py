import os
import pathlib
import tempfile
import uuid

import pytest

# Temporary on-disk SQLite (stable across the TestClient's worker threads)
TEST_DIR = tempfile.mkdtemp(prefix="taskify_tests_")
DB_PATH = pathlib.Path(TEST_DIR) / "test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["APP_ENV"] = "test"

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from taskify_app import deps
from taskify_app.database import Base
from taskify_app.main import app

engine = app.state.engine
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _schema():
    """Fresh schema for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db() -> Session:
    s = TestingSessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def client():
    """TestClient whose requests each get their own testing session."""
    def _get_db():
        s = TestingSessionLocal()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[deps.get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def register(client):
    """Register a user through the API and return ``(user, headers)``."""
    def _make(email: str | None = None, password: str = PASSWORD, name: str = "Tester"):
        email = email or f"user_{uuid.uuid4().hex[:8]}@example.com"
        r = client.post("/auth/register", json={"name": name, "email": email, "password": password})
        assert r.status_code == 201, r.text
        body = r.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}
    return _make


@pytest.fixture()
def api_create(client):
    """Create a task for the given auth headers."""
    def _make(headers, title: str, **fields):
        r = client.post("/tasks", json={"title": title, **fields}, headers=headers)
        assert r.status_code == 201, r.text
        return r.json()
    return _make
