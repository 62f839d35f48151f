"""Pytest fixtures: a fresh SQLite database per test, shared by the API and the tests."""
import os

# Must be set before the app reads its settings.
os.environ.setdefault("DATABASE_URL", "memory://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import app.models  # noqa: F401  register every model with Base.metadata
from app.database import Base, build_engine, get_db
from app.main import app

DEFAULT_PASSWORD = "secret123"


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create a fresh file-backed SQLite engine for each test."""
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session for direct service calls and assertions."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database dependency overridden to use the test engine."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: drive the API the way a client would
# ---------------------------------------------------------------------------
def signup(client: TestClient, name: str, email: str, password: str = DEFAULT_PASSWORD) -> dict:
    """Helper: POST /api/signup and return response JSON."""
    resp = client.post("/api/signup", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    return resp.json()


def login(client: TestClient, email: str, password: str = DEFAULT_PASSWORD) -> dict:
    """Helper: POST /api/login and return bearer auth headers."""
    resp = client.post("/api/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def make_user(client: TestClient, name: str, email: str | None = None) -> tuple[dict, dict]:
    """Helper: sign up and log in; returns (user JSON, auth headers)."""
    email = email or f"{name.lower()}@example.com"
    user = signup(client, name, email)
    return user, login(client, email)


def create_event(client: TestClient, headers: dict, **overrides) -> dict:
    """Helper: POST /api/events and return response JSON."""
    payload = {
        "title": "Launch Party",
        "description": "Celebrating the release",
        "location": "Rooftop",
        "eventDate": "2025-06-01",
        "eventTime": "18:30",
    }
    payload.update(overrides)
    resp = client.post("/api/events", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def invite(client: TestClient, headers: dict, event_id: int, email: str, role: str | None = None):
    """Helper: POST /api/events/{id}/invite and return the raw response."""
    body = {"email": email}
    if role is not None:
        body["role"] = role
    return client.post(f"/api/events/{event_id}/invite", json=body, headers=headers)
