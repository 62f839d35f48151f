"""Tests for the error envelope and transaction rollback behaviour."""
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError, OperationalError

from app.config import settings
from app.database import is_unique_violation, retry_on_serialization_failure, transaction
from app.errors import ConflictError, NotFoundError, PersistenceError, SerializationFailure
from app.main import app
from app.models.event import Event
from app.models.user import User
from app.services import event_service
from tests.conftest import make_user


class _DriverError(Exception):
    """Stands in for a psycopg2 error carrying a SQLSTATE."""

    def __init__(self, pgcode):
        super().__init__(f"SQLSTATE {pgcode}")
        self.pgcode = pgcode


def test_ping(client):
    assert client.get("/api/ping").json() == {"message": "pong"}


def test_app_error_envelope(client):
    _, headers = make_user(client, "Alice")
    resp = client.get("/api/events/12345", headers=headers)
    assert resp.status_code == 404
    assert resp.json() == {"error": True, "message": "event not found"}


def test_unknown_route_uses_envelope(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json()["error"] is True


def test_malformed_json_is_400(client):
    resp = client.post("/api/signup", content="{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["message"].startswith("invalid payload")


def test_non_numeric_path_id_is_400(client):
    _, headers = make_user(client, "Alice")
    assert client.get("/api/events/abc", headers=headers).status_code == 400


def test_unhandled_error_is_generic_500(client, monkeypatch):
    _, headers = make_user(client, "Alice")

    def _boom(*args, **kwargs):
        raise RuntimeError("secret internals")

    monkeypatch.setattr(event_service, "list_organized_events", _boom)
    with TestClient(app, raise_server_exceptions=False) as raw:
        resp = raw.get("/api/events/organized", headers=headers)
    assert resp.status_code == 500
    assert resp.json() == {"error": True, "message": "internal server error"}


def test_store_failure_is_database_error(client, monkeypatch):
    _, headers = make_user(client, "Alice")

    def _down(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(event_service, "list_invited_events", _down)
    with TestClient(app, raise_server_exceptions=False) as raw:
        resp = raw.get("/api/events/invited", headers=headers)
    assert resp.status_code == 500
    assert resp.json() == {"error": True, "message": "database error"}


class TestTransaction:
    def test_commits_on_success(self, db):
        with transaction(db):
            db.add(User(name="Alice", email="alice@example.com", password_hash="x"))
        assert db.query(User).count() == 1

    def test_domain_error_rolls_back(self, db):
        with pytest.raises(NotFoundError):
            with transaction(db):
                db.add(User(name="Alice", email="alice@example.com", password_hash="x"))
                db.flush()
                raise NotFoundError("gone")
        assert db.query(User).count() == 0

    def test_integrity_error_becomes_conflict(self, db):
        db.add(User(name="Alice", email="alice@example.com", password_hash="x"))
        db.commit()
        with pytest.raises(ConflictError) as exc_info:
            with transaction(db, conflict_message="email already registered"):
                db.add(User(name="Other", email="alice@example.com", password_hash="y"))
        assert exc_info.value.message == "email already registered"
        assert db.query(User).count() == 1

    def test_store_error_becomes_persistence_error(self, db):
        with pytest.raises(PersistenceError):
            with transaction(db):
                db.add(User(name="Alice", email="alice@example.com", password_hash="x"))
                db.flush()
                raise OperationalError("INSERT", {}, Exception("disk I/O error"))
        assert db.query(User).count() == 0


    def test_foreign_key_violation_is_not_a_conflict(self, db):
        with pytest.raises(PersistenceError) as exc_info:
            with transaction(db):
                db.add(
                    Event(
                        title="Orphan",
                        location="Nowhere",
                        event_date=date(2025, 6, 1),
                        event_time="18:00:00",
                        created_by=999,
                    )
                )
        assert not isinstance(exc_info.value, ConflictError)
        assert exc_info.value.message == "database error"
        assert db.query(Event).count() == 0

    def test_unique_violation_detected_by_sqlstate(self):
        assert is_unique_violation(IntegrityError("INSERT", {}, _DriverError("23505")))
        assert not is_unique_violation(IntegrityError("INSERT", {}, _DriverError("23503")))
        assert not is_unique_violation(IntegrityError("INSERT", {}, _DriverError("23502")))


class TestSerializationRetry:
    def test_retried_until_commit(self, db):
        attempts = []

        @retry_on_serialization_failure
        def add_user(session):
            attempts.append(1)
            with transaction(session):
                session.add(User(name="Alice", email="alice@example.com", password_hash="x"))
                if len(attempts) == 1:
                    raise OperationalError("COMMIT", {}, _DriverError("40001"))

        add_user(db)
        assert len(attempts) == 2
        assert db.query(User).count() == 1

    def test_gives_up_after_configured_retries(self, db, monkeypatch):
        monkeypatch.setattr(settings, "DB_SERIALIZATION_RETRIES", 2)
        attempts = []

        @retry_on_serialization_failure
        def always_loses(session):
            attempts.append(1)
            with transaction(session):
                raise OperationalError("COMMIT", {}, _DriverError("40001"))

        with pytest.raises(SerializationFailure) as exc_info:
            always_loses(db)
        assert len(attempts) == 3
        assert exc_info.value.status_code == 500

    def test_other_store_errors_not_retried(self, db):
        attempts = []

        @retry_on_serialization_failure
        def disk_full(session):
            attempts.append(1)
            with transaction(session):
                raise OperationalError("INSERT", {}, _DriverError("53100"))

        with pytest.raises(PersistenceError) as exc_info:
            disk_full(db)
        assert not isinstance(exc_info.value, SerializationFailure)
        assert len(attempts) == 1
