"""Shared pytest fixtures: an app wired to an in-memory store and a recording mailer."""

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.db.base import Database
from app.main import create_app
from app.services.email import RecordingMailer


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        database_url="sqlite:///:memory:",
        environment="test",
        frontend_url="http://frontend.test",
        bcrypt_rounds=4,
        login_rate_limit_per_minute=0,
    )


@pytest.fixture()
def database(settings):
    db = Database(settings.database_url)
    db.init()
    yield db
    db.dispose()


@pytest.fixture()
def db_session(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture()
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture()
def app(settings, database, mailer):
    return create_app(settings=settings, database=database, mailer=mailer)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def register_and_login(client, mailer):
    """Register, verify and sign in a user; returns the user id."""

    def _do(email="alice@example.com", password="password123", name="Alice"):
        resp = client.post("/api/auth/register", json={"email": email, "password": password, "name": name})
        assert resp.status_code == 201, resp.text
        user_id = resp.json()["userId"]
        code = verification_code(mailer)
        client.post("/api/auth/verify-email", json={"userId": user_id, "token": code})
        resp = client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return user_id

    return _do


def verification_code(mailer: RecordingMailer) -> str:
    """Pull the code out of the last verification email's plain-text body."""
    text = mailer.outbox[-1][3]
    return text.rsplit("token=", 1)[-1].strip()


@pytest.fixture()
def last_code(mailer):
    return lambda: verification_code(mailer)
