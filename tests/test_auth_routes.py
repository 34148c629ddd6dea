"""HTTP tests for the /api/auth endpoints."""
from datetime import timedelta

from fastapi.testclient import TestClient

from app.core.config import Settings
from app.db.base import utcnow
from app.db.models.user import User
from app.main import create_app
from app.services import auth as auth_service

ALICE = {"email": "alice@example.com", "password": "password123", "name": "Alice"}


def test_end_to_end_register_verify_login(client, mailer, last_code):
    resp = client.post("/api/auth/register", json=ALICE)
    assert resp.status_code == 201
    body = resp.json()
    assert body["userId"] == 1
    assert body["success"] is True
    assert "verificationToken" not in body

    code = last_code()
    assert len(code) == 6

    resp = client.post("/api/auth/verify-email", json={"userId": 1, "token": code})
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    resp = client.post("/api/auth/login", json={"email": ALICE["email"], "password": ALICE["password"]})
    assert resp.status_code == 200
    assert resp.json()["user"]["email_verified"] is True

    set_cookie = resp.headers["set-cookie"]
    assert set_cookie.startswith("app_session_id=")
    assert "HttpOnly" in set_cookie
    assert "Max-Age=2592000" in set_cookie
    assert "Path=/" in set_cookie
    assert "samesite=lax" in set_cookie.lower()
    assert "Secure" not in set_cookie

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["id"] == 1
    assert me.json()["role"] == "user"


def test_me_is_null_for_anonymous(client):
    resp = client.get("/api/auth/me")
    assert resp.status_code == 200
    assert resp.json() is None


def test_garbage_cookie_is_anonymous(client):
    client.cookies.set("app_session_id", "%%%not-a-token")
    resp = client.get("/api/auth/me")
    assert resp.status_code == 200
    assert resp.json() is None


def test_duplicate_registration(client):
    assert client.post("/api/auth/register", json=ALICE).status_code == 201

    resp = client.post("/api/auth/register", json=ALICE)
    assert resp.status_code == 409
    assert resp.json()["kind"] == "DuplicateEmail"
    assert resp.json()["detail"] == "البريد الإلكتروني مستخدم بالفعل"


def test_short_password_is_weak_password(client, db_session):
    resp = client.post("/api/auth/register", json={**ALICE, "password": "1234567"})
    assert resp.status_code == 400
    assert resp.json() == {"kind": "WeakPassword", "detail": "كلمة المرور يجب أن تكون 8 أحرف على الأقل"}
    assert db_session.query(User).count() == 0

    resp = client.post(
        "/api/auth/register",
        json={**ALICE, "password": "1234567"},
        headers={"Accept-Language": "en"},
    )
    assert resp.json()["detail"] == "Password must be at least 8 characters"


def test_malformed_body_is_bad_request(client):
    resp = client.post("/api/auth/register", json={**ALICE, "email": "not-an-email"})
    assert resp.status_code == 400
    assert resp.json() == {"kind": "BadRequest", "detail": "طلب غير صالح"}

    resp = client.post("/api/auth/login", json={"email": ALICE["email"]})
    assert resp.json()["kind"] == "BadRequest"


def test_login_errors_do_not_reveal_which_check_failed(client):
    client.post("/api/auth/register", json=ALICE)

    wrong = client.post("/api/auth/login", json={"email": ALICE["email"], "password": "not-the-one"})
    unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "password123"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json()
    assert wrong.json()["kind"] == "InvalidCredentials"
    assert "set-cookie" not in wrong.headers


def test_error_messages_follow_accept_language(client):
    resp = client.post(
        "/api/auth/login",
        json={"email": "ghost@example.com", "password": "password123"},
        headers={"Accept-Language": "en-US,en;q=0.9"},
    )
    assert resp.json()["detail"] == "Invalid email or password"


def test_verify_email_twice(client, last_code):
    user_id = client.post("/api/auth/register", json=ALICE).json()["userId"]
    code = last_code()

    assert client.post("/api/auth/verify-email", json={"userId": user_id, "token": code}).status_code == 200

    resp = client.post("/api/auth/verify-email", json={"userId": user_id, "token": code})
    assert resp.status_code == 400
    assert resp.json()["kind"] == "InvalidToken"


def test_verify_email_after_expiry(client, last_code, monkeypatch):
    user_id = client.post("/api/auth/register", json=ALICE).json()["userId"]
    code = last_code()

    later = utcnow() + timedelta(hours=25)
    monkeypatch.setattr(auth_service, "utcnow", lambda: later)

    resp = client.post("/api/auth/verify-email", json={"userId": user_id, "token": code})
    assert resp.status_code == 400
    assert resp.json()["kind"] == "TokenExpired"


def test_session_expires_after_thirty_days(client, register_and_login, monkeypatch):
    register_and_login()
    assert client.get("/api/auth/me").json()["id"] == 1

    later = utcnow() + timedelta(days=30, minutes=1)
    monkeypatch.setattr(auth_service, "utcnow", lambda: later)

    assert client.get("/api/auth/me").json() is None


def test_logout_clears_cookie_and_session(client, register_and_login):
    register_and_login()
    token = client.cookies.get("app_session_id")
    assert token

    resp = client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert 'app_session_id=""' in resp.headers["set-cookie"] or "Max-Age=0" in resp.headers["set-cookie"]

    # the old token no longer authenticates even if replayed
    client.cookies.set("app_session_id", token)
    assert client.get("/api/auth/me").json() is None


def test_logout_without_cookie(client):
    resp = client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert "app_session_id" in resp.headers["set-cookie"]


def test_registration_succeeds_when_email_fails(client, mailer):
    mailer.fail = True
    resp = client.post("/api/auth/register", json=ALICE)
    assert resp.status_code == 201
    assert mailer.outbox == []


def test_update_profile(client, register_and_login):
    register_and_login()
    resp = client.patch("/api/auth/profile", json={"city": "الرياض", "phone": "0500000000"})
    assert resp.status_code == 200
    assert resp.json()["city"] == "الرياض"
    assert resp.json()["name"] == "Alice"


def test_update_profile_requires_login(client):
    resp = client.patch("/api/auth/profile", json={"city": "Jeddah"})
    assert resp.status_code == 401
    assert resp.json()["kind"] == "NotAuthenticated"


def test_secure_cookie_in_production(database, mailer):
    settings = Settings(
        database_url="sqlite:///:memory:",
        environment="production",
        bcrypt_rounds=4,
        login_rate_limit_per_minute=0,
    )
    app = create_app(settings=settings, database=database, mailer=mailer)
    with TestClient(app) as c:
        c.post("/api/auth/register", json=ALICE)
        resp = c.post("/api/auth/login", json={"email": ALICE["email"], "password": ALICE["password"]})
        assert "Secure" in resp.headers["set-cookie"]


def test_login_is_rate_limited(database, mailer):
    settings = Settings(
        database_url="sqlite:///:memory:",
        environment="test",
        bcrypt_rounds=4,
        login_rate_limit_per_minute=1,
        login_rate_limit_burst=2,
    )
    app = create_app(settings=settings, database=database, mailer=mailer)
    with TestClient(app) as c:
        bad = {"email": "ghost@example.com", "password": "password123"}
        assert c.post("/api/auth/login", json=bad).status_code == 401
        assert c.post("/api/auth/login", json=bad).status_code == 401

        resp = c.post("/api/auth/login", json=bad)
        assert resp.status_code == 429
        assert resp.json()["kind"] == "TooManyAttempts"
        assert int(resp.headers["retry-after"]) >= 1
