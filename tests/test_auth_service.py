"""Tests for the registration, login, session and verification flows."""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from app.core import errors
from app.db.base import utcnow
from app.db.models.auth import EmailVerificationToken, UserSession
from app.db.models.user import User
from app.services import auth as auth_service
from app.services.email import RecordingMailer


@pytest.fixture()
def clock(monkeypatch):
    """Controllable replacement for auth_service.utcnow."""

    class Clock:
        now = datetime(2026, 1, 1, 12, 0, 0)

        def advance(self, **kwargs):
            self.now = self.now + timedelta(**kwargs)

    c = Clock()
    monkeypatch.setattr(auth_service, "utcnow", lambda: c.now)
    return c


def _register(db_session, settings, mailer, email="alice@example.com", password="password123", name="Alice"):
    return auth_service.register_user(db_session, settings, mailer, email, password, name)


class TestRegistration:
    def test_creates_unverified_user_and_token(self, db_session, settings, mailer, clock):
        result = _register(db_session, settings, mailer)

        user = db_session.query(User).filter(User.id == result.user.id).one()
        assert user.email == "alice@example.com"
        assert user.email_verified is False
        assert user.role == "user"
        assert user.password_hash and user.password_hash != "password123"

        token = db_session.query(EmailVerificationToken).filter_by(user_id=user.id).one()
        assert token.token == result.verification_token
        assert token.expires_at == clock.now + timedelta(hours=24)

    def test_sends_verification_email_with_link(self, db_session, settings, mailer):
        result = _register(db_session, settings, mailer)

        assert len(mailer.outbox) == 1
        to, subject, html, text = mailer.outbox[0]
        assert to == "alice@example.com"
        assert result.verification_token in html
        expected = f"http://frontend.test/verify-email?userId={result.user.id}&token={result.verification_token}"
        assert expected in text

    def test_duplicate_email_rejected(self, db_session, settings, mailer):
        _register(db_session, settings, mailer)
        with pytest.raises(errors.DuplicateEmail):
            _register(db_session, settings, mailer, email="  ALICE@example.com ")

    def test_short_password_rejected_before_store(self, db_session, settings, mailer, monkeypatch):
        def boom(*args, **kwargs):
            raise AssertionError("store must not be touched")

        monkeypatch.setattr(db_session, "query", boom)
        with pytest.raises(errors.WeakPassword):
            _register(db_session, settings, mailer, password="1234567")

    def test_email_failure_does_not_fail_registration(self, db_session, settings):
        result = _register(db_session, settings, RecordingMailer(fail=True))
        assert result.user.id is not None
        assert db_session.query(User).count() == 1

    def test_store_integrity_error_maps_to_duplicate(self, db_session, settings, mailer, monkeypatch):
        _register(db_session, settings, mailer)

        # simulate losing the race: the pre-check sees no user, the insert conflicts
        real_query = db_session.query

        class NoMatch:
            def filter(self, *a, **k):
                return self

            def first(self):
                return None

        calls = {"n": 0}

        def query(*args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                return NoMatch()
            return real_query(*args, **kwargs)

        monkeypatch.setattr(db_session, "query", query)
        with pytest.raises(errors.DuplicateEmail):
            _register(db_session, settings, mailer)

    def test_schedule_defers_email(self, db_session, settings, mailer):
        scheduled = []
        auth_service.register_user(
            db_session, settings, mailer, "bob@example.com", "password123", "Bob",
            schedule=lambda fn, *args: scheduled.append((fn, args)),
        )
        assert mailer.outbox == []
        assert len(scheduled) == 1

        fn, args = scheduled[0]
        fn(*args)
        assert mailer.outbox[0][0] == "bob@example.com"


class TestLogin:
    def test_success_creates_session(self, db_session, settings, mailer, clock):
        reg = _register(db_session, settings, mailer)
        result = auth_service.login_user(db_session, settings, "alice@example.com", "password123")

        assert result.user.id == reg.user.id
        assert len(result.session_token) == 64
        session = db_session.query(UserSession).filter_by(token=result.session_token).one()
        assert session.expires_at == clock.now + timedelta(days=30)
        assert result.user.last_signed_in == clock.now

    def test_wrong_password_and_unknown_email_are_indistinguishable(self, db_session, settings, mailer):
        _register(db_session, settings, mailer)

        with pytest.raises(errors.InvalidCredentials) as wrong_password:
            auth_service.login_user(db_session, settings, "alice@example.com", "wrongpass1")
        with pytest.raises(errors.InvalidCredentials) as unknown_email:
            auth_service.login_user(db_session, settings, "nobody@example.com", "password123")

        assert wrong_password.value.kind == unknown_email.value.kind == "InvalidCredentials"
        for locale in ("ar", "en"):
            assert wrong_password.value.message(locale) == unknown_email.value.message(locale)

    def test_account_without_password_is_invalid_credentials(self, db_session, settings):
        db_session.add(User(email="oauth@example.com", name="OAuth", password_hash=None, login_method="oauth"))
        db_session.commit()

        with pytest.raises(errors.InvalidCredentials) as exc:
            auth_service.login_user(db_session, settings, "oauth@example.com", "password123")

        assert isinstance(exc.value, errors.AccountNotActivated)
        assert exc.value.kind == "InvalidCredentials"
        assert exc.value.message("ar") == errors.InvalidCredentials().message("ar")


    def test_unknown_email_still_runs_a_password_check(self, db_session, settings, monkeypatch):
        checked = []
        monkeypatch.setattr(auth_service, "burn_password_check", lambda password, rounds: checked.append(rounds))

        with pytest.raises(errors.InvalidCredentials):
            auth_service.login_user(db_session, settings, "nobody@example.com", "password123")

        assert checked == [settings.bcrypt_rounds]


class TestSessionResolution:
    def test_missing_or_unknown_token_is_anonymous(self, db_session):
        assert auth_service.resolve_session(db_session, None) is None
        assert auth_service.resolve_session(db_session, "") is None
        assert auth_service.resolve_session(db_session, "x" * 64) is None

    def test_fresh_session_resolves_to_user(self, db_session, settings, mailer, clock):
        reg = _register(db_session, settings, mailer)
        login = auth_service.login_user(db_session, settings, "alice@example.com", "password123")

        user = auth_service.resolve_session(db_session, login.session_token)
        assert user is not None and user.id == reg.user.id

    def test_expired_session_is_anonymous_and_removed(self, db_session, settings, mailer, clock):
        _register(db_session, settings, mailer)
        login = auth_service.login_user(db_session, settings, "alice@example.com", "password123")

        clock.advance(days=30)
        assert auth_service.resolve_session(db_session, login.session_token) is not None

        clock.advance(seconds=1)
        assert auth_service.resolve_session(db_session, login.session_token) is None
        assert db_session.query(UserSession).filter_by(token=login.session_token).first() is None

    def test_store_failure_degrades_to_anonymous(self, db_session, monkeypatch):
        def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(db_session, "query", broken)
        assert auth_service.resolve_session(db_session, "a" * 64) is None


class TestEmailVerification:
    def test_token_works_exactly_once(self, db_session, settings, mailer, clock):
        reg = _register(db_session, settings, mailer)

        assert auth_service.verify_email(db_session, reg.user.id, reg.verification_token) is True
        db_session.refresh(reg.user)
        assert reg.user.email_verified is True

        with pytest.raises(errors.InvalidToken):
            auth_service.verify_email(db_session, reg.user.id, reg.verification_token)

    def test_lowercase_code_accepted(self, db_session, settings, mailer, clock):
        reg = _register(db_session, settings, mailer)
        assert auth_service.verify_email(db_session, reg.user.id, f" {reg.verification_token.lower()} ")

    def test_expired_token_keeps_row(self, db_session, settings, mailer, clock):
        reg = _register(db_session, settings, mailer)
        clock.advance(hours=24, seconds=1)

        with pytest.raises(errors.TokenExpired):
            auth_service.verify_email(db_session, reg.user.id, reg.verification_token)

        assert db_session.query(EmailVerificationToken).filter_by(token=reg.verification_token).one()
        db_session.refresh(reg.user)
        assert reg.user.email_verified is False

    def test_token_of_other_user_is_invalid(self, db_session, settings, mailer, clock):
        alice = _register(db_session, settings, mailer)
        bob = _register(db_session, settings, mailer, email="bob@example.com", name="Bob")

        with pytest.raises(errors.InvalidToken):
            auth_service.verify_email(db_session, bob.user.id, alice.verification_token)

        # still usable by its owner
        assert auth_service.verify_email(db_session, alice.user.id, alice.verification_token)

    def test_unknown_token(self, db_session, settings, mailer):
        reg = _register(db_session, settings, mailer)
        with pytest.raises(errors.InvalidToken):
            auth_service.verify_email(db_session, reg.user.id, "ZZZZZZ" if reg.verification_token != "ZZZZZZ" else "YYYYYY")


class TestLogout:
    def test_logout_deletes_session(self, db_session, settings, mailer):
        _register(db_session, settings, mailer)
        login = auth_service.login_user(db_session, settings, "alice@example.com", "password123")

        assert auth_service.logout_session(db_session, login.session_token) is True
        assert auth_service.resolve_session(db_session, login.session_token) is None

    def test_logout_without_token(self, db_session):
        assert auth_service.logout_session(db_session, None) is False

    def test_logout_store_failure_is_swallowed(self, db_session, monkeypatch):
        def broken(*args, **kwargs):
            raise OperationalError("DELETE", {}, Exception("gone"))

        monkeypatch.setattr(db_session, "query", broken)
        assert auth_service.logout_session(db_session, "a" * 64) is False


def test_clock_is_naive_utc():
    now = utcnow()
    assert now.tzinfo is None
    assert abs(now - datetime.now(timezone.utc).replace(tzinfo=None)) < timedelta(seconds=5)
    assert auth_service.utcnow is utcnow
