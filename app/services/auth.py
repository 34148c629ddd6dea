# app/services/auth.py
"""
Authentication service.

Handles:
- Registration with email verification tokens
- Password login and session issuance
- Session resolution with lazy expiry
- Email verification and logout
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core import errors
from app.core.config import Settings
from app.core.security import (
    burn_password_check,
    generate_session_token,
    generate_verification_token,
    hash_password,
    verify_password,
)
from app.db.base import utcnow
from app.db.models.auth import EmailVerificationToken, UserSession
from app.db.models.user import User
from app.services import email as email_service

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


@dataclass
class RegistrationResult:
    user: User
    verification_token: str


@dataclass
class LoginResult:
    user: User
    session_token: str
    expires_at: datetime


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def verification_url(settings: Settings, user_id: int, token: str) -> str:
    return f"{settings.frontend_url}/verify-email?userId={user_id}&token={token}"


def _rollback(db: Session) -> None:
    try:
        db.rollback()
    except SQLAlchemyError as e:
        logger.error("Rollback failed: %s", e)


def _new_verification_token(db: Session) -> str:
    # the unique constraint is the backstop; this just avoids a known collision
    for _ in range(5):
        token = generate_verification_token()
        if db.query(EmailVerificationToken.id).filter(EmailVerificationToken.token == token).first() is None:
            return token
    return generate_verification_token()


def register_user(
    db: Session,
    settings: Settings,
    mailer: email_service.Mailer,
    email: str,
    password: str,
    name: str,
    schedule: Optional[Callable] = None,
) -> RegistrationResult:
    """
    Create an unverified account and send its verification code.

    `schedule(fn, *args)` defers the email (FastAPI BackgroundTasks.add_task);
    without it the email is sent inline. Either way a delivery failure never
    fails the registration.

    Raises:
        WeakPassword: password shorter than 8 characters
        DuplicateEmail: email already registered
        StoreUnavailable: any other store failure
    """
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise errors.WeakPassword("password too short")

    email = normalize_email(email)

    try:
        if db.query(User.id).filter(User.email == email).first() is not None:
            raise errors.DuplicateEmail(email)

        user = User(
            email=email,
            password_hash=hash_password(password, settings.bcrypt_rounds),
            name=name,
            role="user",
            login_method="email",
            email_verified=False,
        )
        db.add(user)
        db.flush()

        token = _new_verification_token(db)
        db.add(
            EmailVerificationToken(
                user_id=user.id,
                token=token,
                expires_at=utcnow() + timedelta(hours=settings.verification_token_ttl_hours),
            )
        )
        db.commit()
        db.refresh(user)
    except IntegrityError as e:
        # concurrent registration won the race on the unique email
        _rollback(db)
        logger.info("Registration conflict for %s: %s", email, e.orig)
        raise errors.DuplicateEmail(email)
    except SQLAlchemyError as e:
        _rollback(db)
        logger.error("Registration failed for %s: %s", email, e)
        raise errors.StoreUnavailable(str(e))

    logger.info("Registered user %s (id=%s)", email, user.id)

    args = (mailer, user.email, user.name, token, verification_url(settings, user.id, token))
    if schedule is not None:
        schedule(email_service.send_verification_email, *args)
    else:
        email_service.send_verification_email(*args)

    return RegistrationResult(user=user, verification_token=token)


def login_user(db: Session, settings: Settings, email: str, password: str) -> LoginResult:
    """
    Check credentials and open a session.

    Unknown email, an account without a password and a wrong password all
    raise InvalidCredentials with the same message.
    """
    email = normalize_email(email)

    try:
        user = db.query(User).filter(User.email == email).first()
    except SQLAlchemyError as e:
        logger.error("Login lookup failed: %s", e)
        raise errors.StoreUnavailable(str(e))

    if user is None:
        burn_password_check(password, settings.bcrypt_rounds)
        logger.warning("Login attempt for unknown email: %s", email)
        raise errors.InvalidCredentials("unknown email")

    if not user.password_hash:
        burn_password_check(password, settings.bcrypt_rounds)
        logger.warning("Login attempt for account without password: %s", email)
        raise errors.AccountNotActivated("no password set")

    if not verify_password(password, user.password_hash):
        logger.warning("Invalid password for user: %s", email)
        raise errors.InvalidCredentials("bad password")

    now = utcnow()
    token = generate_session_token()
    expires_at = now + timedelta(days=settings.session_ttl_days)

    try:
        db.add(UserSession(user_id=user.id, token=token, expires_at=expires_at))
        user.last_signed_in = now
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        _rollback(db)
        logger.error("Could not create session for %s: %s", email, e)
        raise errors.StoreUnavailable(str(e))

    logger.info("User signed in: %s", email)
    return LoginResult(user=user, session_token=token, expires_at=expires_at)


def resolve_session(db: Session, token: Optional[str]) -> Optional[User]:
    """
    Map a session token to its user, or None for anonymous.

    Expired sessions are deleted on sight. Store failures are logged and
    treated as no session.
    """
    if not token:
        return None

    try:
        session = db.query(UserSession).filter(UserSession.token == token).first()
        if session is None:
            return None

        if utcnow() > session.expires_at:
            user_id = session.user_id
            db.delete(session)
            db.commit()
            logger.info("Removed expired session for user %s", user_id)
            return None

        return session.user
    except SQLAlchemyError as e:
        _rollback(db)
        logger.error("Session lookup failed, treating request as anonymous: %s", e)
        return None


def verify_email(db: Session, user_id: int, token: str) -> bool:
    """
    Consume a verification code for `user_id`.

    Raises:
        InvalidToken: unknown code, or the code belongs to another user
        TokenExpired: code past its expiry (the row is kept)
    """
    token = (token or "").strip().upper()
    if not token:
        raise errors.InvalidToken("empty token")

    try:
        record = db.query(EmailVerificationToken).filter(EmailVerificationToken.token == token).first()
    except SQLAlchemyError as e:
        logger.error("Token lookup failed: %s", e)
        raise errors.StoreUnavailable(str(e))

    if record is None:
        raise errors.InvalidToken("unknown token")

    if utcnow() > record.expires_at:
        raise errors.TokenExpired(f"token for user {record.user_id} expired")

    if record.user_id != user_id:
        logger.warning("Verification token submitted for wrong user %s", user_id)
        raise errors.InvalidToken("token owner mismatch")

    try:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise errors.InvalidToken("user missing")
        user.email_verified = True
        db.delete(record)
        db.commit()
    except SQLAlchemyError as e:
        _rollback(db)
        logger.error("Email verification failed for user %s: %s", user_id, e)
        raise errors.StoreUnavailable(str(e))

    logger.info("Email verified for user %s", user_id)
    return True


def logout_session(db: Session, token: Optional[str]) -> bool:
    """Delete the session row for `token`. Best effort, never raises."""
    if not token:
        return False
    try:
        deleted = db.query(UserSession).filter(UserSession.token == token).delete()
        db.commit()
        return deleted > 0
    except SQLAlchemyError as e:
        _rollback(db)
        logger.error("Logout failed to delete session: %s", e)
        return False
