# app/core/security.py
"""
Credential primitives: bcrypt password hashing, random token generation
and the session cookie contract.
"""
import logging
import secrets
import string
from functools import lru_cache
from typing import Dict, Optional
from urllib.parse import unquote

import bcrypt
from fastapi import Response

from app.core.config import Settings

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 10

VERIFICATION_TOKEN_LENGTH = 6
VERIFICATION_TOKEN_ALPHABET = string.ascii_uppercase + string.digits

SESSION_TOKEN_LENGTH = 64
SESSION_TOKEN_ALPHABET = string.ascii_letters + string.digits + "_-"


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Return a salted bcrypt hash of `password`."""
    if not password:
        raise ValueError("Password cannot be empty")
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """
    Compare a password with a stored hash using bcrypt's own check.

    Any failure (empty input, malformed hash) is a plain False so callers
    cannot tell which stage rejected the credential.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (ValueError, TypeError) as e:
        logger.warning("Password verification error: %s", e)
        return False


@lru_cache(maxsize=None)
def _dummy_hash(rounds: int) -> str:
    return hash_password(secrets.token_urlsafe(16), rounds)


def burn_password_check(password: str, rounds: int = BCRYPT_ROUNDS) -> None:
    """Run a bcrypt check against a throwaway hash when there is no real one."""
    verify_password(password or "-", _dummy_hash(rounds))


def _random_string(alphabet: str, length: int) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_verification_token() -> str:
    """Six character uppercase alphanumeric email verification code."""
    return _random_string(VERIFICATION_TOKEN_ALPHABET, VERIFICATION_TOKEN_LENGTH)


def generate_session_token() -> str:
    """64 character URL-safe bearer token."""
    return _random_string(SESSION_TOKEN_ALPHABET, SESSION_TOKEN_LENGTH)


def parse_cookies(header: Optional[str]) -> Dict[str, str]:
    """
    Parse a raw Cookie header into a dict.

    Request.cookies does not URL-decode values, so the header is read directly.

    Pairs are `;` separated, values are URL-decoded. Pairs with an empty
    name or value are skipped; this never raises.
    """
    cookies: Dict[str, str] = {}
    if not header:
        return cookies

    for part in header.split(";"):
        name, sep, value = part.strip().partition("=")
        name = name.strip()
        value = value.strip()
        if not sep or not name or not value:
            continue
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        try:
            cookies[name] = unquote(value)
        except (TypeError, ValueError):
            continue
    return cookies


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_max_age_seconds,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
