# app/core/errors.py
"""
Application error taxonomy.

Every error carries a stable `kind` and an HTTP status. The text shown to
the user comes from MESSAGES, keyed by kind and locale (Arabic first).
"""
import logging
from typing import Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


MESSAGES = {
    "DuplicateEmail": {
        "ar": "البريد الإلكتروني مستخدم بالفعل",
        "en": "Email is already registered",
    },
    "InvalidCredentials": {
        "ar": "البريد الإلكتروني أو كلمة المرور غير صحيحة",
        "en": "Invalid email or password",
    },
    "InvalidToken": {
        "ar": "رمز التحقق غير صحيح",
        "en": "Invalid verification code",
    },
    "TokenExpired": {
        "ar": "انتهت صلاحية رمز التحقق",
        "en": "Verification code has expired",
    },
    "WeakPassword": {
        "ar": "كلمة المرور يجب أن تكون 8 أحرف على الأقل",
        "en": "Password must be at least 8 characters",
    },
    "StoreUnavailable": {
        "ar": "الخدمة غير متاحة حالياً، يرجى المحاولة لاحقاً",
        "en": "Service temporarily unavailable, please try again later",
    },
    "TooManyAttempts": {
        "ar": "محاولات كثيرة، يرجى المحاولة لاحقاً",
        "en": "Too many attempts, please try again later",
    },
    "NotAuthenticated": {
        "ar": "يرجى تسجيل الدخول",
        "en": "Please sign in",
    },
    "Forbidden": {
        "ar": "ليس لديك صلاحية لهذا الإجراء",
        "en": "You are not allowed to perform this action",
    },
    "NotFound": {
        "ar": "العنصر غير موجود",
        "en": "Not found",
    },
    "Conflict": {
        "ar": "العملية تتعارض مع الحالة الحالية",
        "en": "Operation conflicts with the current state",
    },
    "BadRequest": {
        "ar": "طلب غير صالح",
        "en": "Invalid request",
    },
}


def resolve_locale(accept_language: Optional[str], default: str = "ar") -> str:
    if not accept_language:
        return default
    first = accept_language.split(",")[0].strip().lower()
    if first.startswith("en"):
        return "en"
    if first.startswith("ar"):
        return "ar"
    return default


class AppError(Exception):
    """Base error surfaced to API callers as (kind, localized message)."""

    kind = "BadRequest"
    status_code = 400

    def __init__(self, detail: Optional[str] = None):
        # detail is for logs only, never rendered
        super().__init__(detail or self.kind)
        self.detail = detail

    def message(self, locale: str = "ar") -> str:
        texts = MESSAGES.get(self.kind, MESSAGES["BadRequest"])
        return texts.get(locale) or texts["ar"]


class DuplicateEmail(AppError):
    kind = "DuplicateEmail"
    status_code = 409


class InvalidCredentials(AppError):
    kind = "InvalidCredentials"
    status_code = 401


class AccountNotActivated(InvalidCredentials):
    # Account has no password (external identity only). Reported to the
    # caller exactly like InvalidCredentials.
    pass


class InvalidToken(AppError):
    kind = "InvalidToken"
    status_code = 400


class TokenExpired(AppError):
    kind = "TokenExpired"
    status_code = 400


class WeakPassword(AppError):
    kind = "WeakPassword"
    status_code = 400


class StoreUnavailable(AppError):
    kind = "StoreUnavailable"
    status_code = 503


class TooManyAttempts(AppError):
    kind = "TooManyAttempts"
    status_code = 429

    def __init__(self, retry_after: float = 0.0, detail: Optional[str] = None):
        super().__init__(detail)
        self.retry_after = retry_after


class NotAuthenticated(AppError):
    kind = "NotAuthenticated"
    status_code = 401


class Forbidden(AppError):
    kind = "Forbidden"
    status_code = 403


class NotFound(AppError):
    kind = "NotFound"
    status_code = 404


class Conflict(AppError):
    kind = "Conflict"
    status_code = 409


class BadRequest(AppError):
    kind = "BadRequest"
    status_code = 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    default = getattr(request.app.state, "settings", None)
    default_locale = default.default_locale if default else "ar"
    locale = resolve_locale(request.headers.get("accept-language"), default_locale)

    headers = None
    if isinstance(exc, TooManyAttempts):
        headers = {"Retry-After": str(max(1, int(exc.retry_after + 0.999)))}

    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": exc.kind, "detail": exc.message(locale)},
        headers=headers,
    )


def _is_short_password(error: dict) -> bool:
    loc = error.get("loc") or ()
    return bool(loc) and loc[-1] == "password" and error.get("type") == "string_too_short"


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if any(_is_short_password(e) for e in errors):
        error: AppError = WeakPassword("password too short")
    else:
        error = BadRequest("; ".join(f"{'.'.join(map(str, e.get('loc', ())))}: {e.get('msg')}" for e in errors))
    logger.info("Rejected %s %s: %s", request.method, request.url.path, error.detail)
    return await app_error_handler(request, error)


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return await app_error_handler(request, StoreUnavailable(str(exc)))
