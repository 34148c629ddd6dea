# app/api/deps.py
"""
Request-scoped dependencies: settings, mailer, the current user and the
role guard used by every protected route.
"""
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.errors import Forbidden, NotAuthenticated, NotFound
from app.core.security import parse_cookies
from app.db.base import get_db
from app.db.models.booking import Booking
from app.db.models.user import User
from app.services import auth as auth_service
from app.services.email import Mailer


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_session_token(request: Request) -> Optional[str]:
    settings: Settings = request.app.state.settings
    cookies = parse_cookies(request.headers.get("cookie"))
    return cookies.get(settings.session_cookie_name)


def get_optional_user(
    request: Request,
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Current user, or None for anonymous requests."""
    user = auth_service.resolve_session(db, get_session_token(request))
    request.state.user = user
    return user


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise NotAuthenticated()
    return user


def has_role(user: Optional[User], *roles: str) -> bool:
    return user is not None and user.role in roles


def require_role(*roles: str):
    """
    Factory for role-gated dependencies.

    Usage:
        @router.get("/admin/users")
        def list_users(admin: User = Depends(require_role("admin"))):
            ...
    """
    allowed = frozenset(roles)

    def check_role(user: User = Depends(get_current_user)) -> User:
        if not has_role(user, *allowed):
            raise Forbidden(f"role {user.role} not in {sorted(allowed)}")
        return user

    return check_role


require_admin = require_role("admin")


def get_managed_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Booking:
    """Booking `booking_id`, if the caller is its provider or an admin."""
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise NotFound(f"booking {booking_id}")

    if has_role(user, "admin"):
        return booking
    if booking.provider is not None and booking.provider.user_id == user.id:
        return booking
    raise Forbidden(f"user {user.id} does not manage booking {booking_id}")
