import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.deps import (
    get_current_user,
    get_mailer,
    get_optional_user,
    get_session_token,
    get_settings,
)
from app.core.config import Settings
from app.core.errors import StoreUnavailable, TooManyAttempts, resolve_locale
from app.core.security import clear_session_cookie, set_session_cookie
from app.db.base import get_db
from app.db.models.user import User
from app.schemas.user import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileUpdate,
    RegisterResponse,
    UserCreate,
    UserResponse,
    VerifyEmailRequest,
)
from app.services import auth as auth_service
from app.services.email import Mailer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

ACK = {
    "register": {
        "ar": "تم إنشاء الحساب بنجاح. يرجى التحقق من بريدك الإلكتروني",
        "en": "Account created. Please check your email to verify it",
    },
    "verify": {
        "ar": "تم التحقق من البريد الإلكتروني بنجاح",
        "en": "Email verified successfully",
    },
}


def _ack(key: str, request: Request, settings: Settings) -> str:
    locale = resolve_locale(request.headers.get("accept-language"), settings.default_locale)
    return ACK[key][locale]


@router.get("/me", response_model=Optional[UserResponse])
def me(user: Optional[User] = Depends(get_optional_user)):
    return user


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(
    payload: UserCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: Mailer = Depends(get_mailer),
):
    result = auth_service.register_user(
        db,
        settings,
        mailer,
        email=payload.email,
        password=payload.password,
        name=payload.name,
        schedule=background_tasks.add_task,
    )
    return RegisterResponse(
        message=_ack("register", request, settings),
        user_id=result.user.id,
    )


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    limiter = request.app.state.login_limiter
    client_ip = request.client.host if request.client else "unknown"
    allowed, retry_after = limiter.check(client_ip)
    if not allowed:
        raise TooManyAttempts(retry_after=retry_after)

    result = auth_service.login_user(db, settings, payload.email, payload.password)
    set_session_cookie(response, result.session_token, settings)
    return LoginResponse(user=UserResponse.model_validate(result.user))


@router.post("/verify-email", response_model=MessageResponse)
def verify_email(
    payload: VerifyEmailRequest,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    auth_service.verify_email(db, payload.user_id, payload.token)
    return MessageResponse(message=_ack("verify", request, settings))


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    auth_service.logout_session(db, token)
    clear_session_cookie(response, settings)
    return MessageResponse()


@router.patch("/profile", response_model=UserResponse)
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)

    try:
        db.commit()
        db.refresh(current_user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Profile update failed for user %s: %s", current_user.id, e)
        raise StoreUnavailable(str(e))

    return current_user
