# app/core/config.py
"""
Application settings loaded from the environment.

Every value has a development default so the API boots with no
configuration; tests build a Settings object directly and hand it to
create_app().
"""
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./musaada.db"
DEFAULT_FRONTEND_URL = "http://localhost:3000"
SUPPORTED_LOCALES = ("ar", "en")


@dataclass
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    environment: str = "development"
    frontend_url: str = DEFAULT_FRONTEND_URL

    # sessions / tokens
    session_cookie_name: str = "app_session_id"
    session_ttl_days: int = 30
    verification_token_ttl_hours: int = 24
    bcrypt_rounds: int = 10

    # outbound email (empty host -> console mailer)
    email_host: str = ""
    email_port: int = 587
    email_user: str = ""
    email_password: str = ""
    email_from: str = "noreply@musaada.com"

    default_locale: str = "ar"

    # login throttling, 0 disables
    login_rate_limit_per_minute: int = 10
    login_rate_limit_burst: int = 5

    warnings: List[str] = field(default_factory=list)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def session_max_age_seconds(self) -> int:
        return self.session_ttl_days * 24 * 60 * 60


def _int_env(name: str, default: int, warnings: List[str], min_value: Optional[int] = None) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        warnings.append(f"{name}={raw!r} is not an integer, using {default}")
        return default
    if min_value is not None and value < min_value:
        warnings.append(f"{name}={value} is below {min_value}, using {default}")
        return default
    return value


def load_settings() -> Settings:
    """Build Settings from environment variables."""
    warnings: List[str] = []

    locale = os.environ.get("DEFAULT_LOCALE", "ar").strip().lower()
    if locale not in SUPPORTED_LOCALES:
        warnings.append(f"DEFAULT_LOCALE={locale!r} not supported, using 'ar'")
        locale = "ar"

    settings = Settings(
        database_url=os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL),
        environment=os.environ.get("ENVIRONMENT", "development"),
        frontend_url=os.environ.get("FRONTEND_URL", DEFAULT_FRONTEND_URL).rstrip("/"),
        session_cookie_name=os.environ.get("SESSION_COOKIE_NAME", "app_session_id"),
        session_ttl_days=_int_env("SESSION_TTL_DAYS", 30, warnings, min_value=1),
        verification_token_ttl_hours=_int_env("VERIFICATION_TOKEN_TTL_HOURS", 24, warnings, min_value=1),
        bcrypt_rounds=_int_env("BCRYPT_ROUNDS", 10, warnings, min_value=4),
        email_host=os.environ.get("EMAIL_HOST", ""),
        email_port=_int_env("EMAIL_PORT", 587, warnings, min_value=1),
        email_user=os.environ.get("EMAIL_USER", ""),
        email_password=os.environ.get("EMAIL_PASSWORD", ""),
        email_from=os.environ.get("EMAIL_FROM", "noreply@musaada.com"),
        default_locale=locale,
        login_rate_limit_per_minute=_int_env("LOGIN_RATE_LIMIT_PER_MINUTE", 10, warnings, min_value=0),
        login_rate_limit_burst=_int_env("LOGIN_RATE_LIMIT_BURST", 5, warnings, min_value=1),
        warnings=warnings,
    )

    for w in warnings:
        logger.warning("Config: %s", w)

    return settings


def log_settings_snapshot(settings: Settings) -> None:
    """Log the non-secret parts of the configuration at startup."""
    logger.info(
        "Config: environment=%s database=%s frontend=%s email=%s locale=%s login_rate=%s/min",
        settings.environment,
        settings.database_url.split("@")[-1],
        settings.frontend_url,
        settings.email_host or "console",
        settings.default_locale,
        settings.login_rate_limit_per_minute or "off",
    )
