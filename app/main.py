import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.api.routes import admin as admin_router
from app.api.routes import auth
from app.api.routes import bookings as bookings_router
from app.api.routes import notifications as notifications_router
from app.api.routes import providers as providers_router
from app.api.routes import review as review_router
from app.api.routes import services as services_router
from app.core.config import Settings, load_settings, log_settings_snapshot
from app.core.errors import (
    AppError,
    app_error_handler,
    store_error_handler,
    validation_error_handler,
)
from app.core.rate_limit import RateLimiter
from app.db.base import Database
from app.services.email import Mailer, build_mailer

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    settings = settings or load_settings()
    database = database or Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_settings_snapshot(settings)
        database.init()
        yield
        database.dispose()

    app = FastAPI(title="Musaada", lifespan=lifespan)

    app.state.settings = settings
    app.state.database = database
    app.state.mailer = mailer or build_mailer(settings)
    app.state.login_limiter = RateLimiter(
        per_minute=settings.login_rate_limit_per_minute,
        burst=settings.login_rate_limit_burst,
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)

    @app.get("/")
    def root():
        return {"message": "Musaada API running"}

    app.include_router(auth.router, prefix="/api/auth")
    app.include_router(services_router.router)
    app.include_router(providers_router.router)
    app.include_router(bookings_router.router)
    app.include_router(review_router.router)
    app.include_router(notifications_router.router)
    app.include_router(admin_router.router)

    return app


app = create_app()
