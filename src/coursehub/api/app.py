"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coursehub import __version__
from coursehub.access import ForbiddenError, NotAuthenticatedError
from coursehub.api.dependencies import close_store, init_settings, init_store
from coursehub.api.models import ErrorResponse
from coursehub.api.routes import analytics, courses, enrollments, users
from coursehub.config import Settings, load_settings
from coursehub.logging import sanitize_for_log
from coursehub.store import (
    CourseNotFoundError,
    EnrollmentExistsError,
    EnrollmentNotFoundError,
    EnrollmentStateError,
    InvalidFieldError,
    StoreError,
    StoreUnavailableError,
    UserExistsError,
    UserNotFoundError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, error: str | None = None) -> JSONResponse:
    body = ErrorResponse(message=message, error=error).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Translate domain exceptions into status codes and ``{"message": ...}`` bodies."""

    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated_handler(
        request: Request, exc: NotAuthenticatedError
    ) -> JSONResponse:
        logger.info("401 on %s: %s", request.url.path, exc)
        return _error(status.HTTP_401_UNAUTHORIZED, str(exc) or "Authentication required")

    @app.exception_handler(ForbiddenError)
    async def forbidden_handler(request: Request, exc: ForbiddenError) -> JSONResponse:
        logger.warning("403 on %s: %s", request.url.path, exc)
        return _error(status.HTTP_403_FORBIDDEN, str(exc) or "Access denied")

    @app.exception_handler(CourseNotFoundError)
    async def course_not_found_handler(
        _request: Request, _exc: CourseNotFoundError
    ) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "Course not found")

    @app.exception_handler(EnrollmentNotFoundError)
    async def enrollment_not_found_handler(
        _request: Request, _exc: EnrollmentNotFoundError
    ) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "Enrollment not found")

    @app.exception_handler(UserNotFoundError)
    async def user_not_found_handler(_request: Request, _exc: UserNotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "User not found")

    @app.exception_handler(EnrollmentExistsError)
    async def enrollment_exists_handler(
        _request: Request, _exc: EnrollmentExistsError
    ) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, "Already enrolled in this course")

    @app.exception_handler(EnrollmentStateError)
    async def enrollment_state_handler(
        _request: Request, _exc: EnrollmentStateError
    ) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, "Enrollment is not active")

    @app.exception_handler(UserExistsError)
    async def user_exists_handler(_request: Request, _exc: UserExistsError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, "User with this email already exists")

    @app.exception_handler(InvalidFieldError)
    async def invalid_field_handler(_request: Request, exc: InvalidFieldError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message = _validation_message(exc)
        logger.warning("Validation error on %s: %s", request.url.path, message)
        return _error(status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(
        request: Request, exc: StoreUnavailableError
    ) -> JSONResponse:
        logger.error("Store unavailable on %s: %s", request.url.path, exc)
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Service temporarily unavailable")

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.error("Store error on %s: %s", request.url.path, exc)
        detail = None if settings.is_production else str(exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error", detail)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception on %s: %s",
            request.url.path,
            sanitize_for_log(repr(exc)),
            exc_info=True,
        )
        detail = None if settings.is_production else str(exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error", detail)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    # Startup
    init_store(settings.db_path, timeout=settings.store_timeout)
    logger.info("CourseHub API started (db=%s, env=%s)", settings.db_path, settings.env)
    yield
    # Shutdown
    close_store()


def create_app(settings: Settings | None = None, db_path: str | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Runtime settings; read from the environment when omitted.
        db_path: Overrides settings.db_path.
    """
    if settings is None:
        settings = load_settings()
    if db_path is not None:
        settings.db_path = db_path
    init_settings(settings)

    app = FastAPI(
        title="CourseHub API",
        description="Course enrollment for students and instructors",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, settings)

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    app.include_router(courses.router)
    app.include_router(enrollments.router)
    app.include_router(analytics.router)
    app.include_router(users.router)

    return app


# Default app instance
app = create_app()
