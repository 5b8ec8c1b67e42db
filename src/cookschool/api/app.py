"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cookschool.access import AuthenticationError
from cookschool.api.dependencies import (
    build_file_storage,
    close_file_storage,
    close_school_store,
    close_services,
    init_file_storage,
    init_school_store,
    init_services,
)
from cookschool.api.models import APIResponse, certificate_to_response
from cookschool.api.routes import (
    admin,
    certificates,
    courses,
    instructors,
    payments,
    recipes,
    registrations,
    students,
)
from cookschool.certificates import AlreadyIssuedError
from cookschool.config import Settings
from cookschool.exceptions import (
    ConflictError,
    CookSchoolError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from cookschool.logging import setup_logging
from cookschool.storage import StorageError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)

# Request parts stripped from validation error locations
_LOCATIONS = ("body", "query", "path", "header", "cookie")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = app.state.settings
    if settings is None:
        settings = Settings.from_env()
        app.state.settings = settings

    # Startup
    setup_logging(settings.log_dir, level=settings.log_level)
    store = init_school_store(settings.db_path)
    storage = init_file_storage(build_file_storage(settings))
    init_services(store, storage, settings)
    logger.info("CookSchool API started (db=%s)", settings.db_path)

    yield
    # Shutdown
    close_services()
    close_file_storage()
    close_school_store()
    logger.info("CookSchool API stopped")


def _error_response(
    status_code: int,
    message: str,
    errors: dict[str, list[str]] | None = None,
    data: object = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=APIResponse[object](
            success=False, message=message, data=data, errors=errors
        ).model_dump(mode="json"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map CookSchool errors onto the response envelope.

    Handlers are resolved by exception class hierarchy, so the concrete
    component errors fall back to the handler of their kind.
    """

    @app.exception_handler(AuthenticationError)
    async def authentication_handler(_request: Request, exc: AuthenticationError) -> JSONResponse:
        return _error_response(status.HTTP_401_UNAUTHORIZED, str(exc))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
        return _error_response(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(AlreadyIssuedError)
    async def already_issued_handler(_request: Request, exc: AlreadyIssuedError) -> JSONResponse:
        data = None
        if exc.certificate is not None:
            data = certificate_to_response(exc.certificate).model_dump(mode="json")
        return _error_response(status.HTTP_400_BAD_REQUEST, str(exc), data=data)

    @app.exception_handler(ConflictError)
    async def conflict_handler(_request: Request, exc: ConflictError) -> JSONResponse:
        logger.warning("Rejected: %s", exc)
        return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(UnauthorizedError)
    async def unauthorized_handler(_request: Request, exc: UnauthorizedError) -> JSONResponse:
        return _error_response(status.HTTP_403_FORBIDDEN, str(exc))

    @app.exception_handler(ValidationError)
    async def validation_handler(_request: Request, exc: ValidationError) -> JSONResponse:
        return _error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc), errors=exc.errors or None
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors: dict[str, list[str]] = {}
        for error in exc.errors():
            location = [str(part) for part in error["loc"] if part not in _LOCATIONS]
            field = ".".join(location) or "request"
            errors.setdefault(field, []).append(error["msg"])
        return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation failed", errors)

    @app.exception_handler(StorageError)
    async def storage_error_handler(_request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure: %s", exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "File storage error")

    @app.exception_handler(CookSchoolError)
    async def cookschool_error_handler(_request: Request, exc: CookSchoolError) -> JSONResponse:
        logger.error("Unhandled error: %s", exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Explicit settings. When None, settings are read from the
            environment at startup.
    """
    app = FastAPI(
        title="CookSchool API",
        description="REST API for CookSchool - Cooking Course Management",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(courses.router, prefix="/api/v1")
    app.include_router(registrations.router, prefix="/api/v1")
    app.include_router(payments.router, prefix="/api/v1")
    app.include_router(certificates.router, prefix="/api/v1")
    app.include_router(recipes.router, prefix="/api/v1")
    app.include_router(students.router, prefix="/api/v1")
    app.include_router(instructors.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app


# Default app instance
app = create_app()
