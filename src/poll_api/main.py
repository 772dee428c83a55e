"""FastAPI application factory.

Creates the FastAPI app with lifespan management, exception handlers,
and OpenAPI metadata.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from poll_api import __version__
from poll_api.core.config import get_settings
from poll_api.core.database import Database
from poll_api.core.errors import PollApiError, StoreError
from poll_api.core.logging import setup_logging
from poll_api.schemas.common import ErrorResponse


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifecycle: open the database on startup, dispose on shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)
    database = Database.open(settings.database_url, schema=settings.database_schema, echo=False)
    app.state.database = database
    logger.info(f"Poll API {__version__} started ({settings.environment})")

    yield

    await database.dispose()
    app.state.database = None


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Poll API",
        description="School polling: one verified vote per identity per poll, with aggregated results",
        version=__version__,
        lifespan=lifespan,
    )

    # Register exception handlers
    @app.exception_handler(PollApiError)
    async def poll_api_error_handler(request: Request, exc: PollApiError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
        body = ErrorResponse(detail=exc.message, code=exc.code)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(f"{request.method} {request.url.path} storage failure: {exc}")
        body = ErrorResponse(detail="The database is unavailable. Please try again.", code=StoreError.default_code)
        return JSONResponse(status_code=StoreError.status_code, content=body.model_dump(exclude_none=True))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        body = ErrorResponse(detail="Invalid request", code="invalid_input", errors=jsonable_encoder(exc.errors()))
        return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))

    from poll_api.api.router import create_router

    app.include_router(create_router(settings))

    return app
