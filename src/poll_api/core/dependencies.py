"""FastAPI dependency injection for database sessions, identities, and admin access."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from poll_api.core.config import Settings, get_settings
from poll_api.core.database import Database
from poll_api.core.errors import AuthError, ConfigurationError
from poll_api.core.security import admin_code_matches
from poll_api.lib.notifier import Notifier, build_notifier
from poll_api.models.identity import Identity
from poll_api.services.auth_service import identity_from_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_database(request: Request) -> Database:
    """Return the Database opened by the application lifespan."""
    database: Database | None = getattr(request.app.state, "database", None)
    if database is None:
        msg = "Database not initialized for this application."
        raise RuntimeError(msg)
    return database


async def get_async_session(
    database: Annotated[Database, Depends(get_database)],
) -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    async with database.session() as session:
        yield session


def get_notifier(settings: Annotated[Settings, Depends(get_settings)]) -> Notifier:
    """Return the notifier selected by the current settings."""
    return build_notifier(settings)


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Identity:
    """Decode the bearer token and return the authenticated identity.

    Raises:
        AuthError: If the header is missing, or the token is invalid or stale.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        msg = "Please log in"
        raise AuthError(msg, code="unauthenticated")
    return await identity_from_token(session, credentials.credentials, settings)


async def require_admin(
    settings: Annotated[Settings, Depends(get_settings)],
    x_admin_code: Annotated[str | None, Header()] = None,
) -> None:
    """Reject the request unless it carries the configured admin code.

    Raises:
        ConfigurationError: When no admin code is configured.
        AuthError: When the header is missing or wrong.
    """
    if not settings.admin_code:
        msg = "Admin code is not configured on the server"
        raise ConfigurationError(msg, code="admin_not_configured")
    if not admin_code_matches(x_admin_code, settings.admin_code):
        msg = "Invalid admin code"
        raise AuthError(msg, code="invalid_admin_code")
