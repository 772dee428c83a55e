"""Authentication API endpoints.

GET /health, GET /info, POST /auth/register, POST /auth/verify,
POST /auth/login, POST /auth/forgot-password, POST /auth/reset-password,
GET /auth/me.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from poll_api import __version__
from poll_api.core.config import Settings, get_settings
from poll_api.core.dependencies import get_async_session, get_current_identity, get_notifier
from poll_api.lib.notifier import Notifier
from poll_api.models.identity import Identity
from poll_api.schemas.auth import (
    ForgotPasswordRequest,
    IdentityResponse,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    TokenResponse,
    VerifyRequest,
)
from poll_api.schemas.common import MessageResponse
from poll_api.services import auth_service

router = APIRouter(tags=["auth"])

_RESET_REQUESTED = "If an account with this email exists, a reset code has been sent."


@router.get("/health", status_code=200)
async def health_check() -> dict:
    """Health check endpoint (no authentication required)."""
    return {"status": "healthy"}


@router.get("/info", status_code=200)
async def info(
    settings: Annotated[Settings, Depends(get_settings)],
) -> dict:
    """Return application version and environment."""
    return {
        "version": __version__,
        "environment": settings.environment,
    }


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
async def register(
    request: RegisterRequest,
    response: Response,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RegisterResponse:
    """Register with a school email; a verification code is sent by mail.

    Registering again with a pending email resends a fresh code (200).
    """
    identity, created = await auth_service.register_identity(
        session, notifier, settings, request.email, request.password
    )
    if not created:
        response.status_code = status.HTTP_200_OK
        return RegisterResponse(message="A new verification code has been sent to your email", email=identity.email)
    return RegisterResponse(
        message="Registration successful. Please check your email for the verification code.",
        email=identity.email,
    )


@router.post("/auth/verify", response_model=TokenResponse)
async def verify(
    request: VerifyRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenResponse:
    """Confirm the emailed code and receive an access token."""
    return await auth_service.verify_identity(session, settings, request.email, request.code)


@router.post("/auth/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenResponse:
    """Authenticate with email and password."""
    return await auth_service.authenticate(session, notifier, settings, request.email, request.password)


@router.post("/auth/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request: ForgotPasswordRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageResponse:
    """Request a password reset code.  The answer never reveals whether the email exists."""
    await auth_service.request_password_reset(session, notifier, settings, request.email)
    return MessageResponse(message=_RESET_REQUESTED)


@router.post("/auth/reset-password", response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageResponse:
    """Set a new password using the emailed reset code."""
    await auth_service.reset_password(session, settings, request.email, request.code, request.new_password)
    return MessageResponse(message="Password changed. You can log in now.")


@router.get("/auth/me", response_model=IdentityResponse)
async def get_me(
    current_identity: Annotated[Identity, Depends(get_current_identity)],
) -> Identity:
    """Get the currently authenticated identity."""
    return current_identity
