"""Authentication flows built on the identity store.

Handles registration with code delivery, verification, login, password
reset, and access-token issuance.
"""

import re
import uuid

from email_validator import EmailNotValidError, validate_email
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from poll_api.core.config import Settings
from poll_api.core.errors import AuthError, ValidationError
from poll_api.core.security import (
    create_access_token,
    decode_token,
    generate_verification_code,
    hash_password,
    verify_password,
)
from poll_api.lib.notifier import Notifier
from poll_api.models.identity import Identity
from poll_api.schemas.auth import IdentityResponse, TokenResponse
from poll_api.services import identity_service

_NAME_PART = r"[a-zäöüß]+"


def validate_school_email(email: str, domain: str | None) -> str:
    """Validate and normalize a registration email.

    With a configured ``domain`` the address must look like
    ``first.last@domain``; otherwise any syntactically valid address passes.

    Raises:
        ValidationError: If the email is not acceptable.
    """
    normalized = identity_service.normalize_email(email)
    if domain is not None:
        pattern = rf"^{_NAME_PART}\.{_NAME_PART}@{re.escape(domain)}$"
        if re.fullmatch(pattern, normalized) is None:
            msg = f"Please use your school email (first.last@{domain})"
            raise ValidationError(msg, code="invalid_email")
        return normalized
    try:
        validate_email(normalized, check_deliverability=False)
    except EmailNotValidError as e:
        msg = f"Invalid email address: {e}"
        raise ValidationError(msg, code="invalid_email") from e
    return normalized


def _check_password(password: str, settings: Settings) -> None:
    if len(password) < settings.password_min_length:
        msg = f"Password must be at least {settings.password_min_length} characters"
        raise ValidationError(msg, code="invalid_input")


def generate_tokens(identity: Identity, settings: Settings) -> TokenResponse:
    """Issue an access token for a verified identity.

    Args:
        identity: The authenticated identity.
        settings: Application settings.

    Returns:
        Token response with the access token and identity summary.
    """
    access_token = create_access_token(
        subject=str(identity.id),
        email=identity.email,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_minutes=settings.jwt_access_token_expire_minutes,
    )
    return TokenResponse(
        access_token=access_token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        identity=IdentityResponse.model_validate(identity),
    )


async def register_identity(
    session: AsyncSession,
    notifier: Notifier,
    settings: Settings,
    email: str,
    password: str,
) -> tuple[Identity, bool]:
    """Register (or re-register a pending) identity and send its code.

    Returns:
        Tuple of (identity, created) as returned by the identity store.

    Raises:
        ValidationError: If the email or password is not acceptable.
        ConflictError: If a verified identity already uses this email.
    """
    normalized = validate_school_email(email, settings.allowed_email_domain)
    _check_password(password, settings)
    code = generate_verification_code(settings.verification_code_length)
    identity, created = await identity_service.register(session, normalized, hash_password(password), code)
    await notifier.send_verification_code(normalized, code)
    return identity, created


async def verify_identity(session: AsyncSession, settings: Settings, email: str, code: str) -> TokenResponse:
    """Confirm a verification code and log the identity in."""
    identity = await identity_service.verify(session, email, code)
    return generate_tokens(identity, settings)


async def authenticate(
    session: AsyncSession,
    notifier: Notifier,
    settings: Settings,
    email: str,
    password: str,
) -> TokenResponse:
    """Check credentials and issue a token.

    A correct password on a pending identity rotates and resends its code
    instead of logging in.

    Raises:
        AuthError: ``invalid_credentials`` (401) or ``not_verified`` (403).
    """
    identity = await identity_service.find_by_email(session, email)
    if identity is None or not verify_password(password, identity.credential_hash):
        msg = "Incorrect email or password"
        raise AuthError(msg, code="invalid_credentials")

    if not identity.verified:
        code = generate_verification_code(settings.verification_code_length)
        await identity_service.set_verification_code(session, identity.email, code)
        await notifier.send_verification_code(identity.email, code)
        msg = "Please verify your email first. A new code has been sent."
        raise AuthError(msg, code="not_verified", status_code=403)

    logger.info(f"Identity {identity.id} logged in")
    return generate_tokens(identity, settings)


async def request_password_reset(
    session: AsyncSession,
    notifier: Notifier,
    settings: Settings,
    email: str,
) -> None:
    """Send a reset code if an identity exists; silently do nothing otherwise."""
    identity = await identity_service.find_by_email(session, email)
    if identity is None:
        logger.info("Password reset requested for unknown email")
        return
    code = generate_verification_code(settings.verification_code_length)
    await identity_service.set_verification_code(session, identity.email, code)
    await notifier.send_password_reset_code(identity.email, code)


async def reset_password(
    session: AsyncSession,
    settings: Settings,
    email: str,
    code: str,
    new_password: str,
) -> None:
    """Replace the password after checking the reset code, then consume the code.

    Raises:
        ValidationError: If the password is too short or the email/code pair is invalid.
    """
    _check_password(new_password, settings)
    identity = await identity_service.find_by_email(session, email)
    if identity is None:
        msg = "Invalid email or code"
        raise ValidationError(msg, code="code_mismatch")
    if identity.verification_code is None or identity.verification_code != str(code).strip():
        msg = "The reset code is incorrect"
        raise ValidationError(msg, code="code_mismatch")

    await identity_service.update_credential(session, identity.email, hash_password(new_password))
    await identity_service.set_verification_code(session, identity.email, None)


async def identity_from_token(session: AsyncSession, token: str, settings: Settings) -> Identity:
    """Resolve a bearer token to its identity.

    Raises:
        AuthError: If the token is invalid, expired, or names an unknown identity.
    """
    try:
        payload = decode_token(token, settings.jwt_secret_key, settings.jwt_algorithm)
    except Exception as e:
        msg = "Invalid or expired token. Please log in again."
        raise AuthError(msg, code="unauthenticated") from e

    if payload.get("type") != "access":
        msg = "Token is not an access token"
        raise AuthError(msg, code="unauthenticated")
    try:
        identity_id = uuid.UUID(str(payload.get("sub")))
    except ValueError as e:
        msg = "Invalid token payload"
        raise AuthError(msg, code="unauthenticated") from e

    identity = await identity_service.get_identity(session, identity_id)
    if identity is None:
        msg = "Account not found"
        raise AuthError(msg, code="unauthenticated")
    return identity
