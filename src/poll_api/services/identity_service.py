"""Identity store: registration, verification, credential replacement."""

import uuid

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from poll_api.core.errors import ConflictError, NotFoundError, ValidationError
from poll_api.models.identity import Identity


def normalize_email(email: str) -> str:
    """Lowercase and trim an email address."""
    return email.strip().lower()


async def find_by_email(session: AsyncSession, email: str) -> Identity | None:
    """Return the identity registered under ``email``, if any."""
    result = await session.execute(select(Identity).where(Identity.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def get_identity(session: AsyncSession, identity_id: uuid.UUID) -> Identity | None:
    """Return the identity with the given id, if any."""
    return await session.get(Identity, identity_id)


async def register(
    session: AsyncSession,
    email: str,
    credential_hash: str,
    verification_code: str,
) -> tuple[Identity, bool]:
    """Register a new pending identity, or rotate the code of an abandoned signup.

    Args:
        session: Database session.
        email: Raw email address; normalized before use.
        credential_hash: Hash of the chosen password.
        verification_code: Code the user must echo back to verify.

    Returns:
        Tuple of (identity, created).  ``created`` is False when an existing
        pending identity only had its verification code rotated; its
        credential hash is left untouched.

    Raises:
        ConflictError: If a verified identity already uses this email.
    """
    normalized = normalize_email(email)
    existing = await find_by_email(session, normalized)
    if existing is not None:
        if existing.verified:
            msg = "This email is already registered. Please log in."
            raise ConflictError(msg, code="duplicate_email")
        existing.verification_code = verification_code
        await session.commit()
        logger.info(f"Rotated verification code for pending identity {existing.id}")
        return existing, False

    identity = Identity(
        email=normalized,
        credential_hash=credential_hash,
        verified=False,
        verification_code=verification_code,
    )
    session.add(identity)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        msg = "This email is already registered. Please log in."
        raise ConflictError(msg, code="duplicate_email") from None
    await session.refresh(identity)
    logger.info(f"Registered pending identity {identity.id}")
    return identity, True


async def verify(session: AsyncSession, email: str, code: str) -> Identity:
    """Consume a verification code and mark the identity verified.

    Raises:
        NotFoundError: If no identity uses this email.
        ValidationError: If already verified, or the code does not match.
    """
    identity = await find_by_email(session, email)
    if identity is None:
        msg = "No account is registered with this email"
        raise NotFoundError(msg, code="identity_not_found")
    if identity.verified:
        msg = "This account is already verified"
        raise ValidationError(msg, code="already_verified")
    if identity.verification_code is None or identity.verification_code != str(code).strip():
        msg = "The verification code is incorrect"
        raise ValidationError(msg, code="code_mismatch")

    identity.verified = True
    identity.verification_code = None
    await session.commit()
    logger.info(f"Verified identity {identity.id}")
    return identity


async def set_verification_code(session: AsyncSession, email: str, code: str | None) -> Identity:
    """Replace (or clear) the pending code, invalidating any earlier one.

    Raises:
        NotFoundError: If no identity uses this email.
    """
    identity = await find_by_email(session, email)
    if identity is None:
        msg = "No account is registered with this email"
        raise NotFoundError(msg, code="identity_not_found")
    identity.verification_code = code
    await session.commit()
    return identity


async def update_credential(session: AsyncSession, email: str, new_hash: str) -> Identity:
    """Replace the credential hash unconditionally.

    The caller is responsible for having validated a reset code first.

    Raises:
        NotFoundError: If no identity uses this email.
    """
    identity = await find_by_email(session, email)
    if identity is None:
        msg = "No account is registered with this email"
        raise NotFoundError(msg, code="identity_not_found")
    identity.credential_hash = new_hash
    await session.commit()
    logger.info(f"Replaced credential for identity {identity.id}")
    return identity
