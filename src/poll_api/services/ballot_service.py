"""Ballot ledger, the constraint-enforcing store of votes.

``cast_if_absent`` is a single INSERT committed on its own.  Whether an
identity has already voted is decided by the ``uq_ballots_poll_identity``
constraint rejecting that insert, never by reading first.
"""

import enum
import uuid
from dataclasses import dataclass

from loguru import logger
from sqlalchemy import case, delete, exists, func, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from poll_api.core.errors import NotFoundError, StoreError, ValidationError
from poll_api.core.logging import audit_logger
from poll_api.models.ballot import BALLOT_UNIQUE_CONSTRAINT, Ballot, Choice
from poll_api.models.identity import Identity
from poll_api.models.poll import Poll

_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"


class CastOutcome(enum.StrEnum):
    """Result of an attempted cast."""

    ACCEPTED = "accepted"
    ALREADY_VOTED = "already_voted"


@dataclass(frozen=True)
class Tally:
    """Raw yes/no/total counts for one poll."""

    yes: int
    no: int
    total: int


def _sqlstate(exc: IntegrityError) -> str | None:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _is_unique_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == _UNIQUE_VIOLATION:
        return True
    message = str(exc.orig)
    return BALLOT_UNIQUE_CONSTRAINT in message or "UNIQUE constraint failed" in message


def _is_foreign_key_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == _FOREIGN_KEY_VIOLATION:
        return True
    return "FOREIGN KEY constraint failed" in str(exc.orig)


def parse_choice(choice: str | None) -> Choice:
    """Return the Choice for ``choice``.

    Raises:
        ValidationError: If ``choice`` is not ``yes`` or ``no``.
    """
    try:
        return Choice(choice)
    except ValueError:
        msg = 'choice must be "yes" or "no"'
        raise ValidationError(msg, code="invalid_choice") from None


async def _missing_parent_error(session: AsyncSession, poll_id: uuid.UUID, identity_id: uuid.UUID) -> NotFoundError:
    if await session.get(Poll, poll_id) is None:
        return NotFoundError("Poll does not exist", code="unknown_poll")
    if await session.get(Identity, identity_id) is None:
        return NotFoundError("Identity does not exist", code="unknown_identity")
    return NotFoundError("Poll or identity does not exist", code="unknown_poll")


async def cast_if_absent(
    session: AsyncSession,
    poll_id: uuid.UUID,
    identity_id: uuid.UUID,
    choice: str,
) -> CastOutcome:
    """Atomically record a ballot unless one already exists for the pair.

    Args:
        session: Database session with no pending work.
        poll_id: Poll being voted on.
        identity_id: Voting identity.
        choice: ``yes`` or ``no``.

    Returns:
        ``ACCEPTED`` when the insert committed, ``ALREADY_VOTED`` when the
        uniqueness constraint rejected it.

    Raises:
        ValidationError: If the choice is invalid.
        NotFoundError: If the poll or identity does not exist.
        StoreError: On any other storage failure.
    """
    value = parse_choice(choice)
    stmt = insert(Ballot).values(poll_id=poll_id, identity_id=identity_id, choice=value.value)
    try:
        await session.execute(stmt)
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if _is_unique_violation(exc):
            logger.info(f"Rejected duplicate ballot for poll {poll_id} by identity {identity_id}")
            return CastOutcome.ALREADY_VOTED
        if _is_foreign_key_violation(exc):
            raise await _missing_parent_error(session, poll_id, identity_id) from exc
        logger.error(f"Unexpected integrity error casting ballot on poll {poll_id}: {exc}")
        raise StoreError("Failed to record vote") from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error(f"Storage failure casting ballot on poll {poll_id}: {exc}")
        raise StoreError("Failed to record vote") from exc

    audit_logger.bind(poll_id=str(poll_id), identity_id=str(identity_id)).info(
        f"Accepted ballot for poll {poll_id} by identity {identity_id}"
    )
    return CastOutcome.ACCEPTED


async def has_voted(session: AsyncSession, poll_id: uuid.UUID, identity_id: uuid.UUID) -> bool:
    """Whether a ballot exists for the pair.  For status display only."""
    stmt = select(exists().where(Ballot.poll_id == poll_id, Ballot.identity_id == identity_id))
    result = await session.execute(stmt)
    return bool(result.scalar())


async def reset_ballots(session: AsyncSession, poll_id: uuid.UUID) -> int:
    """Delete every ballot for a poll.

    Returns:
        Number of ballots removed (0 on a repeated reset).
    """
    try:
        result = await session.execute(delete(Ballot).where(Ballot.poll_id == poll_id))
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error(f"Storage failure resetting ballots of poll {poll_id}: {exc}")
        raise StoreError("Failed to reset votes") from exc
    deleted = result.rowcount or 0
    audit_logger.bind(poll_id=str(poll_id), deleted=deleted).info(f"Reset poll {poll_id}: removed {deleted} ballots")
    return deleted


async def tally(session: AsyncSession, poll_id: uuid.UUID) -> Tally:
    """Count ballots for a poll straight from the ledger."""
    stmt = select(
        func.count(Ballot.id),
        func.coalesce(func.sum(case((Ballot.choice == Choice.YES.value, 1), else_=0)), 0),
        func.coalesce(func.sum(case((Ballot.choice == Choice.NO.value, 1), else_=0)), 0),
    ).where(Ballot.poll_id == poll_id)
    result = await session.execute(stmt)
    total, yes, no = result.one()
    return Tally(yes=int(yes), no=int(no), total=int(total))
