"""Poll store: creation, lookup, opening and closing, deletion."""

import uuid

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from poll_api.core.errors import NotFoundError, ValidationError
from poll_api.core.logging import audit_logger
from poll_api.models.ballot import Ballot
from poll_api.models.poll import Poll


def parse_poll_id(value: str | uuid.UUID | None) -> uuid.UUID | None:
    """Coerce a client-supplied poll id; malformed values yield None."""
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except ValueError:
        return None


async def create_poll(session: AsyncSession, title: str, question: str | None = None) -> Poll:
    """Create a new, active poll.

    Args:
        session: Database session.
        title: Poll title; surrounding whitespace is trimmed.
        question: Optional descriptive text.

    Returns:
        The created Poll.

    Raises:
        ValidationError: If the title is empty after trimming.
    """
    cleaned = (title or "").strip()
    if not cleaned:
        msg = "Title is required"
        raise ValidationError(msg, code="invalid_input")
    cleaned_question = question.strip() if question and question.strip() else None

    poll = Poll(title=cleaned, question=cleaned_question, active=True)
    session.add(poll)
    await session.commit()
    await session.refresh(poll)
    logger.info(f"Created poll {poll.id} ({cleaned!r})")
    return poll


async def get_poll(session: AsyncSession, poll_id: uuid.UUID) -> Poll | None:
    """Return the poll with the given id, if any."""
    return await session.get(Poll, poll_id)


async def list_polls(session: AsyncSession) -> list[Poll]:
    """Return all polls, newest first."""
    result = await session.execute(select(Poll).order_by(Poll.created_at.desc(), Poll.id))
    return list(result.scalars().all())


async def _require_poll(session: AsyncSession, poll_id: uuid.UUID) -> Poll:
    poll = await get_poll(session, poll_id)
    if poll is None:
        msg = "Poll does not exist"
        raise NotFoundError(msg, code="poll_not_found")
    return poll


async def set_active(session: AsyncSession, poll_id: uuid.UUID, active: bool) -> Poll:
    """Open or close a poll for new ballots.

    Raises:
        NotFoundError: If the poll does not exist.
    """
    poll = await _require_poll(session, poll_id)
    poll.active = active
    await session.commit()
    await session.refresh(poll)
    audit_logger.bind(poll_id=str(poll_id), active=active).info(f"Poll {poll_id} {'opened' if active else 'closed'}")
    return poll


async def delete_poll(session: AsyncSession, poll_id: uuid.UUID) -> None:
    """Delete a poll and all of its ballots in one transaction.

    Raises:
        NotFoundError: If the poll does not exist.
    """
    poll = await _require_poll(session, poll_id)
    ballots = await session.execute(delete(Ballot).where(Ballot.poll_id == poll_id))
    await session.delete(poll)
    await session.commit()
    audit_logger.bind(poll_id=str(poll_id)).info(f"Deleted poll {poll_id} and {ballots.rowcount} ballots")
