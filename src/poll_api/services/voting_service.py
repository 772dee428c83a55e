"""Voting service: validates a vote request and hands the cast to the ledger.

Authentication, choice, and poll-state checks run first so clearly invalid
requests never reach the ledger.  The final word on "already voted" is the
ledger's constraint-checked insert.
"""

import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from poll_api.core.errors import AuthError, ConflictError, NotFoundError, ValidationError
from poll_api.models.ballot import Choice
from poll_api.models.identity import Identity
from poll_api.services.ballot_service import CastOutcome, cast_if_absent, parse_choice
from poll_api.services.poll_service import get_poll, parse_poll_id


@dataclass(frozen=True)
class VoteReceipt:
    """Confirmation of an accepted ballot."""

    poll_id: uuid.UUID
    choice: Choice


async def submit_vote(
    session: AsyncSession,
    identity: Identity | None,
    poll_id: str | uuid.UUID | None,
    choice: str | None,
) -> VoteReceipt:
    """Cast a vote for ``identity`` on a poll.

    Raises:
        AuthError: If the identity is missing or unverified.
        ValidationError: If the choice is invalid or the poll is closed.
        NotFoundError: If the poll does not exist.
        ConflictError: If the identity already voted on this poll.
    """
    if identity is None or not identity.verified:
        msg = "Please log in with a verified account"
        raise AuthError(msg, code="unauthenticated")

    value = parse_choice(choice)

    parsed_id = parse_poll_id(poll_id)
    poll = await get_poll(session, parsed_id) if parsed_id is not None else None
    if poll is None:
        msg = "Poll does not exist"
        raise NotFoundError(msg, code="poll_not_found")
    if not poll.active:
        msg = "This poll is closed"
        raise ValidationError(msg, code="poll_closed")

    outcome = await cast_if_absent(session, poll.id, identity.id, value)
    if outcome is CastOutcome.ALREADY_VOTED:
        msg = "You have already voted in this poll"
        raise ConflictError(msg, code="already_voted")
    return VoteReceipt(poll_id=poll.id, choice=value)
