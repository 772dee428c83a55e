"""Results aggregation for a single poll."""

import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from poll_api.core.errors import NotFoundError
from poll_api.services.ballot_service import tally
from poll_api.services.poll_service import get_poll


@dataclass(frozen=True)
class PollResults:
    """Tally plus derived percentages for one poll."""

    poll_id: uuid.UUID
    title: str
    yes: int
    no: int
    total: int
    yes_percent: int
    no_percent: int


def compute_percentages(yes: int, total: int) -> tuple[int, int]:
    """Return ``(yes_percent, no_percent)``.

    Only the yes share is rounded (half up); the no share is its complement,
    so the pair always sums to 100 when any ballot exists.
    """
    if total <= 0:
        return 0, 0
    yes_percent = int((Decimal(yes) * 100 / Decimal(total)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return yes_percent, 100 - yes_percent


async def get_results(session: AsyncSession, poll_id: uuid.UUID) -> PollResults:
    """Aggregate the current ballots of a poll.

    Raises:
        NotFoundError: If the poll does not exist.
    """
    poll = await get_poll(session, poll_id)
    if poll is None:
        msg = "Poll does not exist"
        raise NotFoundError(msg, code="poll_not_found")
    counts = await tally(session, poll_id)
    yes_percent, no_percent = compute_percentages(counts.yes, counts.total)
    return PollResults(
        poll_id=poll.id,
        title=poll.title,
        yes=counts.yes,
        no=counts.no,
        total=counts.total,
        yes_percent=yes_percent,
        no_percent=no_percent,
    )
