"""Poll, voting, and results API endpoints.

GET /polls, GET /polls/{poll_id}, POST /vote, GET /results, GET /hasvoted.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from poll_api.core.dependencies import get_async_session, get_current_identity
from poll_api.core.errors import NotFoundError, ValidationError
from poll_api.models.identity import Identity
from poll_api.schemas.poll import (
    HasVotedResponse,
    PollResponse,
    ResultsResponse,
    VoteRequest,
    VoteResponse,
)
from poll_api.services.ballot_service import has_voted
from poll_api.services.poll_service import get_poll, list_polls, parse_poll_id
from poll_api.services.results_service import get_results
from poll_api.services.voting_service import submit_vote

polls_router = APIRouter(tags=["polls"])


def require_poll_id(poll_id: str | None) -> uuid.UUID | None:
    """Reject a missing ``poll_id`` query parameter; malformed ids map to None."""
    if poll_id is None or not poll_id.strip():
        msg = "poll_id is required"
        raise ValidationError(msg, code="invalid_input")
    return parse_poll_id(poll_id)


@polls_router.get("/polls", response_model=list[PollResponse])
async def list_all_polls(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> list[PollResponse]:
    """List all polls, newest first."""
    polls = await list_polls(session)
    return [PollResponse.model_validate(p) for p in polls]


@polls_router.get("/polls/{poll_id}", response_model=PollResponse)
async def get_single_poll(
    poll_id: str,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> PollResponse:
    """Get a single poll."""
    parsed = parse_poll_id(poll_id)
    poll = await get_poll(session, parsed) if parsed is not None else None
    if poll is None:
        msg = "Poll does not exist"
        raise NotFoundError(msg, code="poll_not_found")
    return PollResponse.model_validate(poll)


@polls_router.post("/vote", response_model=VoteResponse, status_code=status.HTTP_201_CREATED)
async def cast_vote(
    body: VoteRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    current_identity: Annotated[Identity, Depends(get_current_identity)],
) -> VoteResponse:
    """Cast a yes/no vote.  Each verified identity may vote once per poll."""
    if not body.poll_id or not body.choice:
        msg = "poll_id and choice are required"
        raise ValidationError(msg, code="invalid_input")
    receipt = await submit_vote(session, current_identity, body.poll_id, body.choice)
    return VoteResponse(message="Vote recorded", poll_id=receipt.poll_id, choice=receipt.choice.value)


@polls_router.get("/results", response_model=ResultsResponse)
async def poll_results(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    poll_id: Annotated[str | None, Query()] = None,
) -> ResultsResponse:
    """Get the aggregated results of a poll (no authentication required)."""
    parsed = require_poll_id(poll_id)
    if parsed is None:
        msg = "Poll does not exist"
        raise NotFoundError(msg, code="poll_not_found")
    results = await get_results(session, parsed)
    return ResultsResponse(
        poll_id=results.poll_id,
        yes=results.yes,
        no=results.no,
        total=results.total,
        yes_percent=results.yes_percent,
        no_percent=results.no_percent,
    )


@polls_router.get("/hasvoted", response_model=HasVotedResponse)
async def has_voted_check(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    current_identity: Annotated[Identity, Depends(get_current_identity)],
    poll_id: Annotated[str | None, Query()] = None,
) -> HasVotedResponse:
    """Report whether the caller already has a ballot on the poll."""
    parsed = require_poll_id(poll_id)
    if parsed is None:
        return HasVotedResponse(has_voted=False)
    return HasVotedResponse(has_voted=await has_voted(session, parsed, current_identity.id))
