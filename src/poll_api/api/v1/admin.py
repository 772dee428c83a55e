"""Admin API endpoints, gated by the X-Admin-Code header."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from poll_api.api.v1.polls import require_poll_id
from poll_api.core.dependencies import get_async_session, require_admin
from poll_api.core.errors import NotFoundError
from poll_api.schemas.poll import (
    AdminResultsResponse,
    DeleteResponse,
    PollCreateRequest,
    PollEnvelope,
    PollResponse,
    PollUpdateRequest,
    ResetResponse,
)
from poll_api.services.ballot_service import reset_ballots
from poll_api.services.poll_service import create_poll, delete_poll, get_poll, list_polls, parse_poll_id, set_active
from poll_api.services.results_service import get_results

admin_router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


def _path_poll_id(poll_id: str) -> uuid.UUID:
    parsed = parse_poll_id(poll_id)
    if parsed is None:
        msg = "Poll does not exist"
        raise NotFoundError(msg, code="poll_not_found")
    return parsed


@admin_router.get("/polls", response_model=list[PollResponse])
async def admin_list_polls(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> list[PollResponse]:
    """List all polls, including closed ones."""
    polls = await list_polls(session)
    return [PollResponse.model_validate(p) for p in polls]


@admin_router.post("/polls", response_model=PollEnvelope, status_code=status.HTTP_201_CREATED)
async def admin_create_poll(
    body: PollCreateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> PollEnvelope:
    """Create a new poll.  New polls are always open."""
    poll = await create_poll(session, body.title, body.question)
    return PollEnvelope(message="Poll created", poll=PollResponse.model_validate(poll))


@admin_router.patch("/polls/{poll_id}", response_model=PollEnvelope)
async def admin_update_poll(
    poll_id: str,
    body: PollUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> PollEnvelope:
    """Open or close a poll."""
    poll = await set_active(session, _path_poll_id(poll_id), body.active)
    return PollEnvelope(message="Poll updated", poll=PollResponse.model_validate(poll))


@admin_router.post("/polls/{poll_id}/reset", response_model=ResetResponse)
async def admin_reset_votes(
    poll_id: str,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ResetResponse:
    """Delete every ballot of a poll."""
    parsed = _path_poll_id(poll_id)
    if await get_poll(session, parsed) is None:
        msg = "Poll does not exist"
        raise NotFoundError(msg, code="poll_not_found")
    deleted = await reset_ballots(session, parsed)
    return ResetResponse(message="Votes reset", poll_id=parsed, deleted=deleted)


@admin_router.delete("/polls/{poll_id}", response_model=DeleteResponse)
async def admin_delete_poll(
    poll_id: str,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> DeleteResponse:
    """Delete a poll together with its ballots."""
    parsed = _path_poll_id(poll_id)
    await delete_poll(session, parsed)
    return DeleteResponse(message="Poll deleted", id=parsed)


@admin_router.get("/results", response_model=AdminResultsResponse)
async def admin_poll_results(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    poll_id: Annotated[str | None, Query()] = None,
) -> AdminResultsResponse:
    """Get the results of a poll together with its title."""
    parsed = require_poll_id(poll_id)
    if parsed is None:
        msg = "Poll does not exist"
        raise NotFoundError(msg, code="poll_not_found")
    results = await get_results(session, parsed)
    return AdminResultsResponse(
        poll_id=results.poll_id,
        poll_title=results.title,
        yes=results.yes,
        no=results.no,
        total=results.total,
        yes_percent=results.yes_percent,
        no_percent=results.no_percent,
    )
