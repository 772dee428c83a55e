"""Pydantic v2 schemas for polls, votes, and results."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictBool


class PollResponse(BaseModel):
    """A poll as shown to clients."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    title: str
    question: str | None = None
    active: bool
    created_at: datetime


class PollCreateRequest(BaseModel):
    """Request body for creating a poll."""

    title: str = Field(min_length=1, max_length=255)
    question: str | None = Field(default=None, max_length=2000)


class PollUpdateRequest(BaseModel):
    """Request body for opening or closing a poll."""

    active: StrictBool


class PollEnvelope(BaseModel):
    """Admin mutation result wrapping the affected poll."""

    message: str
    poll: PollResponse


class VoteRequest(BaseModel):
    """Request body for casting a vote.

    Both fields are optional at the schema level so the service can report
    missing or unknown values with its own error codes.
    """

    poll_id: str | None = None
    choice: str | None = None


class VoteResponse(BaseModel):
    """Confirmation of an accepted vote."""

    message: str
    poll_id: uuid.UUID
    choice: str


class ResultsResponse(BaseModel):
    """Aggregated results of a poll."""

    poll_id: uuid.UUID
    yes: int
    no: int
    total: int
    yes_percent: int
    no_percent: int


class AdminResultsResponse(ResultsResponse):
    """Results including the poll title, for the admin view."""

    poll_title: str


class HasVotedResponse(BaseModel):
    """Whether the caller has a ballot on the poll."""

    model_config = ConfigDict(populate_by_name=True)

    has_voted: bool = Field(alias="hasVoted")


class ResetResponse(BaseModel):
    """Outcome of an admin vote reset."""

    message: str
    poll_id: uuid.UUID
    deleted: int


class DeleteResponse(BaseModel):
    """Outcome of an admin poll deletion."""

    message: str
    id: uuid.UUID
