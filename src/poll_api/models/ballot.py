"""Ballot model: the ledger row enforcing one vote per identity per poll.

The ``uq_ballots_poll_identity`` constraint is the sole arbiter of
"already voted"; the ledger relies on it instead of a prior read.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from poll_api.models.base import Base, UUIDMixin, utcnow

BALLOT_UNIQUE_CONSTRAINT = "uq_ballots_poll_identity"


class Choice(enum.StrEnum):
    """Allowed ballot choices."""

    YES = "yes"
    NO = "no"


class Ballot(Base, UUIDMixin):
    """A single recorded vote.

    Attributes:
        poll_id: FK to polls, cascades on poll deletion.
        identity_id: FK to identities, cascades on identity deletion.
        choice: ``yes`` or ``no``.
        created_at: Cast timestamp.
    """

    __tablename__ = "ballots"

    poll_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("polls.id", ondelete="CASCADE"),
        nullable=False,
    )
    identity_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("identities.id", ondelete="CASCADE"),
        nullable=False,
    )
    choice: Mapped[str] = mapped_column(String(3), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("poll_id", "identity_id", name=BALLOT_UNIQUE_CONSTRAINT),
        CheckConstraint("choice IN ('yes', 'no')", name="ck_ballots_choice"),
        Index("ix_ballots_poll_id", "poll_id"),
        Index("ix_ballots_identity_id", "identity_id"),
    )
