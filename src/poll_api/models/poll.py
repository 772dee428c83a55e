"""Poll model: an admin-created yes/no question."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from poll_api.models.base import Base, UUIDMixin, utcnow


class Poll(Base, UUIDMixin):
    """A yes/no poll.

    The ``active`` flag is the only gate on accepting new ballots.  ``question``
    is optional descriptive text with no behavioural effect.
    """

    __tablename__ = "polls"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    question: Mapped[str | None] = mapped_column(Text, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )
