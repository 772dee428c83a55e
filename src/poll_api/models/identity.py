"""Identity model: a registered account that may vote once verified."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from poll_api.models.base import Base, UUIDMixin, utcnow


class Identity(Base, UUIDMixin):
    """A registered account.

    Attributes:
        email: Normalized (lowercased, trimmed) email. Unique.
        credential_hash: bcrypt hash of the current password.
        verified: False while registration is pending, True once the code was confirmed.
        verification_code: Pending single-use code for verification or password reset.
        created_at: Registration timestamp.
    """

    __tablename__ = "identities"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    credential_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    verification_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    @property
    def status(self) -> str:
        """``verified`` once the code was confirmed, ``pending`` before."""
        return "verified" if self.verified else "pending"
