"""Notifier capability: delivers verification and password-reset codes."""

from typing import Protocol


class Notifier(Protocol):
    """Anything able to deliver one-time codes to an email address."""

    async def send_verification_code(self, email: str, code: str) -> None: ...

    async def send_password_reset_code(self, email: str, code: str) -> None: ...
