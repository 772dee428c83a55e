"""SMTP notifier built on the standard library ``smtplib``.

Delivery runs in a worker thread via ``asyncio.to_thread``.
"""

import asyncio
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from loguru import logger

_VERIFICATION_SUBJECT = "Your verification code"
_VERIFICATION_BODY = """Hello,

your verification code is:

    {code}

Enter this code on the verification page to finish your registration.
If you did not register, you can ignore this email.
"""

_RESET_SUBJECT = "Your password reset code"
_RESET_BODY = """Hello,

your password reset code is:

    {code}

Enter this code together with your new password to reset it.
If you did not request a reset, you can ignore this email.
"""


class SmtpNotifier:
    """Sends plain-text mails through an authenticated SMTP server."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_address: str,
        from_name: str,
        *,
        use_tls: bool = True,
        timeout: float = 15.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = formataddr((from_name, from_address))
        self.use_tls = use_tls
        self.timeout = timeout

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        return message

    def _send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            server.login(self.username, self.password)
            server.send_message(message)

    async def _deliver(self, to: str, subject: str, body: str) -> None:
        message = self._build_message(to, subject, body)
        await asyncio.to_thread(self._send, message)
        logger.info(f"Sent '{subject}' mail to {to}")

    async def send_verification_code(self, email: str, code: str) -> None:
        await self._deliver(email, _VERIFICATION_SUBJECT, _VERIFICATION_BODY.format(code=code))

    async def send_password_reset_code(self, email: str, code: str) -> None:
        await self._deliver(email, _RESET_SUBJECT, _RESET_BODY.format(code=code))
