"""Notifier that writes codes to the log instead of sending mail."""

from loguru import logger


class ConsoleNotifier:
    """Logs codes; used in development and when SMTP is not configured."""

    async def send_verification_code(self, email: str, code: str) -> None:
        logger.warning(f"Verification code for {email}: {code} (SMTP not configured, not sent)")

    async def send_password_reset_code(self, email: str, code: str) -> None:
        logger.warning(f"Password reset code for {email}: {code} (SMTP not configured, not sent)")
