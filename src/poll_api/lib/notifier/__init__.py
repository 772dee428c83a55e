"""Code delivery for registration and password reset.

Public API:
    - Notifier: protocol implemented by all notifiers
    - ConsoleNotifier: logs codes (no mail server needed)
    - SmtpNotifier: sends mail through SMTP
    - build_notifier: choose an implementation from settings
"""

from poll_api.core.config import Settings
from poll_api.lib.notifier.base import Notifier
from poll_api.lib.notifier.console import ConsoleNotifier
from poll_api.lib.notifier.smtp import SmtpNotifier


def build_notifier(settings: Settings) -> Notifier:
    """Return an SMTP notifier when SMTP is fully configured, else a console notifier."""
    if not settings.smtp_configured:
        return ConsoleNotifier()
    return SmtpNotifier(
        host=settings.smtp_host,  # type: ignore[arg-type]
        port=settings.smtp_port,
        username=settings.smtp_username,  # type: ignore[arg-type]
        password=settings.smtp_password,  # type: ignore[arg-type]
        from_address=settings.smtp_from_address,
        from_name=settings.smtp_from_name,
        use_tls=settings.smtp_use_tls,
        timeout=settings.smtp_timeout,
    )


__all__ = [
    "ConsoleNotifier",
    "Notifier",
    "SmtpNotifier",
    "build_notifier",
]
