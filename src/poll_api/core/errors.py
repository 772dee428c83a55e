"""Domain error taxonomy.

Every failure carries a machine-readable ``code`` and a human-readable
``message``.  The HTTP status is a class attribute read by the exception
handler in ``poll_api.main``.
"""


class PollApiError(Exception):
    """Base class for all expected domain failures."""

    status_code: int = 500
    default_code: str = "error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(PollApiError):
    """Malformed or semantically invalid client input (always client-fixable)."""

    status_code = 400
    default_code = "invalid_input"


class AuthError(PollApiError):
    """Missing, invalid, or insufficient credentials."""

    status_code = 401
    default_code = "unauthenticated"

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message, code)
        if status_code is not None:
            self.status_code = status_code


class ConflictError(PollApiError):
    """Semantic conflict with existing state (already voted, duplicate email)."""

    status_code = 409
    default_code = "conflict"


class NotFoundError(PollApiError):
    """A referenced poll or identity does not exist."""

    status_code = 404
    default_code = "not_found"


class StoreError(PollApiError):
    """Underlying storage failure; fatal for the current request, retryable by the caller."""

    status_code = 500
    default_code = "store_error"


class ConfigurationError(PollApiError):
    """The server is missing configuration needed to serve the request."""

    status_code = 500
    default_code = "not_configured"
