class CatalystError(Exception):
    """Base exception for the remote document API."""


class AuthenticationError(CatalystError):
    """Raised when the refresh-token exchange fails."""


class RemoteApiError(CatalystError):
    """Raised when the document API answers with a non-success status."""

    def __init__(self, message: str, status_code: int, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RateLimitExceededError(RemoteApiError):
    """Raised when the per-minute quota is still exceeded after every cool-down."""
