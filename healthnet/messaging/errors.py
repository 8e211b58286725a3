"""Errors raised by the messaging client."""


class ClientError(Exception):
    """A remote call failed: network error, timeout, or error response."""

    def __init__(self, message: str, status_code: int | None = None):
        """Initialize error with message and optional HTTP status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class SessionExpired(ClientError):
    """The session is missing or no longer accepted by the server."""

    def __init__(self, message: str = "Session expired, please sign in again"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ConversationUnavailable(ClientError):
    """The conversation with another user could not be found or created."""
