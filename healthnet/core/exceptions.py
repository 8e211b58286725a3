"""Domain exceptions raised by services and mapped to HTTP responses."""


class AppException(Exception):
    """
    Base for errors a client can act on.

    Subclasses fix the HTTP status and a default message; the class name is
    what clients see as ``error`` in the response body.
    """

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class BadRequestException(AppException):
    status_code = 400
    default_message = "Bad request"


class UnauthorizedException(AppException):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenException(AppException):
    """The caller is signed in but may not touch this resource."""

    status_code = 403
    default_message = "Forbidden"


class NotFoundException(AppException):
    """Missing, deleted or deactivated resources all look the same."""

    status_code = 404
    default_message = "Resource not found"


class ConflictException(AppException):
    """Duplicate application, Care Team request or similar."""

    status_code = 409
    default_message = "Conflict"


class PayloadTooLargeException(AppException):
    status_code = 413
    default_message = "Payload too large"


class UpstreamServiceException(AppException):
    """The image host or identity provider failed."""

    status_code = 502
    default_message = "Upstream service unavailable"
