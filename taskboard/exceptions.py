"""
Failure taxonomy returned by the service layer.

Services never build transport responses themselves; they raise one of the
``ServiceError`` subclasses below and the exception handler registered in
``taskboard.main`` turns it into an HTTP response using ``status_code``.
"""


class ServiceError(Exception):
    """Base class for every failure a service can surface."""

    status_code: int = 500
    kind: str = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    """A referenced entity is absent or soft-deleted."""

    status_code = 404
    kind = "not_found"


class ForbiddenError(ServiceError):
    """Ownership or role check failed, including failed re-authentication."""

    status_code = 403
    kind = "forbidden"


class InvalidArgumentError(ServiceError):
    """The request violates a policy rule unrelated to ownership."""

    status_code = 400
    kind = "invalid_argument"


class InternalError(ServiceError):
    """The entity store or the cache failed."""

    status_code = 500
    kind = "internal"
