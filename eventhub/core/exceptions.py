"""
Domain error hierarchy.

Every error raised by a domain operation is a DomainError. The JSON API turns
them into `{"detail", "code"}` responses with `status_code`; the HTML pages
render `message` back into the page.
"""
from typing import Optional


class DomainError(Exception):
    """Base class for errors raised by domain operations."""

    code: str = "INTERNAL_SERVER_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(DomainError):
    """The referenced entity does not exist."""

    code = "NOT_FOUND"
    status_code = 404


class ForbiddenError(DomainError):
    """Authenticated, but not the owner of the entity."""

    code = "FORBIDDEN"
    status_code = 403


class UnauthenticatedError(DomainError):
    """The operation requires a signed-in user."""

    code = "UNAUTHORIZED"
    status_code = 401

    def __init__(self, message: str = "You must be signed in to do that"):
        super().__init__(message)


class InvalidRequestError(DomainError):
    """A business rule rejected the request."""

    code = "BAD_REQUEST"
    status_code = 400


class CapacityExceededError(InvalidRequestError):
    def __init__(self, event_id: str, capacity: int):
        super().__init__(
            "Event is at full capacity",
            details={"event_id": event_id, "capacity": capacity},
        )


class DuplicateRSVPError(InvalidRequestError):
    def __init__(self, event_id: str):
        super().__init__(
            "You have already RSVPed to this event",
            details={"event_id": event_id},
        )


class InternalError(DomainError):
    """Persistence or otherwise unexpected failure."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = 500
