"""Business-rule errors raised by the event read/write models.

Every error carries the HTTP status it surfaces as and an actionable message
for the resident or staff member who triggered it. None of them is retried.
"""

from uuid import UUID

from fastapi import HTTPException, status


class EventsError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(EventsError):
    """Referenced event, registration or attendance record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: UUID) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} {entity_id} not found")


class InvalidStateError(EventsError):
    """The requested transition is not legal from the current state."""

    status_code = status.HTTP_409_CONFLICT


class RegistrationClosedError(InvalidStateError):
    """The event does not accept registrations (not published, cancelled or past)."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(EventsError):
    """A uniqueness rule would be violated."""

    status_code = status.HTTP_409_CONFLICT


class CapacityExceededError(EventsError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, max_participants: int, message: str | None = None) -> None:
        self.max_participants = max_participants
        super().__init__(message or f"Event is full ({max_participants} participants)")


class ForbiddenError(EventsError):
    """Caller lacks the staff capability or does not own the record."""

    status_code = status.HTTP_403_FORBIDDEN


class PreconditionError(EventsError):
    """A required prior fact is missing."""

    status_code = status.HTTP_412_PRECONDITION_FAILED


class InvalidEventError(EventsError):
    """Event details fail validation (past date, end before start)."""

    status_code = status.HTTP_400_BAD_REQUEST


def to_http_exception(error: EventsError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)
