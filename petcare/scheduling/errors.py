"""Error taxonomy raised by the scheduling engine."""

from __future__ import annotations


class SchedulingError(RuntimeError):
    """Base class for every error the scheduling engine raises."""

    status_code = 500
    retryable = False


class ValidationError(SchedulingError):
    """Raised when incoming data fails validation."""

    status_code = 400


class InvalidTransitionError(ValidationError):
    """Raised when a reservation cannot move to the requested status."""

    status_code = 409

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Cannot change reservation status from {current} to {requested}")
        self.current = current
        self.requested = requested


class RoomUnavailableError(SchedulingError):
    """Raised when the requested room is taken or no longer bookable."""

    status_code = 409
    retryable = True

    def __init__(self, message: str, conflicting_reservation_id: int | None = None) -> None:
        super().__init__(message)
        self.conflicting_reservation_id = conflicting_reservation_id


class CapacityExceededError(SchedulingError):
    """Raised when the daily booking cap for a tenant has been reached."""

    status_code = 409
    retryable = True


class ForbiddenError(SchedulingError):
    """Raised when a request touches data owned by another tenant."""

    status_code = 403


class NotFoundError(SchedulingError):
    """Raised when a referenced record does not exist for the tenant."""

    status_code = 404


class LockTimeoutError(SchedulingError):
    """Raised when the write lock could not be acquired in time.

    Nothing has been committed when this is raised.
    """

    status_code = 503
    retryable = True
