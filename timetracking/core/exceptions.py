class TimeTrackingError(Exception):
    """Base exception for time tracking rule violations."""


class NotFoundError(TimeTrackingError):
    """No month tracking or day entry exists for the requested operation."""


class InvalidStateError(TimeTrackingError):
    """Operation attempted against an entry in the wrong state."""


class ConstraintViolationError(TimeTrackingError):
    """Storage rejected a duplicate (user, month, year) month document."""
