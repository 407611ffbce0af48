# slotbook/services/errors.py
"""
Domain error taxonomy.

Routers never build HTTP errors for these themselves; main.py maps each
class to a status code via exception handlers.
"""


class SchedulingError(Exception):
    """Base class for all scheduling errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Bad input, rejected before touching the ledger."""

    status_code = 400


class ConfigurationError(ValidationError):
    """Stored schedule or event type data is malformed (bad HH:MM, duration <= 0...)."""


class InvalidTransition(ValidationError):
    """Booking status change not allowed from its current state."""


class NotFound(SchedulingError):
    status_code = 404


class SlotUnavailable(SchedulingError):
    """The requested interval was taken (or never bookable) at write time."""

    status_code = 409

    def __init__(self, message: str = "This time slot is no longer available"):
        super().__init__(message)


class ConstraintViolation(SchedulingError):
    """User-correctable uniqueness / integrity problem."""

    status_code = 409


class LockTimeout(SchedulingError):
    """Reservation lock not acquired within the bounded wait. Safe to retry."""

    status_code = 503
    retry_after = 1


class NotificationFailure(SchedulingError):
    """Notification could not be published or delivered. Never reaches API callers."""
