"""
Exceptions raised by the booking engine.
Raised in the services and rendered by the handler registered in main.py.
"""
from fastapi import status


class BookingError(Exception):
    """Base exception for all booking engine errors."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InvalidInput(BookingError):
    """Raised when a request carries missing or malformed values."""


class PolicyViolation(BookingError):
    """Raised when a well-formed request breaks a duration, conflict or uniqueness rule."""


class NotFound(BookingError):
    """Raised when the referenced resource or booking does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class IllegalTransition(BookingError):
    """Raised when a status change is not permitted by the booking state machine."""

    status_code = status.HTTP_409_CONFLICT
