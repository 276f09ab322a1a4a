from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from resource_booking.models.booking import BookingStatus


PROGRESSION = (BookingStatus.UPCOMING, BookingStatus.ONGOING, BookingStatus.PAST)
TERMINAL_STATUSES = frozenset({BookingStatus.PAST, BookingStatus.CANCELLED})


@dataclass(frozen=True)
class TransitionDecision:
    allowed: bool
    reason: Optional[str] = None


def time_based_status(start_time: datetime, end_time: datetime, now: datetime) -> BookingStatus:
    if now < start_time:
        return BookingStatus.UPCOMING
    if start_time <= now <= end_time:
        return BookingStatus.ONGOING
    return BookingStatus.PAST


def is_transition_allowed(current: BookingStatus, candidate: BookingStatus) -> bool:
    """
    Booking state machine: upcoming -> ongoing -> past, one step at a time,
    with cancelled reachable from any non-terminal state.
    """
    if current in TERMINAL_STATUSES:
        return False
    if candidate == BookingStatus.CANCELLED:
        return True
    return PROGRESSION.index(candidate) == PROGRESSION.index(current) + 1


def resolve_status_transition(booking, requested_status: BookingStatus, now: datetime) -> TransitionDecision:
    """Decide whether an explicit status change requested for a booking may be applied."""
    current = BookingStatus(booking.status)
    requested = BookingStatus(requested_status)

    if not is_transition_allowed(current, requested):
        return TransitionDecision(
            False, f"Cannot change booking status from {current.value} to {requested.value}"
        )

    if requested != BookingStatus.CANCELLED:
        # Manual progression may not run ahead of the clock
        expected = time_based_status(booking.start_time, booking.end_time, now)
        if PROGRESSION.index(expected) < PROGRESSION.index(requested):
            return TransitionDecision(
                False,
                f"Booking cannot be {requested.value} yet, its time window says {expected.value}",
            )

    return TransitionDecision(True)
