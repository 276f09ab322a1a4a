from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional
from resource_booking.config import settings
from resource_booking.models.booking import Booking
from resource_booking.utils.intervals import add_buffer_time, overlaps, subtract_buffer_time


@dataclass
class ConflictResult:
    has_conflict: bool
    conflicting: List[Booking] = field(default_factory=list)
    message: Optional[str] = None


def buffered_interval(booking: Booking, buffer_minutes: int):
    return (
        subtract_buffer_time(booking.start_time, buffer_minutes),
        add_buffer_time(booking.end_time, buffer_minutes),
    )


def detect_conflicts(
    start_time: datetime,
    end_time: datetime,
    existing_bookings: Iterable[Booking],
    buffer_minutes: Optional[int] = None,
) -> ConflictResult:
    """
    Return every existing booking whose buffered interval overlaps [start_time, end_time).

    Callers must leave cancelled bookings out of existing_bookings.
    """
    if buffer_minutes is None:
        buffer_minutes = settings.BUFFER_MINUTES

    conflicting = []
    for booking in existing_bookings:
        buffered_start, buffered_end = buffered_interval(booking, buffer_minutes)
        if overlaps(start_time, end_time, buffered_start, buffered_end):
            conflicting.append(booking)

    if not conflicting:
        return ConflictResult(has_conflict=False)

    return ConflictResult(
        has_conflict=True,
        conflicting=conflicting,
        message=(
            f"Conflicts with {len(conflicting)} existing booking(s). "
            f"Note: {buffer_minutes}-minute buffer time is applied before and after each booking."
        ),
    )
