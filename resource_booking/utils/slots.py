from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Iterable, Iterator, List, Optional
from resource_booking.config import settings
from resource_booking.models.booking import Booking
from resource_booking.utils.intervals import add_buffer_time, minutes_between, subtract_buffer_time


@dataclass(frozen=True)
class AvailableSlot:
    start: datetime
    end: datetime
    duration: int  # whole minutes


def business_window(day: date, day_start: Optional[time] = None, day_end: Optional[time] = None):
    day_start = day_start or settings.BUSINESS_DAY_START
    day_end = day_end or settings.BUSINESS_DAY_END
    return datetime.combine(day, day_start), datetime.combine(day, day_end)


def iter_available_slots(
    existing_bookings: Iterable[Booking],
    day: date,
    min_duration_minutes: Optional[int] = None,
    buffer_minutes: Optional[int] = None,
    day_start: Optional[time] = None,
    day_end: Optional[time] = None,
) -> Iterator[AvailableSlot]:
    """
    Yield the free gaps of a business day in chronological order.

    Every booking blocks its own interval widened by the buffer on both sides;
    gaps shorter than min_duration_minutes are skipped.
    """
    if min_duration_minutes is None:
        min_duration_minutes = settings.MIN_BOOKING_MINUTES
    if buffer_minutes is None:
        buffer_minutes = settings.BUFFER_MINUTES

    window_start, window_end = business_window(day, day_start, day_end)
    bookings = sorted(
        (booking for booking in existing_bookings if booking.start_time.date() == day),
        key=lambda booking: booking.start_time,
    )

    cursor = window_start
    for booking in bookings:
        buffered_start = min(subtract_buffer_time(booking.start_time, buffer_minutes), window_end)
        if cursor < buffered_start:
            gap = minutes_between(cursor, buffered_start)
            if gap >= min_duration_minutes:
                yield AvailableSlot(start=cursor, end=buffered_start, duration=int(gap))
        cursor = max(cursor, add_buffer_time(booking.end_time, buffer_minutes))

    if cursor < window_end:
        gap = minutes_between(cursor, window_end)
        if gap >= min_duration_minutes:
            yield AvailableSlot(start=cursor, end=window_end, duration=int(gap))


def find_available_slots(existing_bookings, day, min_duration_minutes=None, **policy) -> List[AvailableSlot]:
    return list(iter_available_slots(existing_bookings, day, min_duration_minutes, **policy))
