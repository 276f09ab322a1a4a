from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from resource_booking.config import settings
from resource_booking.utils.intervals import minutes_between


@dataclass(frozen=True)
class DurationCheck:
    valid: bool
    message: Optional[str] = None


def validate_booking_duration(
    start_time: datetime,
    end_time: datetime,
    now: datetime,
    min_minutes: Optional[int] = None,
    max_hours: Optional[int] = None,
) -> DurationCheck:
    """
    Check a candidate booking window against the lead-time and length policy.
    Rules are applied in order and the first failing one is reported.
    """
    if min_minutes is None:
        min_minutes = settings.MIN_BOOKING_MINUTES
    if max_hours is None:
        max_hours = settings.MAX_BOOKING_HOURS

    if start_time < now:
        return DurationCheck(False, "Start time must be in the future")

    if end_time <= start_time:
        return DurationCheck(False, "End time must be after start time")

    duration_minutes = minutes_between(start_time, end_time)
    if duration_minutes < min_minutes:
        return DurationCheck(False, f"Minimum booking duration is {min_minutes} minutes")

    if duration_minutes / 60 > max_hours:
        return DurationCheck(False, f"Maximum booking duration is {max_hours} hours")

    return DurationCheck(True)
