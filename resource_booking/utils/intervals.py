from datetime import datetime, timedelta


def add_buffer_time(moment: datetime, minutes: int) -> datetime:
    return moment + timedelta(minutes=minutes)


def subtract_buffer_time(moment: datetime, minutes: int) -> datetime:
    return moment - timedelta(minutes=minutes)


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open overlap test for [start_a, end_a) and [start_b, end_b)."""
    return start_a < end_b and end_a > start_b


def to_reference_time(value: datetime) -> datetime:
    """Convert an aware timestamp to the naive local clock used for all scheduling."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value
