import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from types import SimpleNamespace
from typing import Dict, List, Optional
from resource_booking.config import settings
from resource_booking.models.booking import Booking, BookingStatus
from resource_booking.store import BookingStore
from resource_booking.utils.conflicts import detect_conflicts
from resource_booking.utils.errors import IllegalTransition, InvalidInput, NotFound, PolicyViolation
from resource_booking.utils.intervals import add_buffer_time, subtract_buffer_time
from resource_booking.utils.scheduler import booking_stats, run_reconciliation_pass  # noqa: F401
from resource_booking.utils.slots import AvailableSlot, find_available_slots
from resource_booking.utils.status import resolve_status_transition
from resource_booking.utils.validation_helpers import validate_booking_duration

logger = logging.getLogger(__name__)


@dataclass
class ValidationOutcome:
    valid: bool
    reason: Optional[str] = None
    conflicting: List[Booking] = field(default_factory=list)


def get_resource_or_404(store: BookingStore, resource_id: int):
    resource = store.find_resource_by_id(resource_id)
    if not resource:
        logger.error(f"Resource not found: {resource_id}")
        raise NotFound("Resource not found")
    return resource


def get_booking_or_404(store: BookingStore, booking_id: int) -> Booking:
    booking = store.find_booking_by_id(booking_id)
    if not booking:
        logger.error(f"Booking not found: {booking_id}")
        raise NotFound("Booking not found")
    return booking


def validate_and_detect_conflicts(
    store: BookingStore,
    resource_id: int,
    start_time: datetime,
    end_time: datetime,
    now: Optional[datetime] = None,
    exclude_booking_id: Optional[int] = None,
) -> ValidationOutcome:
    """
    Run the duration policy and the buffered conflict check for a candidate booking.
    Raises NotFound when the resource does not exist.
    """
    now = now or datetime.now()
    get_resource_or_404(store, resource_id)

    duration = validate_booking_duration(start_time, end_time, now)
    if not duration.valid:
        return ValidationOutcome(False, duration.message)

    # Coarse prefilter in the store, authoritative buffered test in detect_conflicts
    existing = store.find_bookings_overlapping_window(
        resource_id,
        subtract_buffer_time(start_time, settings.BUFFER_MINUTES),
        add_buffer_time(end_time, settings.BUFFER_MINUTES),
        exclude_cancelled=True,
        exclude_booking_id=exclude_booking_id,
    )
    conflicts = detect_conflicts(start_time, end_time, existing)
    if conflicts.has_conflict:
        return ValidationOutcome(False, conflicts.message, conflicts.conflicting)

    return ValidationOutcome(True)


def compute_available_slots(
    store: BookingStore,
    resource_id: int,
    day: date,
    min_duration_minutes: Optional[int] = None,
) -> List[AvailableSlot]:
    if min_duration_minutes is None:
        min_duration_minutes = settings.MIN_BOOKING_MINUTES
    if min_duration_minutes <= 0:
        raise InvalidInput("Minimum duration must be positive")

    get_resource_or_404(store, resource_id)
    bookings = store.find_bookings_on_day(resource_id, day, exclude_cancelled=True)
    slots = find_available_slots(bookings, day, min_duration_minutes)
    logger.debug(f"Found {len(slots)} available slots for resource_id: {resource_id} on {day}")
    return slots


def create_booking(
    store: BookingStore,
    resource_id: int,
    start_time: datetime,
    end_time: datetime,
    requested_by: str,
    now: Optional[datetime] = None,
) -> Booking:
    if not requested_by or not requested_by.strip():
        raise InvalidInput("Requested by is required")

    logger.debug(f"Creating booking for {requested_by}, resource_id: {resource_id}, {start_time} to {end_time}")
    with store.reservation_lock(resource_id):
        outcome = validate_and_detect_conflicts(store, resource_id, start_time, end_time, now)
        if not outcome.valid:
            logger.error(f"Booking rejected for resource_id: {resource_id}: {outcome.reason}")
            raise PolicyViolation(outcome.reason)

        booking = store.create_booking(
            resource_id=resource_id,
            start_time=start_time,
            end_time=end_time,
            requested_by=requested_by.strip(),
            status=BookingStatus.UPCOMING,
        )
    logger.debug(f"Created booking: {booking.id}")
    return booking


def change_status(store: BookingStore, booking: Booking, requested_status: BookingStatus, now: datetime) -> Booking:
    decision = resolve_status_transition(booking, requested_status, now)
    if not decision.allowed:
        logger.error(f"Illegal transition for booking {booking.id}: {decision.reason}")
        raise IllegalTransition(decision.reason)

    updated = store.update_booking_status(booking.id, requested_status, now, expected_status=booking.status)
    if updated is None:
        raise IllegalTransition("Booking status was changed concurrently, please retry")
    return updated


def update_booking(
    store: BookingStore,
    booking_id: int,
    changes: Dict[str, object],
    now: Optional[datetime] = None,
) -> Booking:
    """
    Apply a partial update in a single write. Time or resource changes are
    re-validated and re-checked for conflicts; a status change goes through the
    state machine before anything is stored.
    """
    now = now or datetime.now()
    booking = get_booking_or_404(store, booking_id)

    changes = dict(changes)
    requested_status = changes.pop("status", None)

    current = BookingStatus(booking.status)
    if changes and current in (BookingStatus.PAST, BookingStatus.CANCELLED):
        raise PolicyViolation(f"A {current.value} booking cannot be modified")

    if "requested_by" in changes and not (changes["requested_by"] or "").strip():
        raise InvalidInput("Requested by cannot be empty")

    reschedule = any(key in changes for key in ("resource_id", "start_time", "end_time"))
    if reschedule and current != BookingStatus.UPCOMING:
        raise PolicyViolation("Only upcoming bookings can be rescheduled")

    resource_id = changes.get("resource_id") or booking.resource_id
    start_time = changes.get("start_time") or booking.start_time
    end_time = changes.get("end_time") or booking.end_time

    if requested_status is not None:
        requested_status = BookingStatus(requested_status)
        # Judged against the window the booking has once this update is applied
        pending = SimpleNamespace(status=current, start_time=start_time, end_time=end_time)
        decision = resolve_status_transition(pending, requested_status, now)
        if not decision.allowed:
            logger.error(f"Illegal transition for booking {booking_id}: {decision.reason}")
            raise IllegalTransition(decision.reason)
        if not changes:
            booking = change_status(store, booking, requested_status, now)
            logger.debug(f"Updated booking: {booking_id}")
            return booking
        changes["status"] = requested_status

    if reschedule:
        with store.reservation_lock(resource_id):
            outcome = validate_and_detect_conflicts(
                store, resource_id, start_time, end_time, now, exclude_booking_id=booking.id
            )
            if not outcome.valid:
                logger.error(f"Update rejected for booking {booking_id}: {outcome.reason}")
                raise PolicyViolation(outcome.reason)
            booking = store.apply_booking_changes(booking, _clean(changes), now)
    elif changes:
        booking = store.apply_booking_changes(booking, _clean(changes), now)

    logger.debug(f"Updated booking: {booking_id}")
    return booking


def _clean(changes: Dict[str, object]) -> Dict[str, object]:
    if "requested_by" in changes:
        changes["requested_by"] = changes["requested_by"].strip()
    return changes


def cancel_booking(store: BookingStore, booking_id: int, now: Optional[datetime] = None) -> Booking:
    now = now or datetime.now()
    booking = get_booking_or_404(store, booking_id)
    booking = change_status(store, booking, BookingStatus.CANCELLED, now)
    logger.debug(f"Cancelled booking: {booking_id}")
    return booking


def delete_booking(store: BookingStore, booking_id: int):
    booking = get_booking_or_404(store, booking_id)
    store.delete_booking(booking)
    logger.debug(f"Deleted booking: {booking_id}")


def list_bookings(store: BookingStore, resource_id: Optional[int] = None, day: Optional[date] = None):
    bookings = store.find_bookings(resource_id=resource_id, day=day)
    grouped: Dict[str, List[Booking]] = {}
    for booking in bookings:
        grouped.setdefault(booking.resource.name, []).append(booking)
    logger.debug(f"Retrieved {len(bookings)} bookings")
    return {"bookings": bookings, "grouped_bookings": grouped}


def upcoming_and_ongoing_bookings(store: BookingStore) -> Dict[str, List[Booking]]:
    return {
        "upcoming": store.find_bookings_by_status(BookingStatus.UPCOMING),
        "ongoing": store.find_bookings_by_status(BookingStatus.ONGOING),
    }
