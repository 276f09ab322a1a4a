"""
Reconciliation of stored booking statuses with the clock.

run_reconciliation_pass moves every active booking one step along
upcoming -> ongoing -> past when its time window says so. Bookings that
fell more than one step behind (for example because the trigger did not
run for a while) are handled by the overdue and expired sweeps, which
force the status to the one dictated by the clock.
"""
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional
from resource_booking.models.booking import Booking, BookingStatus
from resource_booking.store import BookingStore
from resource_booking.utils.status import is_transition_allowed, time_based_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingStatusUpdate:
    id: int
    old_status: BookingStatus
    new_status: BookingStatus
    reason: str


def _apply(
    store: BookingStore,
    booking: Booking,
    new_status: BookingStatus,
    now: datetime,
    reason: str,
) -> Optional[BookingStatusUpdate]:
    old_status = BookingStatus(booking.status)
    updated = store.update_booking_status(booking.id, new_status, now, expected_status=old_status)
    if updated is None:
        return None
    logger.info(f"Booking {booking.id}: {reason}")
    return BookingStatusUpdate(id=booking.id, old_status=old_status, new_status=new_status, reason=reason)


def _sweep(
    store: BookingStore,
    bookings: List[Booking],
    now: datetime,
    decide: Callable[[Booking], Optional[tuple]],
) -> List[BookingStatusUpdate]:
    updates = []
    for booking in bookings:
        booking_id = booking.id
        try:
            decision = decide(booking)
            if decision is None:
                continue
            new_status, reason = decision
            change = _apply(store, booking, new_status, now, reason)
            if change is not None:
                updates.append(change)
        except Exception:
            logger.exception(f"Failed to update status of booking {booking_id}")
    return updates


def _active_bookings(store: BookingStore) -> List[Booking]:
    return store.find_bookings_by_status(BookingStatus.UPCOMING) + store.find_bookings_by_status(
        BookingStatus.ONGOING
    )


def reconcile_statuses(store: BookingStore, now: datetime) -> List[BookingStatusUpdate]:
    """Apply the time-based status to every active booking where the state machine allows it."""

    def decide(booking):
        current = BookingStatus(booking.status)
        target = time_based_status(booking.start_time, booking.end_time, now)
        if target == current or not is_transition_allowed(current, target):
            return None
        return target, f"Status transition: {current.value} -> {target.value}"

    return _sweep(store, _active_bookings(store), now, decide)


def sweep_overdue_bookings(store: BookingStore, now: datetime) -> List[BookingStatusUpdate]:
    """Force upcoming bookings whose start has passed to their time-based status."""

    def decide(booking):
        if booking.start_time >= now:
            return None
        target = time_based_status(booking.start_time, booking.end_time, now)
        if target == BookingStatus.UPCOMING:
            return None
        return target, f"Overdue booking: start time passed, upcoming -> {target.value}"

    return _sweep(store, store.find_bookings_by_status(BookingStatus.UPCOMING), now, decide)


def sweep_expired_bookings(store: BookingStore, now: datetime) -> List[BookingStatusUpdate]:
    """Force ongoing bookings whose end has passed to past."""

    def decide(booking):
        if booking.end_time >= now:
            return None
        return BookingStatus.PAST, "Expired booking: end time passed, ongoing -> past"

    return _sweep(store, store.find_bookings_by_status(BookingStatus.ONGOING), now, decide)


def run_reconciliation_pass(
    store: BookingStore,
    now: Optional[datetime] = None,
    include_sweeps: bool = True,
) -> List[BookingStatusUpdate]:
    now = now or datetime.now()
    updates = reconcile_statuses(store, now)
    if include_sweeps:
        updates += sweep_overdue_bookings(store, now)
        updates += sweep_expired_bookings(store, now)
    logger.debug(f"Reconciliation pass at {now.isoformat()} applied {len(updates)} update(s)")
    return updates


def run_overdue_sweeps(store: BookingStore, now: Optional[datetime] = None) -> List[BookingStatusUpdate]:
    now = now or datetime.now()
    return sweep_overdue_bookings(store, now) + sweep_expired_bookings(store, now)


def booking_stats(store: BookingStore) -> Dict[str, object]:
    """Count bookings per status and per resource name."""
    bookings = store.find_bookings()
    by_status = Counter(BookingStatus(booking.status).value for booking in bookings)
    by_resource = Counter(booking.resource.name for booking in bookings)
    return {
        "total": len(bookings),
        "by_status": {status.value: by_status.get(status.value, 0) for status in BookingStatus},
        "by_resource": dict(by_resource),
    }
