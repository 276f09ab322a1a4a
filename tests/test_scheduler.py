import pytest
from datetime import datetime, timedelta

from resource_booking.models.booking import Booking, BookingStatus
from resource_booking.store import BookingStore
from resource_booking.utils.scheduler import (
    booking_stats,
    reconcile_statuses,
    run_overdue_sweeps,
    run_reconciliation_pass,
    sweep_expired_bookings,
    sweep_overdue_bookings,
)

from tests.conf_tests import clear_db, test_db, test_resource

NOW = datetime(2030, 1, 15, 12, 0)


@pytest.fixture
def store(test_db): # pylint: disable=redefined-outer-name
    return BookingStore(test_db)


@pytest.fixture
def add_booking(test_db, test_resource): # pylint: disable=redefined-outer-name
    def _add(start_offset, end_offset, status=BookingStatus.UPCOMING):
        booking = Booking(
            resource_id=test_resource.id,
            start_time=NOW + timedelta(minutes=start_offset),
            end_time=NOW + timedelta(minutes=end_offset),
            requested_by="John Doe",
            status=status,
        )
        test_db.add(booking)
        test_db.commit()
        test_db.refresh(booking)
        return booking

    return _add


# pylint: disable-next=redefined-outer-name
def test_started_booking_becomes_ongoing(store, add_booking):
    booking = add_booking(-5, 30)
    updates = run_reconciliation_pass(store, NOW)
    assert len(updates) == 1
    assert updates[0].id == booking.id
    assert updates[0].old_status == BookingStatus.UPCOMING
    assert updates[0].new_status == BookingStatus.ONGOING
    assert updates[0].reason == "Status transition: upcoming -> ongoing"
    assert store.find_booking_by_id(booking.id).status == BookingStatus.ONGOING


# pylint: disable-next=redefined-outer-name
def test_finished_booking_becomes_past(store, add_booking):
    booking = add_booking(-60, -1, BookingStatus.ONGOING)
    updates = reconcile_statuses(store, NOW)
    assert [(update.id, update.new_status) for update in updates] == [(booking.id, BookingStatus.PAST)]


# pylint: disable-next=redefined-outer-name
def test_future_and_cancelled_bookings_untouched(store, add_booking):
    add_booking(30, 60)
    add_booking(-60, -30, BookingStatus.CANCELLED)
    add_booking(-120, -90, BookingStatus.PAST)
    assert run_reconciliation_pass(store, NOW) == []


# pylint: disable-next=redefined-outer-name
def test_general_pass_does_not_skip_a_step(store, add_booking):
    booking = add_booking(-90, -30)
    assert reconcile_statuses(store, NOW) == []
    assert store.find_booking_by_id(booking.id).status == BookingStatus.UPCOMING


# pylint: disable-next=redefined-outer-name
def test_overdue_sweep_forces_past(store, add_booking):
    booking = add_booking(-90, -30)
    updates = sweep_overdue_bookings(store, NOW)
    assert len(updates) == 1
    assert updates[0].new_status == BookingStatus.PAST
    assert updates[0].reason.startswith("Overdue booking")
    assert store.find_booking_by_id(booking.id).status == BookingStatus.PAST


# pylint: disable-next=redefined-outer-name
def test_overdue_sweep_ignores_future_bookings(store, add_booking):
    add_booking(10, 40)
    assert sweep_overdue_bookings(store, NOW) == []


# pylint: disable-next=redefined-outer-name
def test_expired_sweep(store, add_booking):
    expired = add_booking(-90, -30, BookingStatus.ONGOING)
    add_booking(-10, 30, BookingStatus.ONGOING)
    updates = sweep_expired_bookings(store, NOW)
    assert [update.id for update in updates] == [expired.id]
    assert updates[0].reason == "Expired booking: end time passed, ongoing -> past"


# pylint: disable-next=redefined-outer-name
def test_full_pass_includes_sweeps(store, add_booking):
    add_booking(-5, 30)
    add_booking(-90, -30)
    updates = run_reconciliation_pass(store, NOW)
    assert sorted(update.new_status.value for update in updates) == ["ongoing", "past"]
    assert run_reconciliation_pass(store, NOW) == []


# pylint: disable-next=redefined-outer-name
def test_run_overdue_sweeps(store, add_booking):
    add_booking(-90, -30)
    add_booking(-180, -120, BookingStatus.ONGOING)
    updates = run_overdue_sweeps(store, NOW)
    assert all(update.new_status == BookingStatus.PAST for update in updates)
    assert len(updates) == 2


# pylint: disable-next=redefined-outer-name
def test_failure_on_one_booking_does_not_stop_pass(store, add_booking, monkeypatch):
    failing_id = add_booking(-5, 60).id
    healthy_id = add_booking(40, 50).id
    original = store.update_booking_status

    def flaky(booking_id, *args, **kwargs):
        if booking_id == failing_id:
            raise RuntimeError("database is locked")
        return original(booking_id, *args, **kwargs)

    monkeypatch.setattr(store, "update_booking_status", flaky)
    updates = run_reconciliation_pass(store, NOW + timedelta(minutes=45), include_sweeps=False)
    assert [update.id for update in updates] == [healthy_id]


# pylint: disable-next=redefined-outer-name
def test_stale_status_write_is_skipped(store, add_booking):
    booking = add_booking(-5, 30)
    assert store.update_booking_status(booking.id, BookingStatus.CANCELLED, NOW) is not None
    result = store.update_booking_status(
        booking.id, BookingStatus.ONGOING, NOW, expected_status=BookingStatus.UPCOMING
    )
    assert result is None
    assert store.find_booking_by_id(booking.id).status == BookingStatus.CANCELLED


# pylint: disable-next=redefined-outer-name
def test_booking_stats(store, add_booking):
    add_booking(30, 60)
    add_booking(-60, -30, BookingStatus.CANCELLED)
    stats = booking_stats(store)
    assert stats["total"] == 2
    assert stats["by_status"] == {"upcoming": 1, "ongoing": 0, "past": 0, "cancelled": 1}
    assert stats["by_resource"] == {"Room A": 2}
