from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from resource_booking.routers.resources import get_store
from resource_booking.schemas.booking import (
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatsResponse,
    BookingStatusUpdateResponse,
    BookingUpdate,
    UpcomingOngoingResponse,
)
from resource_booking.services import bookings as booking_service
from resource_booking.store import BookingStore
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
)


@router.post(
    "/",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new booking",
    description="Reserve a resource for a time window, keeping the buffer time free around other bookings.",
)
def create_booking(booking: BookingCreate, store: BookingStore = Depends(get_store)):
    """
    Create a new booking.

    - **resource_id**: ID of the resource to book.
    - **start_time**: Start of the booking, must be in the future.
    - **end_time**: End of the booking (exclusive).
    - **requested_by**: Name of the requester.

    Returns the created booking with status `upcoming`.
    """
    return booking_service.create_booking(
        store, booking.resource_id, booking.start_time, booking.end_time, booking.requested_by
    )


@router.get(
    "/",
    response_model=BookingListResponse,
    summary="List bookings",
    description="Retrieve bookings ordered by start time, optionally for one resource and one day.",
)
def get_bookings(
    resource_id: Optional[int] = None,
    date: Optional[date] = None,
    store: BookingStore = Depends(get_store),
):
    """
    Retrieve bookings, both as a flat list and grouped by resource name.
    """
    return booking_service.list_bookings(store, resource_id, date)


@router.get("/stats", response_model=BookingStatsResponse, summary="Booking statistics")
def get_booking_stats(store: BookingStore = Depends(get_store)):
    return booking_service.booking_stats(store)


@router.get("/upcoming-ongoing", response_model=UpcomingOngoingResponse, summary="Upcoming and ongoing bookings")
def get_upcoming_and_ongoing(store: BookingStore = Depends(get_store)):
    return booking_service.upcoming_and_ongoing_bookings(store)


@router.post(
    "/reconcile",
    response_model=List[BookingStatusUpdateResponse],
    summary="Reconcile booking statuses",
    description="Bring every active booking's status in line with the current time.",
)
def reconcile(store: BookingStore = Depends(get_store)):
    updates = booking_service.run_reconciliation_pass(store)
    logger.debug(f"Manual reconciliation applied {len(updates)} update(s)")
    return updates


@router.get("/{booking_id}", response_model=BookingResponse, summary="Get a booking by ID")
def get_booking(booking_id: int, store: BookingStore = Depends(get_store)):
    return booking_service.get_booking_or_404(store, booking_id)


@router.put(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Update a booking",
    description="Reschedule, rename the requester or move the status of a booking.",
)
def update_booking(booking_id: int, booking_update: BookingUpdate, store: BookingStore = Depends(get_store)):
    """
    Update a booking's details.

    - **resource_id**, **start_time**, **end_time**: (Optional) reschedule, re-checked for conflicts.
    - **requested_by**: (Optional) new requester name.
    - **status**: (Optional) next status, one step along upcoming -> ongoing -> past, or cancelled.
    """
    changes = {key: value for key, value in booking_update.model_dump(exclude_unset=True).items() if value is not None}
    return booking_service.update_booking(store, booking_id, changes)


@router.post("/{booking_id}/cancel", response_model=BookingResponse, summary="Cancel a booking")
def cancel_booking(booking_id: int, store: BookingStore = Depends(get_store)):
    return booking_service.cancel_booking(store, booking_id)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a booking")
def delete_booking(booking_id: int, store: BookingStore = Depends(get_store)):
    booking_service.delete_booking(store, booking_id)
    return None
