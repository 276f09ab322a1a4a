from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from resource_booking.db import get_db
from resource_booking.schemas.resource import (
    ResourceAvailabilityResponse,
    ResourceCreate,
    ResourceListResponse,
    ResourceResponse,
    ResourceUpdate,
)
from resource_booking.services import resources as resource_service
from resource_booking.store import BookingStore


router = APIRouter(
    prefix="/resources",
    tags=["resources"],
)


def get_store(db: Session = Depends(get_db)) -> BookingStore:
    return BookingStore(db)


@router.post("/", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
def create_resource(resource: ResourceCreate, store: BookingStore = Depends(get_store)):
    """
    Create a new bookable resource.
    Names are unique.
    """
    return resource_service.create_resource(store, resource.name)


@router.get("/", response_model=ResourceListResponse)
def get_resources(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1),
    search: Optional[str] = None,
    store: BookingStore = Depends(get_store),
):
    """
    Retrieve a page of resources, newest first, optionally filtered by name.
    """
    return resource_service.list_resources(store, skip, limit, search)


@router.get("/{resource_id}", response_model=ResourceResponse)
def get_resource(resource_id: int, store: BookingStore = Depends(get_store)):
    """
    Retrieve a specific resource by ID.
    """
    return resource_service.get_resource(store, resource_id)


@router.put("/{resource_id}", response_model=ResourceResponse)
def update_resource(resource_id: int, resource_update: ResourceUpdate, store: BookingStore = Depends(get_store)):
    """
    Rename a resource.
    """
    return resource_service.update_resource(store, resource_id, resource_update.name)


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_resource(resource_id: int, store: BookingStore = Depends(get_store)):
    """
    Delete a resource that has no bookings.
    """
    resource_service.delete_resource(store, resource_id)
    return None


@router.get(
    "/{resource_id}/availability",
    response_model=ResourceAvailabilityResponse,
    summary="List available time slots",
    description="Retrieve the free windows of a resource within business hours on a specific date.",
)
def get_availability(
    resource_id: int,
    date: date,
    min_duration: Optional[int] = Query(None, description="Minimum slot length in minutes"),
    store: BookingStore = Depends(get_store),
):
    """
    List available time slots for a resource.

    - **resource_id**: ID of the resource to check availability for.
    - **date**: Date to check availability (e.g., 2025-05-04).
    - **min_duration**: Minimum length of a reported slot in minutes (default: minimum booking duration).

    Every existing booking blocks its own window plus the buffer time before and after it.
    """
    return resource_service.resource_availability(store, resource_id, date, min_duration)
