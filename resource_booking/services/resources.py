import logging
from datetime import date
from typing import Optional
from resource_booking.store import BookingStore
from resource_booking.services.bookings import compute_available_slots, get_resource_or_404
from resource_booking.utils.errors import InvalidInput, PolicyViolation

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str]) -> str:
    if not name or not name.strip():
        raise InvalidInput("Resource name is required")
    return name.strip()


def create_resource(store: BookingStore, name: str):
    name = _clean_name(name)
    if store.find_resource_by_name(name):
        logger.error(f"Resource already exists: {name}")
        raise PolicyViolation("Resource already exists")
    resource = store.create_resource(name)
    logger.debug(f"Created resource: {resource.id} ({resource.name})")
    return resource


def list_resources(store: BookingStore, skip: int = 0, limit: int = 100, search: Optional[str] = None):
    return {
        "meta": {"skip": skip, "limit": limit, "total": store.count_resources(search)},
        "data": store.list_resources(skip, limit, search),
    }


def get_resource(store: BookingStore, resource_id: int):
    return get_resource_or_404(store, resource_id)


def update_resource(store: BookingStore, resource_id: int, name: Optional[str]):
    resource = get_resource_or_404(store, resource_id)
    if name is None:
        return resource

    name = _clean_name(name)
    # Uniqueness is only checked when the name actually changes
    if name != resource.name and store.find_resource_by_name(name):
        logger.error(f"Resource already exists: {name}")
        raise PolicyViolation("Resource already exists")
    return store.rename_resource(resource, name)


def delete_resource(store: BookingStore, resource_id: int):
    resource = get_resource_or_404(store, resource_id)
    if store.count_bookings_for_resource(resource_id):
        logger.error(f"Resource {resource_id} still has bookings")
        raise PolicyViolation("Resource has bookings and cannot be deleted")
    store.delete_resource(resource)
    logger.debug(f"Deleted resource: {resource_id}")


def resource_availability(store: BookingStore, resource_id: int, day: date, min_duration: Optional[int] = None):
    resource = get_resource_or_404(store, resource_id)
    slots = compute_available_slots(store, resource_id, day, min_duration)
    return {
        "resource": resource,
        "date": day,
        "total_slots": len(slots),
        "available_slots": slots,
    }
