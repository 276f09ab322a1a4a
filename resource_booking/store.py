"""
SQLAlchemy-backed booking store used by the scheduling engine.

The engine only performs the conflict check; the store is responsible for
making the read-check-write sequence of a new booking atomic. Within one
process this is done with a lock per resource (see reservation_lock). A
deployment that runs several worker processes against the same database
must also run that sequence inside a SERIALIZABLE transaction.
"""
import logging
import threading
import weakref
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional
from sqlalchemy import update
from sqlalchemy.orm import Session
from resource_booking.models.booking import Booking, BookingStatus
from resource_booking.models.resource import Resource

logger = logging.getLogger(__name__)

# An entry is dropped once no caller holds a reference to its lock
_resource_locks = weakref.WeakValueDictionary()
_resource_locks_guard = threading.Lock()


class BookingStore:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def reservation_lock(self, resource_id: int):
        with _resource_locks_guard:
            lock = _resource_locks.get(resource_id)
            if lock is None:
                lock = threading.Lock()
                _resource_locks[resource_id] = lock
        with lock:
            yield

    # Resources

    def find_resource_by_name(self, name: str) -> Optional[Resource]:
        return self.db.query(Resource).filter(Resource.name == name).first()

    def find_resource_by_id(self, resource_id: int) -> Optional[Resource]:
        return self.db.query(Resource).filter(Resource.id == resource_id).first()

    def list_resources(self, skip: int = 0, limit: int = 100, search: Optional[str] = None) -> List[Resource]:
        query = self.db.query(Resource)
        if search:
            query = query.filter(Resource.name.ilike(f"%{search}%"))
        return query.order_by(Resource.created_at.desc(), Resource.id.desc()).offset(skip).limit(limit).all()

    def count_resources(self, search: Optional[str] = None) -> int:
        query = self.db.query(Resource)
        if search:
            query = query.filter(Resource.name.ilike(f"%{search}%"))
        return query.count()

    def create_resource(self, name: str) -> Resource:
        resource = Resource(name=name)
        self.db.add(resource)
        self.db.commit()
        self.db.refresh(resource)
        return resource

    def rename_resource(self, resource: Resource, name: str) -> Resource:
        resource.name = name
        self.db.commit()
        self.db.refresh(resource)
        return resource

    def delete_resource(self, resource: Resource):
        self.db.delete(resource)
        self.db.commit()

    # Bookings

    def find_booking_by_id(self, booking_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def find_bookings_overlapping_window(
        self,
        resource_id: int,
        window_start: datetime,
        window_end: datetime,
        exclude_cancelled: bool = True,
        exclude_booking_id: Optional[int] = None,
    ) -> List[Booking]:
        query = self.db.query(Booking).filter(
            Booking.resource_id == resource_id,
            Booking.start_time < window_end,
            Booking.end_time > window_start,
        )
        if exclude_cancelled:
            query = query.filter(Booking.status != BookingStatus.CANCELLED)
        if exclude_booking_id is not None:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.order_by(Booking.start_time).all()

    def find_bookings_on_day(self, resource_id: int, day: date, exclude_cancelled: bool = True) -> List[Booking]:
        day_start = datetime.combine(day, datetime.min.time())
        query = self.db.query(Booking).filter(
            Booking.resource_id == resource_id,
            Booking.start_time >= day_start,
            Booking.start_time < day_start + timedelta(days=1),
        )
        if exclude_cancelled:
            query = query.filter(Booking.status != BookingStatus.CANCELLED)
        return query.order_by(Booking.start_time).all()

    def find_bookings_by_status(self, status: BookingStatus, exclude_cancelled: bool = True) -> List[Booking]:
        query = self.db.query(Booking).filter(Booking.status == status)
        if exclude_cancelled:
            query = query.filter(Booking.status != BookingStatus.CANCELLED)
        return query.order_by(Booking.start_time).all()

    def find_bookings(self, resource_id: Optional[int] = None, day: Optional[date] = None) -> List[Booking]:
        query = self.db.query(Booking)
        if resource_id is not None:
            query = query.filter(Booking.resource_id == resource_id)
        if day is not None:
            day_start = datetime.combine(day, datetime.min.time())
            query = query.filter(
                Booking.start_time >= day_start,
                Booking.start_time < day_start + timedelta(days=1),
            )
        return query.order_by(Booking.start_time).all()

    def count_bookings_for_resource(self, resource_id: int) -> int:
        return self.db.query(Booking).filter(Booking.resource_id == resource_id).count()

    def create_booking(self, **fields) -> Booking:
        booking = Booking(**fields)
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)
        logger.debug(f"Stored booking {booking.id} for resource {booking.resource_id}")
        return booking

    def apply_booking_changes(self, booking: Booking, changes: Dict[str, object], updated_at: datetime) -> Booking:
        for key, value in changes.items():
            setattr(booking, key, value)
        booking.updated_at = updated_at
        self.db.commit()
        self.db.refresh(booking)
        return booking

    def delete_booking(self, booking: Booking):
        self.db.delete(booking)
        self.db.commit()

    def update_booking_status(
        self,
        booking_id: int,
        new_status: BookingStatus,
        updated_at: datetime,
        expected_status: Optional[BookingStatus] = None,
    ) -> Optional[Booking]:
        """
        Write a new status as one UPDATE statement keyed by booking id.

        When expected_status is given the row is only changed if it still holds
        that status; None is returned if another writer got there first.
        """
        statement = update(Booking).where(Booking.id == booking_id)
        if expected_status is not None:
            statement = statement.where(Booking.status == expected_status)
        statement = statement.values(status=new_status, updated_at=updated_at)

        try:
            result = self.db.execute(statement)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if result.rowcount == 0:
            logger.debug(f"Status update for booking {booking_id} not applied")
            return None

        booking = self.find_booking_by_id(booking_id)
        self.db.refresh(booking)
        return booking
