from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Dict, List, Optional
from resource_booking.models.booking import BookingStatus
from resource_booking.utils.intervals import to_reference_time


class BookingBase(BaseModel):
    resource_id: int
    start_time: datetime
    end_time: datetime
    requested_by: str = Field(..., min_length=1)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, value):
        return to_reference_time(value)


class BookingCreate(BookingBase):
    pass


class BookingUpdate(BaseModel):
    resource_id: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    requested_by: Optional[str] = None
    status: Optional[BookingStatus] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, value):
        return to_reference_time(value)


class BookingResponse(BaseModel):
    id: int
    resource_id: int
    start_time: datetime
    end_time: datetime
    requested_by: str
    status: BookingStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingListResponse(BaseModel):
    bookings: List[BookingResponse]
    grouped_bookings: Dict[str, List[BookingResponse]]


class UpcomingOngoingResponse(BaseModel):
    upcoming: List[BookingResponse]
    ongoing: List[BookingResponse]


class BookingStatsResponse(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_resource: Dict[str, int]


class BookingStatusUpdateResponse(BaseModel):
    id: int
    old_status: BookingStatus
    new_status: BookingStatus
    reason: str

    model_config = ConfigDict(from_attributes=True)
