from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ResourceBase(BaseModel):
    name: str = Field(..., min_length=1)


class ResourceCreate(ResourceBase):
    pass


class ResourceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)


class ResourceResponse(ResourceBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ResourceListMeta(BaseModel):
    skip: int
    limit: int
    total: int


class ResourceListResponse(BaseModel):
    meta: ResourceListMeta
    data: List[ResourceResponse]


class AvailableSlotResponse(BaseModel):
    start: datetime
    end: datetime
    duration: int

    model_config = ConfigDict(from_attributes=True)


class ResourceAvailabilityResponse(BaseModel):
    resource: ResourceResponse
    date: date
    total_slots: int
    available_slots: List[AvailableSlotResponse]
