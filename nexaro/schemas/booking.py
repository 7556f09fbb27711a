"""
Booking Schemas
"""
from typing import Optional
from datetime import datetime

from nexaro.models.booking import BookingStatus
from nexaro.schemas.base import BaseSchema, UpdateSchema


class BookingCreate(BaseSchema):
    client_id: int
    service_id: int
    date: datetime
    status: BookingStatus = BookingStatus.PENDING
    notes: Optional[str] = None


class BookingUpdate(UpdateSchema):
    required_fields = ("client_id", "service_id", "date", "status")

    client_id: Optional[int] = None
    service_id: Optional[int] = None
    date: Optional[datetime] = None
    status: Optional[BookingStatus] = None
    notes: Optional[str] = None


class BookingResponse(BaseSchema):
    id: int
    client_id: int
    service_id: int
    date: datetime
    status: BookingStatus
    notes: Optional[str]
    created_at: datetime
