"""
Booking Endpoints

Bookings have no organization column; they belong to the tenant of their
client. Creating or re-pointing a booking also requires the client and
the service to be in the caller's tenant.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from nexaro.api.deps import require
from nexaro.core.permissions import Operation, get_scoped_or_deny
from nexaro.database import get_db
from nexaro.models.booking import Booking
from nexaro.models.client import Client
from nexaro.models.service import Service
from nexaro.models.user import User
from nexaro.schemas.booking import BookingCreate, BookingResponse, BookingUpdate
from nexaro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    current_user: User = Depends(require(Operation.MANAGE_BOOKINGS)),
    db: Session = Depends(get_db)
):
    get_scoped_or_deny(db, Client, booking_data.client_id, current_user)
    get_scoped_or_deny(db, Service, booking_data.service_id, current_user)

    booking = Booking(**booking_data.model_dump())
    db.add(booking)
    db.commit()
    db.refresh(booking)

    logger.info(f"Booking created: {booking.id} by {current_user.id}")
    return booking


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    current_user: User = Depends(require(Operation.MANAGE_BOOKINGS)),
    db: Session = Depends(get_db)
):
    return get_scoped_or_deny(db, Booking, booking_id, current_user)


@router.put("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: int,
    booking_data: BookingUpdate,
    current_user: User = Depends(require(Operation.MANAGE_BOOKINGS)),
    db: Session = Depends(get_db)
):
    booking = get_scoped_or_deny(db, Booking, booking_id, current_user)
    update_data = booking_data.model_dump(exclude_unset=True)

    # Re-pointing must stay inside the tenant
    if update_data.get("client_id") is not None:
        get_scoped_or_deny(db, Client, update_data["client_id"], current_user)
    if update_data.get("service_id") is not None:
        get_scoped_or_deny(db, Service, update_data["service_id"], current_user)

    for field, value in update_data.items():
        setattr(booking, field, value)

    db.commit()
    db.refresh(booking)
    return booking


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: int,
    current_user: User = Depends(require(Operation.MANAGE_BOOKINGS)),
    db: Session = Depends(get_db)
):
    booking = get_scoped_or_deny(db, Booking, booking_id, current_user)
    db.delete(booking)
    db.commit()

    logger.info(f"Booking deleted: {booking_id} by {current_user.id}")
    return None
