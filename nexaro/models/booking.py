"""
Booking Model

A booking ties a client to a service at a date.

NOTE: Bookings carry no organization column. Their tenant is the tenant
of their client, so ownership is resolved through that relationship.
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from nexaro.database import Base
from nexaro.utils.clock import utcnow
import enum


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)

    client_id = Column(
        Integer,
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    service_id = Column(
        Integer,
        ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    status = Column(
        SQLEnum(BookingStatus, values_callable=lambda values: [v.value for v in values], name="booking_status"),
        default=BookingStatus.PENDING,
        nullable=False,
    )
    date = Column(DateTime, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    client = relationship("Client", back_populates="bookings")
    service = relationship("Service", back_populates="bookings")

    def __repr__(self):
        return f"<Booking {self.id} client={self.client_id} service={self.service_id}>"

    @property
    def owning_organization_id(self):
        return self.client.organization_id if self.client is not None else None
