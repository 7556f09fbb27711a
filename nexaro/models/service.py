"""
Service Model

Offerings an organization sells. Price is stored in cents.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from nexaro.database import Base
from nexaro.utils.clock import utcnow


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)

    organization_id = Column(
        Integer,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=True)  # minutes

    created_at = Column(DateTime, default=utcnow, nullable=False)

    organization = relationship("Organization", back_populates="services")
    bookings = relationship("Booking", back_populates="service", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Service {self.name} (organization={self.organization_id})>"

    @property
    def owning_organization_id(self) -> int:
        return self.organization_id
