"""
Client Model

Customers of an organization. Directly tenant-scoped.
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from nexaro.database import Base
from nexaro.utils.clock import utcnow


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # CRITICAL: tenant foreign key
    organization_id = Column(
        Integer,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    company = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    organization = relationship("Organization", back_populates="clients")
    bookings = relationship("Booking", back_populates="client", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_client_org_created", "organization_id", "created_at"),
    )

    def __repr__(self):
        return f"<Client {self.name} (organization={self.organization_id})>"

    @property
    def owning_organization_id(self) -> int:
        return self.organization_id
