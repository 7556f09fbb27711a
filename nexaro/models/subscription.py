"""
Subscription Model

Billing metadata only. Payments are handled elsewhere (mocked).
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from nexaro.database import Base
from nexaro.utils.clock import utcnow


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)

    organization_id = Column(
        Integer,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    plan_name = Column(String(100), nullable=False)
    price_per_month = Column(Integer, nullable=False)  # cents
    max_users = Column(Integer, nullable=True)  # NULL = unlimited
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    organization = relationship("Organization", back_populates="subscriptions")

    __table_args__ = (
        Index("idx_subscription_org_active", "organization_id", "is_active"),
    )

    def __repr__(self):
        return f"<Subscription {self.plan_name} (organization={self.organization_id})>"

    @property
    def owning_organization_id(self) -> int:
        return self.organization_id
