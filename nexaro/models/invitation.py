"""
Invitation Model

An invitation is a one-time capability: whoever presents the token (with the
invited email address) may join the organization at the given role.

Lifecycle:
    unused --redeem--> used
    unused --expires_at passes--> expired (derived from time, never stored)

used and expired are terminal. Rows are never deleted by the application;
they double as an audit trail of who was invited, by whom, and when.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from nexaro.database import Base
from nexaro.utils.clock import utcnow
import enum


class InvitationRole(str, enum.Enum):
    """Roles an invitation may grant. Founder is never grantable."""
    ADMIN = "admin"
    STAFF = "staff"


class InvitationStatus(str, enum.Enum):
    UNUSED = "unused"
    USED = "used"
    EXPIRED = "expired"


class Invitation(Base):
    __tablename__ = "invitations"

    id = Column(Integer, primary_key=True, autoincrement=True)

    email = Column(String(255), nullable=False, index=True)

    # CRITICAL: unique index is the backstop for token uniqueness
    token = Column(String(64), nullable=False)

    role = Column(
        SQLEnum(InvitationRole, values_callable=lambda roles: [r.value for r in roles], name="invitation_role"),
        default=InvitationRole.STAFF,
        nullable=False,
    )

    organization_id = Column(
        Integer,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    invited_by_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    expires_at = Column(DateTime, nullable=False)
    is_used = Column(Boolean, default=False, nullable=False)
    used_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    organization = relationship("Organization", back_populates="invitations")
    invited_by = relationship("User")

    __table_args__ = (
        Index("uq_invitations_token", "token", unique=True),
        Index("idx_invitation_org_used", "organization_id", "is_used"),
    )

    def __repr__(self):
        return f"<Invitation {self.email} role={self.role} (organization={self.organization_id})>"

    @property
    def owning_organization_id(self) -> int:
        return self.organization_id

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Expired from the instant expires_at is reached."""
        return (now or utcnow()) >= self.expires_at

    def status(self, now: Optional[datetime] = None) -> InvitationStatus:
        if self.is_expired(now):
            return InvitationStatus.EXPIRED
        if self.is_used:
            return InvitationStatus.USED
        return InvitationStatus.UNUSED
