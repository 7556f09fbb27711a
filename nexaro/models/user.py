"""
User Model

Users are principals. A user normally belongs to exactly one organization
and holds one role inside it.

IMPORTANT: email is globally unique (not per tenant). The unique index is
what settles a race between two registrations for the same address.
Emails are stored lower-cased.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from nexaro.database import Base
from nexaro.utils.clock import utcnow
import enum


class UserRole(str, enum.Enum):
    """
    Roles inside an organization.

    FOUNDER: Created the organization through open registration
    ADMIN: Manages organization settings and invites members
    STAFF: Day-to-day work on clients, services and bookings

    What each role may do is declared in nexaro.core.permissions.PERMISSIONS.
    """
    FOUNDER = "founder"
    ADMIN = "admin"
    STAFF = "staff"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)

    role = Column(
        SQLEnum(UserRole, values_callable=lambda roles: [r.value for r in roles], name="user_role"),
        default=UserRole.STAFF,
        nullable=False,
    )

    # Nullable: a user without an organization is "unaffiliated" and
    # cannot touch any tenant-scoped data.
    organization_id = Column(
        Integer,
        ForeignKey("organizations.id"),
        nullable=True,
        index=True
    )

    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    # Relationships
    organization = relationship("Organization", back_populates="users")
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        Index("uq_users_email", "email", unique=True),
        Index("idx_user_org_role", "organization_id", "role"),
    )

    def __repr__(self):
        return f"<User {self.email} (organization={self.organization_id})>"

    @property
    def is_affiliated(self) -> bool:
        return self.organization_id is not None
