"""
Database Models

Every tenant-scoped model exposes ``owning_organization_id`` so the
tenant guard can check ownership without knowing the model.
"""
from nexaro.models.organization import Organization
from nexaro.models.user import User, UserRole
from nexaro.models.session import UserSession
from nexaro.models.invitation import Invitation, InvitationRole, InvitationStatus
from nexaro.models.client import Client
from nexaro.models.service import Service
from nexaro.models.booking import Booking, BookingStatus
from nexaro.models.subscription import Subscription

__all__ = [
    "Organization",
    "User",
    "UserRole",
    "UserSession",
    "Invitation",
    "InvitationRole",
    "InvitationStatus",
    "Client",
    "Service",
    "Booking",
    "BookingStatus",
    "Subscription",
]
