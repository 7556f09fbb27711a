"""
Invitation Schemas
"""
from typing import Optional
from pydantic import EmailStr

from nexaro.models.invitation import InvitationRole
from nexaro.schemas.base import BaseSchema


class InviteRequest(BaseSchema):
    """Founder/admin invites someone into their organization."""
    invitee_email: EmailStr
    role: InvitationRole = InvitationRole.STAFF


class InvitationSentResponse(BaseSchema):
    """
    Result of issuing an invitation.

    ``warning`` is set when the invitation exists but the email could not
    be delivered.
    """
    message: str
    invitation_id: int
    warning: Optional[str] = None


class InvitationVerifyResponse(BaseSchema):
    """What the registration page needs to pre-fill the form."""
    email: str
    role: InvitationRole
    organization_id: int
