"""
Invitation Endpoints

Founders and admins invite people into their organization; invitees check
their token before registering.

The invite endpoint reports two independent outcomes: whether the
invitation was created, and whether the email went out. A failed delivery
answers 207 with a ``warning`` instead of failing the request.
"""
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from nexaro.api.deps import get_current_user, get_link_base_url
from nexaro.core.exceptions import InvalidToken
from nexaro.database import get_db
from nexaro.models.user import User
from nexaro.schemas.invitation import InviteRequest, InvitationSentResponse, InvitationVerifyResponse
from nexaro.services.email import EmailSender, get_email_sender
from nexaro.services.invitations import InvitationLedger
from nexaro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["invitations"])


@router.post("/invitations", response_model=InvitationSentResponse)
@router.post("/organization/invite", response_model=InvitationSentResponse, include_in_schema=False)
async def send_invite(
    payload: InviteRequest,
    current_user: User = Depends(get_current_user),
    link_base_url: str = Depends(get_link_base_url),
    email_sender: EmailSender = Depends(get_email_sender),
    db: Session = Depends(get_db)
):
    """
    Invite a user into the current organization (founder/admin only).

    The role check happens inside the ledger so the same rules apply
    wherever invitations are issued from.

    Issuing commits and calls the email provider, so it runs in the
    threadpool.
    """
    invitation, delivery = await run_in_threadpool(
        InvitationLedger.issue,
        db,
        current_user,
        payload.invitee_email,
        payload.role,
        email_sender,
        link_base_url,
    )

    if delivery.success:
        return InvitationSentResponse(
            message="Invitation sent successfully",
            invitation_id=invitation.id,
        )

    body = InvitationSentResponse(
        message="Invitation created but email delivery failed",
        invitation_id=invitation.id,
        warning=delivery.error or "Email could not be sent. Please verify your email configuration.",
    )
    return JSONResponse(status_code=207, content=body.model_dump(by_alias=True))


@router.get("/invitations/verify/{token}", response_model=InvitationVerifyResponse)
async def verify_invitation(token: str, db: Session = Depends(get_db)):
    """
    Check an invitation token before showing the registration form.

    Unknown tokens answer 404; expired or used ones 400 with the reason.
    """
    try:
        invitation = InvitationLedger.verify(db, token)
    except InvalidToken:
        raise InvalidToken("Invitation not found", status_code=404)

    return InvitationVerifyResponse(
        email=invitation.email,
        role=invitation.role,
        organization_id=invitation.organization_id,
    )
