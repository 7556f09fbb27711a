"""
Invitation Ledger

Issues and redeems one-time tokens that let a new user join an existing
organization at a pre-assigned role.

Concurrency: the same token may be redeemed by several requests at once,
possibly on different API instances. The winner is decided by the database:
a conditional ``UPDATE ... WHERE is_used = false`` inside the same
transaction that inserts the user. The claim comes before any other
write-dependent check, so a zero rowcount always means another request
already consumed the token, which is an ordinary TokenUsed outcome.
"""
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nexaro.config import get_settings
from nexaro.core.exceptions import (
    EmailAlreadyRegistered,
    EmailMismatch,
    InvalidToken,
    TokenExpired,
    TokenUsed,
)
from nexaro.core.permissions import Operation, authorize
from nexaro.core.security import generate_invite_token, get_password_hash
from nexaro.models.invitation import Invitation, InvitationRole
from nexaro.models.user import User, UserRole
from nexaro.services.email import DeliveryResult, EmailSender, build_registration_link
from nexaro.utils.clock import utcnow
from nexaro.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)
settings = get_settings()

# Attempts at generating a token that does not collide with an existing one
TOKEN_ATTEMPTS = 3


def normalize_email(email: str) -> str:
    return email.strip().casefold()


def email_registered(db: Session, email: str) -> bool:
    return db.query(User.id).filter(User.email == normalize_email(email)).first() is not None


class InvitationLedger:
    @staticmethod
    def issue(
        db: Session,
        inviter: User,
        email: str,
        role: InvitationRole,
        email_sender: EmailSender,
        link_base_url: str,
    ) -> Tuple[Invitation, DeliveryResult]:
        """
        Create an invitation and notify the invitee.

        Returns the persisted invitation together with the delivery result.
        The invitation is committed before the email is attempted, so a
        failed delivery never invalidates it.
        """
        authorize(inviter, Operation.INVITE_MEMBER)

        role = InvitationRole(role)
        email = normalize_email(email)

        if email_registered(db, email):
            raise EmailAlreadyRegistered("User with this email already exists")

        expires_at = utcnow() + timedelta(hours=settings.INVITATION_EXPIRE_HOURS)

        invitation = None
        for attempt in range(1, TOKEN_ATTEMPTS + 1):
            invitation = Invitation(
                email=email,
                token=generate_invite_token(),
                role=role,
                organization_id=inviter.organization_id,
                invited_by_id=inviter.id,
                expires_at=expires_at,
                is_used=False,
            )
            db.add(invitation)
            try:
                db.commit()
                break
            except IntegrityError:
                # Token collision; the unique index caught it
                db.rollback()
                logger.warning(f"Invitation token collision (attempt {attempt})")
                if attempt == TOKEN_ATTEMPTS:
                    raise

        logger.info(
            f"Invitation {invitation.id} issued for {email} as {role.value}",
            extra={"organization_id": inviter.organization_id, "user_id": inviter.id}
        )

        link = build_registration_link(link_base_url, invitation.token)
        delivery = email_sender.send_invitation(email, link)
        if not delivery.success:
            logger.warning(
                f"Invitation {invitation.id} created but email delivery failed: {delivery.error}",
                extra={"organization_id": inviter.organization_id}
            )

        return invitation, delivery

    @staticmethod
    def _check_redeemable(invitation: Optional[Invitation]) -> Invitation:
        """
        Validation shared by verify and redeem.

        Expiry is checked before the used flag: an expired invitation
        reports TokenExpired whatever else happened to it.
        """
        if invitation is None:
            raise InvalidToken()
        if invitation.is_expired():
            raise TokenExpired()
        if invitation.is_used:
            raise TokenUsed()
        return invitation

    @staticmethod
    def get_by_token(db: Session, token: str) -> Optional[Invitation]:
        if not token:
            return None
        # Always the committed state, never a stale copy from the identity map
        return db.query(Invitation).filter(Invitation.token == token).populate_existing().first()

    @staticmethod
    def verify(db: Session, token: str) -> Invitation:
        """Return the invitation if it can still be redeemed."""
        return InvitationLedger._check_redeemable(InvitationLedger.get_by_token(db, token))

    @staticmethod
    def redeem(db: Session, token: str, name: str, email: str, password: str) -> User:
        """
        Consume an invitation and create its user.

        The user insert and the used-flag flip commit together or not at
        all. If creating the user fails, the invitation stays unused.
        """
        try:
            invitation = InvitationLedger._check_redeemable(InvitationLedger.get_by_token(db, token))
        except (InvalidToken, TokenExpired, TokenUsed) as exc:
            log_security_event("invitation_rejected", {"reason": exc.error_type}, logger)
            raise

        if normalize_email(email) != normalize_email(invitation.email):
            log_security_event(
                "invitation_rejected",
                {"reason": EmailMismatch.error_type, "invitation_id": invitation.id},
                logger
            )
            raise EmailMismatch()

        invitation_id = invitation.id
        password_hash = get_password_hash(password)
        now = utcnow()

        try:
            # Claim first: a request that lost the token must see TokenUsed,
            # whatever the winner has committed in the meantime
            claimed = (
                db.query(Invitation)
                .filter(Invitation.id == invitation_id, Invitation.is_used.is_(False))
                .update({"is_used": True, "used_at": now}, synchronize_session=False)
            )
            if claimed != 1:
                db.rollback()
                log_security_event(
                    "invitation_rejected",
                    {"reason": TokenUsed.error_type, "invitation_id": invitation_id},
                    logger
                )
                raise TokenUsed()

            if email_registered(db, email):
                db.rollback()
                raise EmailAlreadyRegistered()

            user = User(
                name=name,
                email=normalize_email(invitation.email),
                password_hash=password_hash,
                role=UserRole(invitation.role.value),
                organization_id=invitation.organization_id,
            )
            db.add(user)
            db.commit()
        except IntegrityError:
            # Lost a race on the email unique index; rollback also undoes the claim
            db.rollback()
            raise EmailAlreadyRegistered()

        logger.info(
            f"Invitation {invitation.id} redeemed by user {user.id}",
            extra={"organization_id": user.organization_id, "user_id": user.id}
        )
        return user
