"""
Onboarding Flow

Two ways into the system, both ending with an authenticated session:

- Open registration creates a brand new organization and makes the
  registering user its founder.
- Invite registration joins an existing organization at the invited role
  (delegated to the invitation ledger).

Every later member of an organization must come in through an invitation.
"""
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nexaro.core.exceptions import EmailAlreadyRegistered, NotAuthenticated
from nexaro.core.security import get_password_hash, verify_password
from nexaro.models.organization import Organization
from nexaro.models.user import User, UserRole
from nexaro.services.invitations import InvitationLedger, email_registered, normalize_email
from nexaro.utils.clock import utcnow
from nexaro.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


class OnboardingService:
    @staticmethod
    def register(
        db: Session,
        name: str,
        email: str,
        password: str,
        organization_name: Optional[str] = None,
    ) -> User:
        """
        Open registration.

        Creates the organization and its founder in one transaction.
        """
        email = normalize_email(email)
        if email_registered(db, email):
            raise EmailAlreadyRegistered()

        password_hash = get_password_hash(password)

        organization = Organization(
            name=organization_name or f"{name}'s Organization",
            email=email,
        )
        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            role=UserRole.FOUNDER,
            organization=organization,
        )
        db.add(organization)
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Concurrent registration for the same email won the unique index
            db.rollback()
            raise EmailAlreadyRegistered()

        logger.info(
            f"New organization {organization.id} registered by user {user.id}",
            extra={"organization_id": organization.id, "user_id": user.id}
        )
        return user

    @staticmethod
    def register_with_invite(db: Session, token: str, name: str, email: str, password: str) -> User:
        return InvitationLedger.redeem(db, token, name, email, password)

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> User:
        """
        Check credentials and return the user.

        SECURITY: Unknown email and wrong password produce the same error
        so the endpoint cannot be used to enumerate accounts.
        CorruptCredential is not caught here.
        """
        user = db.query(User).filter(User.email == normalize_email(email)).first()

        if user is None:
            log_security_event("failed_login", {"reason": "user_not_found"}, logger)
            raise NotAuthenticated("Invalid email or password")

        if not verify_password(password, user.password_hash, user_id=user.id):
            log_security_event(
                "failed_login",
                {"reason": "invalid_password", "user_id": user.id},
                logger
            )
            raise NotAuthenticated("Invalid email or password")

        user.last_login_at = utcnow()
        db.commit()

        logger.info(f"Successful login: user={user.id}, organization={user.organization_id}")
        return user
