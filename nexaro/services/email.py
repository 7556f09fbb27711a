"""
Invitation email delivery via Resend.

Delivery is best effort: failures are reported back to the caller as a
DeliveryResult, never raised, so an invitation stays valid even when the
email could not be sent.
"""
from dataclasses import dataclass
from typing import Optional

import resend

from nexaro.config import get_settings
from nexaro.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


@dataclass
class DeliveryResult:
    success: bool
    error: Optional[str] = None


def build_registration_link(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/register?inviteToken={token}"


def _render_invitation_html(registration_link: str, expire_hours: int) -> str:
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h1 style="color: #333;">Welcome to Nexaro CRM</h1>
    <p>You have been invited to join Nexaro CRM.</p>
    <p>Click the button below to complete your registration:</p>
    <div style="margin: 30px 0;">
        <a href="{registration_link}"
           style="background-color: #4f46e5; color: white; padding: 12px 24px; text-decoration: none; border-radius: 4px; display: inline-block;">
            Register Your Account
        </a>
    </div>
    <p>Or copy and paste this URL into your browser:</p>
    <p style="word-break: break-all; color: #666;">{registration_link}</p>
    <p>This invitation link will expire in {expire_hours} hours.</p>
    <p>Thank you,<br>The Nexaro CRM Team</p>
</div>
"""


class EmailSender:
    """Sends invitation emails through the Resend API."""

    def __init__(self, api_key: Optional[str] = None, sender: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.sender = sender or settings.EMAIL_FROM

    def send_invitation(self, recipient: str, registration_link: str) -> DeliveryResult:
        if not self.api_key:
            logger.warning(f"Email delivery not configured, invitation for {recipient} not sent")
            return DeliveryResult(success=False, error="Email delivery is not configured")

        resend.api_key = self.api_key
        try:
            resend.Emails.send(
                {
                    "from": self.sender,
                    "to": [recipient],
                    "subject": "Invitation to join Nexaro CRM",
                    "html": _render_invitation_html(registration_link, settings.INVITATION_EXPIRE_HOURS),
                }
            )
        except Exception as exc:
            # Provider errors are reported, not raised
            logger.error(f"Failed to send invitation email to {recipient}: {exc}")
            return DeliveryResult(success=False, error="Email could not be sent")

        logger.info(f"Invitation email sent to {recipient}")
        return DeliveryResult(success=True)


def get_email_sender() -> EmailSender:
    """FastAPI dependency; tests override it with a stub."""
    return EmailSender()
