"""Invitation ledger: issuing, verifying and redeeming tokens."""
from datetime import timedelta

import pytest

from nexaro.core.exceptions import (
    EmailAlreadyRegistered,
    EmailMismatch,
    InsufficientPermissions,
    InvalidToken,
    TokenExpired,
    TokenUsed,
)
from nexaro.core.security import INVITE_TOKEN_ALPHABET
from nexaro.models import Invitation, InvitationRole, InvitationStatus, User, UserRole
from nexaro.services import invitations as invitations_module
from nexaro.services.invitations import InvitationLedger, normalize_email
from nexaro.utils.clock import utcnow

from conftest import StubEmailSender, create_user

LINK_BASE = "http://frontend.test"


def issue(db, inviter, email="bob@example.com", role=InvitationRole.STAFF, sender=None):
    return InvitationLedger.issue(db, inviter, email, role, sender or StubEmailSender(), LINK_BASE)


def test_issue_persists_unused_invitation_and_sends_link(db, founder):
    sender = StubEmailSender()
    before = utcnow()

    invitation, delivery = issue(db, founder, email="Bob@Example.com", role=InvitationRole.ADMIN, sender=sender)

    assert delivery.success
    assert invitation.id is not None
    assert invitation.email == "bob@example.com"
    assert invitation.role == InvitationRole.ADMIN
    assert invitation.organization_id == founder.organization_id
    assert invitation.invited_by_id == founder.id
    assert invitation.is_used is False
    assert len(invitation.token) == 12
    assert set(invitation.token) <= set(INVITE_TOKEN_ALPHABET)
    assert before + timedelta(hours=48) <= invitation.expires_at <= utcnow() + timedelta(hours=48)
    assert sender.sent == [
        ("bob@example.com", f"{LINK_BASE}/register?inviteToken={invitation.token}")
    ]


def test_admin_may_invite(db, admin):
    invitation, _ = issue(db, admin)

    assert invitation.organization_id == admin.organization_id


def test_staff_may_not_invite(db, staff):
    with pytest.raises(InsufficientPermissions):
        issue(db, staff)

    assert db.query(Invitation).count() == 0


def test_cannot_invite_registered_email(db, founder, staff):
    with pytest.raises(EmailAlreadyRegistered):
        issue(db, founder, email="STAFF@acme.example.com")


def test_founder_role_is_not_grantable(db, founder):
    with pytest.raises(ValueError):
        issue(db, founder, role="founder")


def test_failed_delivery_keeps_the_invitation(db, founder):
    invitation, delivery = issue(db, founder, sender=StubEmailSender(succeed=False))

    assert not delivery.success
    assert delivery.error
    db.expire_all()
    assert InvitationLedger.verify(db, invitation.token).id == invitation.id


def test_token_collision_is_retried(db, founder, monkeypatch):
    first, _ = issue(db, founder, email="first@example.com")
    fresh = "Z" * 12
    tokens = iter([first.token, fresh])
    monkeypatch.setattr(invitations_module, "generate_invite_token", lambda: next(tokens))

    second, _ = issue(db, founder, email="second@example.com")

    assert second.token == fresh
    assert db.query(Invitation).count() == 2


def test_verify_unknown_token(db):
    with pytest.raises(InvalidToken):
        InvitationLedger.verify(db, "doesnotexist")


def test_redeem_creates_user_with_invited_role(db, founder):
    invitation, _ = issue(db, founder, email="bob@example.com", role=InvitationRole.ADMIN)

    user = InvitationLedger.redeem(db, invitation.token, "Bob", "BOB@example.com", "password123")

    assert user.email == "bob@example.com"
    assert user.role == UserRole.ADMIN
    assert user.organization_id == founder.organization_id
    db.expire_all()
    stored = db.get(Invitation, invitation.id)
    assert stored.is_used is True
    assert stored.used_at is not None
    assert stored.status() == InvitationStatus.USED


def test_redeem_rejects_other_email(db, founder):
    invitation, _ = issue(db, founder, email="bob@example.com")

    with pytest.raises(EmailMismatch):
        InvitationLedger.redeem(db, invitation.token, "Rob", "rob@example.com", "password123")

    db.expire_all()
    assert db.get(Invitation, invitation.id).is_used is False


def test_redeem_twice(db, founder):
    invitation, _ = issue(db, founder)
    InvitationLedger.redeem(db, invitation.token, "Bob", "bob@example.com", "password123")

    with pytest.raises(TokenUsed):
        InvitationLedger.redeem(db, invitation.token, "Bob", "bob@example.com", "password123")

    assert db.query(User).filter(User.email == "bob@example.com").count() == 1


def test_expiry_is_reported_even_for_used_invitations(db, founder):
    invitation, _ = issue(db, founder)
    InvitationLedger.redeem(db, invitation.token, "Bob", "bob@example.com", "password123")

    stored = db.get(Invitation, invitation.id)
    stored.expires_at = utcnow() - timedelta(seconds=1)
    db.commit()

    with pytest.raises(TokenExpired):
        InvitationLedger.redeem(db, invitation.token, "Bob", "bob@example.com", "password123")


def test_expired_exactly_at_expiry():
    now = utcnow()
    invitation = Invitation(email="x@example.com", token="t", expires_at=now, is_used=False)

    assert invitation.is_expired(now)
    assert not invitation.is_expired(now - timedelta(microseconds=1))


def test_expired_invitation_cannot_be_redeemed(db, founder):
    invitation, _ = issue(db, founder)
    invitation.expires_at = utcnow() - timedelta(hours=1)
    db.commit()

    with pytest.raises(TokenExpired):
        InvitationLedger.redeem(db, invitation.token, "Bob", "bob@example.com", "password123")
    assert db.query(User).filter(User.email == "bob@example.com").count() == 0


def test_email_registered_after_issue_leaves_invitation_unused(db, founder, other_organization):
    invitation, _ = issue(db, founder)
    create_user(db, "bob@example.com", UserRole.FOUNDER, other_organization)

    with pytest.raises(EmailAlreadyRegistered):
        InvitationLedger.redeem(db, invitation.token, "Bob", "bob@example.com", "password123")

    db.expire_all()
    assert db.get(Invitation, invitation.id).is_used is False


def test_unique_index_race_rolls_back_the_claim(db, founder, other_organization, monkeypatch):
    """The pre-check passes but another request inserts the same email first."""
    invitation, _ = issue(db, founder)
    create_user(db, "bob@example.com", UserRole.FOUNDER, other_organization)
    monkeypatch.setattr(invitations_module, "email_registered", lambda session, email: False)

    with pytest.raises(EmailAlreadyRegistered):
        InvitationLedger.redeem(db, invitation.token, "Bob", "bob@example.com", "password123")

    db.expire_all()
    assert db.get(Invitation, invitation.id).is_used is False
    assert db.query(User).filter(User.email == "bob@example.com").count() == 1


def test_loser_of_interleaved_redeem_sees_token_used(db, session_factory, founder, monkeypatch):
    """Another session redeems the token between this session's lookup and its claim."""
    invitation, _ = issue(db, founder)
    real_get_by_token = InvitationLedger.get_by_token
    winner = {}

    def lookup_then_let_winner_commit(session, token):
        found = real_get_by_token(session, token)
        if "started" not in winner:
            winner["started"] = True
            winner_session = session_factory()
            try:
                winner["user"] = InvitationLedger.redeem(
                    winner_session, token, "Bob", "bob@example.com", "password123"
                )
            finally:
                winner_session.close()
        return found

    monkeypatch.setattr(InvitationLedger, "get_by_token", staticmethod(lookup_then_let_winner_commit))
    loser_session = session_factory()
    try:
        with pytest.raises(TokenUsed):
            InvitationLedger.redeem(loser_session, invitation.token, "Bob", "bob@example.com", "password123")
    finally:
        loser_session.close()

    assert winner["user"].email == "bob@example.com"
    assert db.query(User).filter(User.email == "bob@example.com").count() == 1


def test_emails_compare_casefolded():
    assert normalize_email("  Bob@Example.COM ") == "bob@example.com"
    assert normalize_email("STRASSE@example.com") == normalize_email("Straße@example.com")
