# tests/test_invites_service.py
"""
Invite workflow at service level (no HTTP): send, reissue, accept,
reject/expire/cancel and the lazy expiry sweep.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import event
from sqlmodel import Session, select

from app.errors import AuthorizationError, ConflictError, ValidationError
from app.models import AccountInvite, AccountRole, AuditAction, AuditLog, InviteStatus, Membership
from app.period import utcnow
from app.services.accounts import create_account
from app.services.invites import (
    accept_invite,
    cancel_invite,
    expire_invite,
    list_expired,
    list_received,
    list_sent,
    reject_invite,
    send_invite,
)


@pytest.fixture()
def world(db, outbox, make_user):
    owner = make_user("owner@test.com")
    guest = make_user("guest@test.com")
    account = create_account(db, outbox, owner, name="Household")
    outbox.flush()
    return owner, guest, account


def _audit_rows(engine):
    with Session(engine) as s:
        return s.exec(select(AuditLog).order_by(AuditLog.id)).all()


def test_send_creates_pending_invite(db, outbox, world, test_engine):
    owner, guest, account = world
    now = utcnow()

    invite = send_invite(
        db, outbox, owner, email="  Guest@Test.com ", account_id=account.id,
        role=AccountRole.ADMIN, now=now,
    )

    assert invite.status == InviteStatus.PENDING
    assert invite.email == "guest@test.com"
    assert len(invite.token) == 64
    assert invite.expires_at == now + timedelta(days=7)
    assert [e.action for e in outbox.pending] == [AuditAction.CREATE]

    outbox.flush()
    last = _audit_rows(test_engine)[-1]
    assert last.entity_type == "AccountInvite"
    assert last.entity_id == invite.id
    assert last.account_id == account.id
    assert last.old_data is None


def test_duplicate_live_invite_is_rejected(db, outbox, world):
    owner, _, account = world
    send_invite(db, outbox, owner, email="guest@test.com", account_id=account.id)

    with pytest.raises(ConflictError, match="Invite already exists."):
        send_invite(db, outbox, owner, email="GUEST@test.com", account_id=account.id)

    rows = db.exec(select(AccountInvite)).all()
    assert len(rows) == 1


def test_expired_invite_row_is_reissued(db, outbox, world):
    owner, _, account = world
    now = utcnow()
    first = send_invite(db, outbox, owner, email="guest@test.com", account_id=account.id, now=now)
    first_id, first_token = first.id, first.token

    later = now + timedelta(days=8)
    again = send_invite(
        db, outbox, owner, email="guest@test.com", account_id=account.id, now=later
    )

    assert again.id == first_id
    assert again.token != first_token
    assert again.status == InviteStatus.PENDING
    assert again.expires_at == later + timedelta(days=7)
    assert outbox.pending[-1].action == AuditAction.UPDATE
    assert outbox.pending[-1].old_data["token"] == first_token


def test_only_owner_may_send(db, outbox, world, make_user):
    owner, guest, account = world
    admin = make_user("admin@test.com")
    db.add(Membership(user_id=admin.user_id, account_id=account.id, role=AccountRole.ADMIN))
    db.commit()

    with pytest.raises(AuthorizationError):
        send_invite(db, outbox, admin, email="x@test.com", account_id=account.id)
    with pytest.raises(AuthorizationError, match="Not allowed."):
        send_invite(db, outbox, guest, email="x@test.com", account_id=account.id)


def test_cannot_invite_existing_member(db, outbox, world):
    owner, _, account = world
    with pytest.raises(ConflictError):
        send_invite(db, outbox, owner, email="owner@test.com", account_id=account.id)


def test_accept_creates_membership_with_invited_role(db, outbox, world):
    owner, guest, account = world
    invite = send_invite(
        db, outbox, owner, email="guest@test.com", account_id=account.id, role=AccountRole.ADMIN
    )
    outbox.flush()

    membership = accept_invite(db, outbox, guest, invite.token)

    assert membership.user_id == guest.user_id
    assert membership.account_id == account.id
    assert membership.role == AccountRole.ADMIN
    db.refresh(invite)
    assert invite.status == InviteStatus.ACCEPTED
    assert [(e.entity_type, e.action) for e in outbox.pending] == [
        ("AccountMember", AuditAction.CREATE),
        ("AccountInvite", AuditAction.UPDATE),
    ]


def test_accept_checks(db, outbox, world, make_user):
    owner, guest, account = world
    stranger = make_user("stranger@test.com")
    invite = send_invite(db, outbox, owner, email="guest@test.com", account_id=account.id)

    with pytest.raises(ValidationError, match="Invalid invite."):
        accept_invite(db, outbox, guest, "nope")
    with pytest.raises(AuthorizationError, match="This invite is not yours."):
        accept_invite(db, outbox, stranger, invite.token)

    accept_invite(db, outbox, guest, invite.token)
    # accepted is terminal: the token is no longer usable
    with pytest.raises(ValidationError):
        accept_invite(db, outbox, guest, invite.token)


def test_accept_after_expiry_marks_invite_expired(db, outbox, world, test_engine):
    owner, guest, account = world
    now = utcnow()
    invite = send_invite(db, outbox, owner, email="guest@test.com", account_id=account.id, now=now)
    outbox.flush()

    with pytest.raises(ConflictError, match="Invite expired."):
        accept_invite(db, outbox, guest, invite.token, now=now + timedelta(days=7, seconds=1))

    with Session(test_engine) as fresh:
        stored = fresh.get(AccountInvite, invite.id)
        assert stored.status == InviteStatus.EXPIRED
        assert fresh.exec(
            select(Membership).where(Membership.user_id == guest.user_id)
        ).first() is None
    assert outbox.pending[-1].action == AuditAction.UPDATE


def test_accept_is_all_or_nothing(db, outbox, world, test_engine):
    owner, guest, account = world
    invite = send_invite(db, outbox, owner, email="guest@test.com", account_id=account.id)
    outbox.flush()

    def _boom(session, flush_context):
        raise RuntimeError("disk full")

    event.listen(db, "after_flush", _boom)
    try:
        with pytest.raises(RuntimeError):
            accept_invite(db, outbox, guest, invite.token)
    finally:
        event.remove(db, "after_flush", _boom)

    with Session(test_engine) as fresh:
        assert fresh.get(AccountInvite, invite.id).status == InviteStatus.PENDING
        assert fresh.exec(
            select(Membership).where(Membership.user_id == guest.user_id)
        ).first() is None
    assert outbox.pending == []


def test_reject_does_not_check_status(db, outbox, world):
    owner, guest, account = world
    invite = send_invite(db, outbox, owner, email="guest@test.com", account_id=account.id)
    accept_invite(db, outbox, guest, invite.token)

    rejected = reject_invite(db, outbox, guest, invite.token)
    assert rejected.status == InviteStatus.CANCELLED


def test_inviter_expire_and_cancel(db, outbox, world, make_user):
    owner, guest, account = world
    other = make_user("other@test.com")
    invite = send_invite(db, outbox, owner, email="guest@test.com", account_id=account.id)

    with pytest.raises(AuthorizationError):
        expire_invite(db, outbox, other, invite.id)

    expired = expire_invite(db, outbox, owner, invite.id)
    assert expired.status == InviteStatus.EXPIRED
    with pytest.raises(ConflictError, match="Only pending invites can be expired."):
        expire_invite(db, outbox, owner, invite.id)

    # cancel works from any state
    cancelled = cancel_invite(db, outbox, owner, invite.id)
    assert cancelled.status == InviteStatus.CANCELLED


def test_listing_sweeps_overdue_invites(db, outbox, world):
    owner, guest, account = world
    past = utcnow() - timedelta(days=30)
    stale = send_invite(db, outbox, owner, email="guest@test.com", account_id=account.id, now=past)
    outbox.flush()

    assert list_received(db, guest) == []

    db.refresh(stale)
    assert stale.status == InviteStatus.EXPIRED
    assert [row[0].id for row in list_expired(db, owner)] == [stale.id]
    sent = list_sent(db, owner)
    assert len(sent) == 1
    invite, acc, inviter = sent[0]
    assert acc.id == account.id
    assert inviter.id == owner.user_id
    # the sweep itself is not audited
    assert outbox.pending == []
