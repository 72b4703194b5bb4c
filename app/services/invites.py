# app/services/invites.py
"""
Invite workflow: send, list (with lazy expiry), accept, reject, expire, cancel.

Status rules live in app.invite_lifecycle; this module adds who may do what
and persistence. Every stored transition is audited except the batch expiry
run before list reads.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.audit import AuditOutbox, snapshot
from app.config import get_settings
from app.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from app.invite_lifecycle import (
    expiry_from,
    is_expired,
    is_live,
    new_token,
    reissue,
    transition,
)
from app.models import (
    Account,
    AccountInvite,
    AccountRole,
    AuditAction,
    InviteStatus,
    Membership,
    User,
)
from app.period import utcnow
from app.permissions import can_manage_members
from app.security import AuthenticatedContext
from app.services.memberships import ENTITY as MEMBER_ENTITY
from app.services.memberships import require_membership, resolve_membership

logger = logging.getLogger("ledger.invites")

ENTITY = "AccountInvite"

InviteRow = Tuple[AccountInvite, Account, Optional[User]]


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _find_by_token(session: Session, token: str) -> Optional[AccountInvite]:
    return session.exec(select(AccountInvite).where(AccountInvite.token == token)).first()


# ---------- send ----------


def send_invite(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    *,
    email: str,
    account_id: int,
    role: AccountRole = AccountRole.MEMBER,
    now: Optional[datetime] = None,
) -> AccountInvite:
    """
    Create a PENDING invite, or reissue the dead row for the same
    (email, account). A live invite for the pair is a 400.
    """
    now = now or utcnow()
    email = _normalize_email(email)
    if not email:
        raise ValidationError("Email is required.")

    membership = require_membership(session, ctx.user_id, account_id, "Not allowed.")
    if not can_manage_members(membership.role):
        raise AuthorizationError("Only OWNER can invite members.")

    existing = session.exec(
        select(AccountInvite).where(
            AccountInvite.email == email, AccountInvite.account_id == account_id
        )
    ).first()
    if existing and is_live(existing, now):
        raise ConflictError("Invite already exists.")

    invitee = session.exec(select(User).where(User.email == email)).first()
    if invitee and resolve_membership(session, invitee.id, account_id):
        raise ConflictError("User is already a member of this account.")

    days = get_settings().invite_expire_days
    if existing:
        before = snapshot(existing)
        invite = reissue(existing, now, days)
        invite.role = role
        invite.invited_by_id = ctx.user_id
        action = AuditAction.UPDATE
    else:
        before = None
        invite = AccountInvite(
            email=email,
            account_id=account_id,
            role=role,
            token=new_token(),
            status=InviteStatus.PENDING,
            expires_at=expiry_from(now, days),
            invited_by_id=ctx.user_id,
            created_at=now,
            updated_at=now,
        )
        action = AuditAction.CREATE

    session.add(invite)
    try:
        session.commit()
    except IntegrityError:
        # a concurrent send won the unique (email, account) slot
        session.rollback()
        raise ConflictError("Invite already exists.")
    session.refresh(invite)

    audit.record(
        action, ENTITY, invite.id, ctx.user_id, account_id,
        old=before, new=snapshot(invite),
    )
    return invite


# ---------- lazy expiry + listings ----------


def sweep_expired(
    session: Session,
    *,
    email: Optional[str] = None,
    invited_by_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> int:
    """
    Flip every overdue PENDING invite matching the filter to EXPIRED in one
    statement. Runs right before the list reads; not audited.
    """
    now = now or utcnow()
    stmt = (
        update(AccountInvite)
        .where(AccountInvite.status == InviteStatus.PENDING, AccountInvite.expires_at < now)
        .values(status=InviteStatus.EXPIRED, updated_at=now)
    )
    if email is not None:
        stmt = stmt.where(AccountInvite.email == _normalize_email(email))
    if invited_by_id is not None:
        stmt = stmt.where(AccountInvite.invited_by_id == invited_by_id)
    result = session.exec(stmt)
    session.commit()
    if result.rowcount:
        logger.info("Expired %s pending invite(s)", result.rowcount)
    return result.rowcount


def _invite_rows(session: Session, *conditions, order_by) -> List[InviteRow]:
    stmt = (
        select(AccountInvite, Account, User)
        .join(Account, AccountInvite.account_id == Account.id)
        .join(User, AccountInvite.invited_by_id == User.id, isouter=True)
        .where(*conditions)
        .order_by(order_by, AccountInvite.id.desc())
    )
    return list(session.exec(stmt).all())


def list_received(
    session: Session, ctx: AuthenticatedContext, now: Optional[datetime] = None
) -> List[InviteRow]:
    """PENDING invites addressed to the caller's email, newest first."""
    email = _normalize_email(ctx.email)
    sweep_expired(session, email=email, now=now)
    return _invite_rows(
        session,
        AccountInvite.email == email,
        AccountInvite.status == InviteStatus.PENDING,
        order_by=AccountInvite.created_at.desc(),
    )


def list_sent(
    session: Session, ctx: AuthenticatedContext, now: Optional[datetime] = None
) -> List[InviteRow]:
    """Every invite the caller sent, any status, newest first."""
    sweep_expired(session, invited_by_id=ctx.user_id, now=now)
    return _invite_rows(
        session,
        AccountInvite.invited_by_id == ctx.user_id,
        order_by=AccountInvite.created_at.desc(),
    )


def list_expired(
    session: Session, ctx: AuthenticatedContext, now: Optional[datetime] = None
) -> List[InviteRow]:
    """EXPIRED invites the caller sent, most recently expired first."""
    sweep_expired(session, invited_by_id=ctx.user_id, now=now)
    return _invite_rows(
        session,
        AccountInvite.invited_by_id == ctx.user_id,
        AccountInvite.status == InviteStatus.EXPIRED,
        order_by=AccountInvite.updated_at.desc(),
    )


# ---------- recipient actions ----------


def _save_transition(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    invite: AccountInvite,
    target: InviteStatus,
    now: datetime,
    *,
    guarded: bool,
) -> AccountInvite:
    before = snapshot(invite)
    transition(invite, target, now, guarded=guarded)
    session.add(invite)
    session.commit()
    session.refresh(invite)
    audit.record(
        AuditAction.UPDATE, ENTITY, invite.id, ctx.user_id, invite.account_id,
        old=before, new=snapshot(invite),
    )
    return invite


def accept_invite(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    token: str,
    now: Optional[datetime] = None,
) -> Membership:
    """
    Join the account with the invited role. The membership insert and the
    ACCEPTED status are committed together or not at all.
    """
    now = now or utcnow()
    invite = _find_by_token(session, token)
    if not invite or invite.status != InviteStatus.PENDING:
        raise ValidationError("Invalid invite.")
    if invite.email != _normalize_email(ctx.email):
        raise AuthorizationError("This invite is not yours.")
    if is_expired(invite, now):
        _save_transition(session, audit, ctx, invite, InviteStatus.EXPIRED, now, guarded=True)
        raise ConflictError("Invite expired.")
    if resolve_membership(session, ctx.user_id, invite.account_id):
        raise ConflictError("Already a member.")

    before = snapshot(invite)
    membership = Membership(user_id=ctx.user_id, account_id=invite.account_id, role=invite.role)
    try:
        session.add(membership)
        transition(invite, InviteStatus.ACCEPTED, now)
        session.add(invite)
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(membership)
    session.refresh(invite)

    audit.record(
        AuditAction.CREATE, MEMBER_ENTITY, membership.id, ctx.user_id, invite.account_id,
        new=snapshot(membership),
    )
    audit.record(
        AuditAction.UPDATE, ENTITY, invite.id, ctx.user_id, invite.account_id,
        old=before, new=snapshot(invite),
    )
    return membership


def reject_invite(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    token: str,
    now: Optional[datetime] = None,
) -> AccountInvite:
    """Recipient declines. Ends as CANCELLED; the current status is not checked."""
    invite = _find_by_token(session, token)
    if not invite:
        raise NotFoundError("Invite not found.")
    if invite.email != _normalize_email(ctx.email):
        raise AuthorizationError("Not allowed.")
    return _save_transition(
        session, audit, ctx, invite, InviteStatus.CANCELLED, now or utcnow(), guarded=False
    )


# ---------- inviter actions ----------


def _get_own_invite(session: Session, ctx: AuthenticatedContext, invite_id: int) -> AccountInvite:
    invite = session.get(AccountInvite, invite_id)
    if not invite:
        raise NotFoundError("Invite not found.")
    if invite.invited_by_id != ctx.user_id:
        raise AuthorizationError("Not allowed.")
    return invite


def expire_invite(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    invite_id: int,
    now: Optional[datetime] = None,
) -> AccountInvite:
    invite = _get_own_invite(session, ctx, invite_id)
    if invite.status != InviteStatus.PENDING:
        raise ConflictError("Only pending invites can be expired.")
    return _save_transition(
        session, audit, ctx, invite, InviteStatus.EXPIRED, now or utcnow(), guarded=True
    )


def cancel_invite(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    invite_id: int,
    now: Optional[datetime] = None,
) -> AccountInvite:
    """Inviter withdraws the invite, whatever its status."""
    invite = _get_own_invite(session, ctx, invite_id)
    return _save_transition(
        session, audit, ctx, invite, InviteStatus.CANCELLED, now or utcnow(), guarded=False
    )
