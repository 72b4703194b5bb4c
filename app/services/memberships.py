# app/services/memberships.py
"""
Who belongs to which account, and with what role.

resolve_membership() is the single lookup every account-scoped operation
goes through before touching data. No membership means 403, not 404.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlmodel import Session, select

from app.audit import AuditOutbox, snapshot
from app.errors import AuthorizationError, NotFoundError
from app.models import AccountRole, AuditAction, Membership, User
from app.permissions import can_change_role, can_manage_members, can_remove_member
from app.security import AuthenticatedContext

ENTITY = "AccountMember"


def resolve_membership(
    session: Session, user_id: int, account_id: int
) -> Optional[Membership]:
    """Lookup on the (user_id, account_id) unique pair."""
    stmt = select(Membership).where(
        Membership.user_id == user_id, Membership.account_id == account_id
    )
    return session.exec(stmt).first()


def require_membership(
    session: Session,
    user_id: int,
    account_id: int,
    message: str = "You do not have access to this account.",
) -> Membership:
    membership = resolve_membership(session, user_id, account_id)
    if membership is None:
        raise AuthorizationError(message)
    return membership


def count_owners(session: Session, account_id: int) -> int:
    stmt = select(func.count()).select_from(Membership).where(
        Membership.account_id == account_id, Membership.role == AccountRole.OWNER
    )
    return session.exec(stmt).one()


def list_members(
    session: Session, ctx: AuthenticatedContext, account_id: int
) -> List[Tuple[Membership, User]]:
    """Members of the account with their user rows, oldest first."""
    require_membership(session, ctx.user_id, account_id, "Not allowed.")
    stmt = (
        select(Membership, User)
        .join(User, Membership.user_id == User.id)
        .where(Membership.account_id == account_id)
        .order_by(Membership.created_at, Membership.id)
    )
    return list(session.exec(stmt).all())


def _get_member_in_account(
    session: Session, account_id: int, member_id: int
) -> Membership:
    member = session.get(Membership, member_id)
    if not member or member.account_id != account_id:
        raise NotFoundError("Member not found in this account.")
    return member


def change_member_role(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    account_id: int,
    member_id: int,
    new_role: AccountRole,
) -> Membership:
    actor = require_membership(session, ctx.user_id, account_id)
    if not can_manage_members(actor.role):
        raise AuthorizationError("Only OWNER can update roles.")
    target = _get_member_in_account(session, account_id, member_id)

    can_change_role(actor, target, new_role, count_owners(session, account_id)).enforce()

    before = snapshot(target)
    target.role = new_role
    session.add(target)
    session.commit()
    session.refresh(target)

    audit.record(
        AuditAction.UPDATE, ENTITY, target.id, ctx.user_id, account_id,
        old=before, new=snapshot(target),
    )
    return target


def remove_member(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    account_id: int,
    member_id: int,
) -> None:
    actor = require_membership(session, ctx.user_id, account_id)
    if not can_manage_members(actor.role):
        raise AuthorizationError("Only OWNER can remove account members.")
    target = _get_member_in_account(session, account_id, member_id)

    can_remove_member(actor, target, count_owners(session, account_id)).enforce()

    before = snapshot(target)
    session.delete(target)
    session.commit()

    audit.record(AuditAction.DELETE, ENTITY, before["id"], ctx.user_id, account_id, old=before)
