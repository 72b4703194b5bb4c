# app/services/accounts.py
"""
Account CRUD.

Why:
- The account is the tenancy root: creating one makes the caller its OWNER,
  deleting one removes everything scoped to it (audit logs excepted).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete
from sqlmodel import Session, select

from app.audit import AuditOutbox, snapshot
from app.errors import AuthorizationError, NotFoundError, ValidationError
from app.models import (
    Account,
    AccountInvite,
    AccountRole,
    AuditAction,
    Currency,
    Membership,
    SavingGoal,
    Transaction,
    User,
)
from app.period import utcnow
from app.permissions import can_delete_account, can_update_account
from app.security import AuthenticatedContext
from app.services.memberships import require_membership, resolve_membership

ENTITY = "Account"


def list_accounts(session: Session, ctx: AuthenticatedContext) -> List[Account]:
    stmt = (
        select(Account)
        .join(Membership, Membership.account_id == Account.id)
        .where(Membership.user_id == ctx.user_id)
        .order_by(Account.created_at, Account.id)
    )
    return list(session.exec(stmt).all())


def get_account(
    session: Session, ctx: AuthenticatedContext, account_id: int
) -> Tuple[Account, List[Tuple[Membership, User]]]:
    """The account plus its members (with user rows)."""
    require_membership(session, ctx.user_id, account_id)
    account = session.get(Account, account_id)
    if not account:
        raise NotFoundError("Account not found.")
    members = session.exec(
        select(Membership, User)
        .join(User, Membership.user_id == User.id)
        .where(Membership.account_id == account_id)
        .order_by(Membership.created_at, Membership.id)
    ).all()
    return account, list(members)


def create_account(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    *,
    name: str,
    description: Optional[str] = None,
    currency: Optional[Currency] = None,
) -> Account:
    """Create the account and the caller's OWNER membership in one commit."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Account name is required.")

    account = Account(name=name, description=description, currency=currency or Currency.EUR)
    session.add(account)
    session.flush()  # need account.id for the membership
    session.add(Membership(user_id=ctx.user_id, account_id=account.id, role=AccountRole.OWNER))
    session.commit()
    session.refresh(account)

    audit.record(
        AuditAction.CREATE, ENTITY, account.id, ctx.user_id, account.id,
        new=snapshot(account),
    )
    return account


def update_account(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    account_id: int,
    changes: Dict[str, Any],
) -> Account:
    """
    Apply the given fields (name/description/currency). Keys that are absent
    are left alone; an empty dict is a 400.
    """
    membership = resolve_membership(session, ctx.user_id, account_id)
    if membership is None or not can_update_account(membership.role):
        raise AuthorizationError("You do not have permission to update this account.")

    allowed = {k: v for k, v in changes.items() if k in ("name", "description", "currency")}
    if allowed.get("currency", "") is None:
        del allowed["currency"]  # currency is mandatory; null means "leave as is"
    if not allowed:
        raise ValidationError("No data provided to update.")
    if "name" in allowed and not (allowed["name"] or "").strip():
        raise ValidationError("Account name is required.")

    account = session.get(Account, account_id)
    if not account:
        raise NotFoundError("Account not found.")

    before = snapshot(account)
    for key, value in allowed.items():
        setattr(account, key, value)
    account.updated_at = utcnow()
    session.add(account)
    session.commit()
    session.refresh(account)

    audit.record(
        AuditAction.UPDATE, ENTITY, account.id, ctx.user_id, account.id,
        old=before, new=snapshot(account),
    )
    return account


def delete_account(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    account_id: int,
) -> None:
    membership = resolve_membership(session, ctx.user_id, account_id)
    if membership is None or not can_delete_account(membership.role):
        raise AuthorizationError("Only the OWNER can delete this account.")

    account = session.get(Account, account_id)
    if not account:
        raise NotFoundError("Account not found.")
    before = snapshot(account)

    # dependents first; audit logs are kept on purpose
    for model in (Transaction, SavingGoal, AccountInvite, Membership):
        session.exec(delete(model).where(model.account_id == account_id))
    session.delete(account)
    session.commit()

    audit.record(AuditAction.DELETE, ENTITY, account_id, ctx.user_id, account_id, old=before)
