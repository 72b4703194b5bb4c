# app/routers/accounts.py
# Accounts the caller belongs to, plus member management under
# /api/accounts/{account_id}/members.

from typing import List

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.audit import AuditOutbox, get_audit_outbox
from app.db import get_session
from app.models import Membership, User
from app.schemas import (
    AccountCreate,
    AccountDetail,
    AccountRead,
    AccountUpdate,
    MemberRead,
    MessageOut,
    RoleUpdate,
    UserSummary,
)
from app.security import AuthenticatedContext, get_current_context
from app.services import accounts as account_service
from app.services import memberships as member_service

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


def _member_out(member: Membership, user: User) -> MemberRead:
    out = MemberRead.model_validate(member)
    out.user = UserSummary.model_validate(user)
    return out


@router.get("", response_model=List[AccountRead])
def list_accounts(
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    return [AccountRead.model_validate(a) for a in account_service.list_accounts(session, ctx)]


@router.post("", response_model=AccountRead, status_code=status.HTTP_201_CREATED)
def create_account(
    body: AccountCreate,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    account = account_service.create_account(
        session, audit, ctx,
        name=body.name, description=body.description, currency=body.currency,
    )
    return AccountRead.model_validate(account)


@router.get("/{account_id}", response_model=AccountDetail)
def get_account(
    account_id: int,
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    account, members = account_service.get_account(session, ctx, account_id)
    out = AccountDetail.model_validate(account)
    out.users = [_member_out(m, u) for m, u in members]
    return out


@router.put("/{account_id}", response_model=AccountRead)
def update_account(
    account_id: int,
    body: AccountUpdate,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    account = account_service.update_account(
        session, audit, ctx, account_id, body.model_dump(exclude_unset=True)
    )
    return AccountRead.model_validate(account)


@router.delete("/{account_id}", response_model=MessageOut)
def delete_account(
    account_id: int,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    account_service.delete_account(session, audit, ctx, account_id)
    return MessageOut(message="Account deleted successfully.")


# ---------- Members ----------


@router.get("/{account_id}/members", response_model=List[MemberRead])
def list_members(
    account_id: int,
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    return [_member_out(m, u) for m, u in member_service.list_members(session, ctx, account_id)]


@router.patch("/{account_id}/members/{member_id}", response_model=MemberRead)
def update_member_role(
    account_id: int,
    member_id: int,
    body: RoleUpdate,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    member = member_service.change_member_role(
        session, audit, ctx, account_id, member_id, body.role
    )
    return MemberRead.model_validate(member)


@router.delete("/{account_id}/members/{member_id}", response_model=MessageOut)
def remove_member(
    account_id: int,
    member_id: int,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    member_service.remove_member(session, audit, ctx, account_id, member_id)
    return MessageOut(message="Member removed.")
