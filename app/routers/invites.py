# app/routers/invites.py
# Invite endpoints. Listing reads sweep overdue PENDING invites to EXPIRED
# before answering, so clients never see a stale PENDING.

from typing import List

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.audit import AuditOutbox, get_audit_outbox
from app.db import get_session
from app.schemas import AccountBrief, InviteCreate, InviteRead, MemberRead, UserSummary
from app.security import AuthenticatedContext, get_current_context
from app.services import invites as invite_service
from app.services.invites import InviteRow

router = APIRouter(prefix="/api/invites", tags=["invites"])


def _invite_out(row: InviteRow) -> InviteRead:
    invite, account, inviter = row
    out = InviteRead.model_validate(invite)
    out.account = AccountBrief.model_validate(account)
    out.invited_by = UserSummary.model_validate(inviter) if inviter else None
    return out


@router.get("/received", response_model=List[InviteRead])
def received(
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    return [_invite_out(r) for r in invite_service.list_received(session, ctx)]


@router.get("/sent", response_model=List[InviteRead])
def sent(
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    return [_invite_out(r) for r in invite_service.list_sent(session, ctx)]


@router.get("/expired", response_model=List[InviteRead])
def expired(
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    return [_invite_out(r) for r in invite_service.list_expired(session, ctx)]


@router.post("", response_model=InviteRead, status_code=status.HTTP_201_CREATED)
def send(
    body: InviteCreate,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    invite = invite_service.send_invite(
        session, audit, ctx, email=body.email, account_id=body.account_id, role=body.role
    )
    return InviteRead.model_validate(invite)


@router.post("/{token}/accept", response_model=MemberRead)
def accept(
    token: str,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    membership = invite_service.accept_invite(session, audit, ctx, token)
    return MemberRead.model_validate(membership)


@router.post("/{token}/reject", response_model=InviteRead)
def reject(
    token: str,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    return InviteRead.model_validate(invite_service.reject_invite(session, audit, ctx, token))


@router.patch("/{invite_id}/expire", response_model=InviteRead)
def expire(
    invite_id: int,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    return InviteRead.model_validate(invite_service.expire_invite(session, audit, ctx, invite_id))


@router.patch("/{invite_id}/cancel", response_model=InviteRead)
def cancel(
    invite_id: int,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    return InviteRead.model_validate(invite_service.cancel_invite(session, audit, ctx, invite_id))


@router.delete("/{invite_id}", response_model=InviteRead)
def delete(
    invite_id: int,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    # same as PATCH /cancel; the row stays so its (email, account) slot can be reissued
    return InviteRead.model_validate(invite_service.cancel_invite(session, audit, ctx, invite_id))
