# app/services/audit_logs.py
"""Read side of the audit trail: account-scoped, newest first."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from sqlmodel import Session, select

from app.errors import NotFoundError
from app.models import AuditAction, AuditLog, User
from app.security import AuthenticatedContext
from app.services.memberships import require_membership

AuditRow = Tuple[AuditLog, Optional[User]]


def list_audit_logs(
    session: Session,
    ctx: AuthenticatedContext,
    account_id: int,
    *,
    action: Optional[AuditAction] = None,
    entity_type: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> List[AuditRow]:
    require_membership(session, ctx.user_id, account_id)

    stmt = (
        select(AuditLog, User)
        .join(User, AuditLog.performed_by_id == User.id, isouter=True)
        .where(AuditLog.account_id == account_id)
    )
    if action is not None:
        stmt = stmt.where(AuditLog.action == action)
    if entity_type:
        stmt = stmt.where(AuditLog.entity_type == entity_type)
    if start_date is not None:
        stmt = stmt.where(AuditLog.created_at >= start_date)
    if end_date is not None:
        stmt = stmt.where(AuditLog.created_at <= end_date)

    stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    return list(session.exec(stmt).all())


def get_audit_log(
    session: Session, ctx: AuthenticatedContext, account_id: int, log_id: int
) -> AuditRow:
    require_membership(session, ctx.user_id, account_id)
    row = session.exec(
        select(AuditLog, User)
        .join(User, AuditLog.performed_by_id == User.id, isouter=True)
        .where(AuditLog.id == log_id, AuditLog.account_id == account_id)
    ).first()
    if row is None:
        raise NotFoundError("Audit log not found.")
    return row
