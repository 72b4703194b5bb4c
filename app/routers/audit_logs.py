# app/routers/audit_logs.py
# Read-only view of an account's audit trail. Any member may read it.

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.db import get_session
from app.errors import ValidationError
from app.models import AuditAction
from app.period import parse_datetime
from app.schemas import AuditLogRead, UserSummary
from app.security import AuthenticatedContext, get_current_context
from app.services import audit_logs as audit_service
from app.services.audit_logs import AuditRow

router = APIRouter(prefix="/api/accounts/{account_id}/audit-logs", tags=["audit"])


def _log_out(row: AuditRow) -> AuditLogRead:
    log, user = row
    out = AuditLogRead.model_validate(log)
    out.performed_by = UserSummary.model_validate(user) if user else None
    return out


def _date_filter(value: Optional[str]):
    if not value:
        return None
    try:
        return parse_datetime(value)
    except ValueError:
        raise ValidationError(f"Invalid date: {value}")


@router.get("", response_model=List[AuditLogRead])
def list_logs(
    account_id: int,
    action: Optional[AuditAction] = None,
    entity_type: Optional[str] = Query(None, alias="entityType"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    rows = audit_service.list_audit_logs(
        session,
        ctx,
        account_id,
        action=action,
        entity_type=entity_type,
        start_date=_date_filter(start_date),
        end_date=_date_filter(end_date),
    )
    return [_log_out(r) for r in rows]


@router.get("/{log_id}", response_model=AuditLogRead)
def get_log(
    account_id: int,
    log_id: int,
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    return _log_out(audit_service.get_audit_log(session, ctx, account_id, log_id))
