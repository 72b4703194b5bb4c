# app/routers/transactions.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.audit import AuditOutbox, get_audit_outbox
from app.db import get_session
from app.schemas import (
    AnalyticsOut,
    DashboardOut,
    MessageOut,
    SummaryOut,
    TransactionCreate,
    TransactionRead,
    TransactionUpdate,
)
from app.security import AuthenticatedContext, get_current_context
from app.services import transactions as txn_service

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.post("", response_model=TransactionRead, status_code=status.HTTP_201_CREATED)
def create_transaction(
    body: TransactionCreate,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    txn = txn_service.create_transaction(
        session,
        audit,
        ctx,
        account_id=body.account_id,
        title=body.title,
        amount=body.amount,
        type=body.type,
        category=body.category,
        notes=body.notes,
        date=body.date,
    )
    return TransactionRead.model_validate(txn)


@router.get("/account/{account_id}", response_model=List[TransactionRead])
def list_transactions(
    account_id: int,
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    txns = txn_service.list_transactions(session, ctx, account_id)
    return [TransactionRead.model_validate(t) for t in txns]


# month/year arrive as raw strings; anything unusable means all time
@router.get("/summary/{account_id}", response_model=SummaryOut)
def summary(
    account_id: int,
    month: Optional[str] = None,
    year: Optional[str] = None,
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    return SummaryOut(**txn_service.account_summary(session, ctx, account_id, month, year))


@router.get("/analytics/{account_id}", response_model=AnalyticsOut)
def analytics(
    account_id: int,
    month: Optional[str] = None,
    year: Optional[str] = None,
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    return AnalyticsOut(**txn_service.category_analytics(session, ctx, account_id, month, year))


@router.get("/dashboard/{account_id}", response_model=DashboardOut)
def dashboard(
    account_id: int,
    month: Optional[str] = None,
    year: Optional[str] = None,
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    data = txn_service.dashboard(session, ctx, account_id, month, year)
    return DashboardOut(
        summary=SummaryOut(**data["summary"]),
        analytics=AnalyticsOut(**data["analytics"]),
        latest_transactions=[
            TransactionRead.model_validate(t) for t in data["latest_transactions"]
        ],
    )


@router.get("/{txn_id}", response_model=TransactionRead)
def get_transaction(
    txn_id: int,
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    return TransactionRead.model_validate(txn_service.get_transaction(session, ctx, txn_id))


@router.put("/{txn_id}", response_model=TransactionRead)
def update_transaction(
    txn_id: int,
    body: TransactionUpdate,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    txn = txn_service.update_transaction(
        session, audit, ctx, txn_id, body.model_dump(exclude_unset=True)
    )
    return TransactionRead.model_validate(txn)


@router.delete("/{txn_id}", response_model=MessageOut)
def delete_transaction(
    txn_id: int,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    txn_service.delete_transaction(session, audit, ctx, txn_id)
    return MessageOut(message="Transaction deleted successfully.")
