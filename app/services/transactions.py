# app/services/transactions.py
"""
Service helpers for Transactions.

Why:
- Keep router code thin.
- Reading and creating only needs membership; changing or deleting a
  transaction needs ADMIN or OWNER.
- Summary/analytics/dashboard share one optional month filter.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import func
from sqlmodel import Session, select

from app.audit import AuditOutbox, snapshot
from app.errors import AuthorizationError, NotFoundError, ValidationError
from app.models import AuditAction, Category, Transaction, TransactionType
from app.period import month_range, period_label, utcnow
from app.permissions import can_mutate_transaction
from app.security import AuthenticatedContext
from app.services.memberships import require_membership

ENTITY = "Transaction"

LATEST_COUNT = 5

# NOT NULL columns an update may not blank out
REQUIRED_FIELDS = ("title", "amount", "type", "category")


def create_transaction(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    *,
    account_id: int,
    title: str,
    amount: Union[Decimal, float, str],
    type: Union[TransactionType, str],
    category: Union[Category, str],
    notes: Optional[str] = None,
    date: Optional[datetime] = None,
) -> Transaction:
    """
    Create a Transaction row and commit it.

    Plain words:
    - We accept enums OR their string names for type/category.
    - No date means "now".
    - We commit & refresh so the caller gets a real, persisted object with an id.
    """
    require_membership(session, ctx.user_id, account_id, "Access denied to this account.")

    if isinstance(type, str):
        type = TransactionType(type)
    if isinstance(category, str):
        category = Category(category)

    now = utcnow()
    txn = Transaction(
        account_id=account_id,
        title=title.strip(),
        amount=Decimal(str(amount)),
        type=type,
        category=category,
        notes=notes,
        date=date or now,
        created_by_id=ctx.user_id,
        created_at=now,
        updated_at=now,
    )
    session.add(txn)
    session.commit()
    session.refresh(txn)

    audit.record(AuditAction.CREATE, ENTITY, txn.id, ctx.user_id, account_id, new=snapshot(txn))
    return txn


def list_transactions(
    session: Session, ctx: AuthenticatedContext, account_id: int
) -> List[Transaction]:
    require_membership(session, ctx.user_id, account_id, "Access denied.")
    stmt = (
        select(Transaction)
        .where(Transaction.account_id == account_id)
        .order_by(Transaction.date.desc(), Transaction.id.desc())
    )
    return list(session.exec(stmt).all())


def _load(session: Session, ctx: AuthenticatedContext, txn_id: int):
    txn = session.get(Transaction, txn_id)
    if not txn:
        raise NotFoundError("Transaction not found.")
    membership = require_membership(session, ctx.user_id, txn.account_id, "Access denied.")
    return txn, membership


def get_transaction(
    session: Session, ctx: AuthenticatedContext, txn_id: int
) -> Transaction:
    txn, _ = _load(session, ctx, txn_id)
    return txn


def _get_for_mutation(
    session: Session, ctx: AuthenticatedContext, txn_id: int
) -> Transaction:
    txn, membership = _load(session, ctx, txn_id)
    if not can_mutate_transaction(membership.role):
        raise AuthorizationError("Insufficient permissions.")
    return txn


def update_transaction(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    txn_id: int,
    changes: Dict[str, Any],
) -> Transaction:
    """Apply only the keys present in `changes` (title, amount, type, ...)."""
    txn = _get_for_mutation(session, ctx, txn_id)
    before = snapshot(txn)

    for key in ("title", "amount", "type", "category", "notes", "date"):
        if key not in changes:
            continue
        value = changes[key]
        if key == "date" and value is None:
            continue  # date is mandatory; null means "leave as is"
        if value is None and key in REQUIRED_FIELDS:
            raise ValidationError(f"{key} cannot be empty.")
        if key == "amount":
            value = Decimal(str(value))
        setattr(txn, key, value)
    txn.updated_by_id = ctx.user_id
    txn.updated_at = utcnow()

    session.add(txn)
    session.commit()
    session.refresh(txn)

    audit.record(
        AuditAction.UPDATE, ENTITY, txn.id, ctx.user_id, txn.account_id,
        old=before, new=snapshot(txn),
    )
    return txn


def delete_transaction(
    session: Session, audit: AuditOutbox, ctx: AuthenticatedContext, txn_id: int
) -> None:
    txn = _get_for_mutation(session, ctx, txn_id)
    before = snapshot(txn)
    session.delete(txn)
    session.commit()
    audit.record(
        AuditAction.DELETE, ENTITY, before["id"], ctx.user_id, before["account_id"], old=before
    )


# ---------- Analytics ----------


def _scope(account_id: int, month: Optional[str], year: Optional[str]) -> list:
    conditions = [Transaction.account_id == account_id]
    bounds = month_range(month, year)
    if bounds:
        start, end = bounds
        conditions += [Transaction.date >= start, Transaction.date <= end]
    return conditions


def _summary(session: Session, account_id: int, month, year) -> Dict[str, Any]:
    conditions = _scope(account_id, month, year)
    rows = session.exec(
        select(Transaction.type, func.sum(Transaction.amount))
        .where(*conditions)
        .group_by(Transaction.type)
    ).all()
    totals = {t: float(total or 0) for t, total in rows}
    count = session.exec(
        select(func.count()).select_from(Transaction).where(*conditions)
    ).one()

    income = totals.get(TransactionType.INCOME, 0.0)
    expense = totals.get(TransactionType.EXPENSE, 0.0)
    return {
        "total_income": income,
        "total_expense": expense,
        "balance": income - expense,
        "transaction_count": count,
        "period": period_label(month, year),
    }


def _category_analytics(session: Session, account_id: int, month, year) -> Dict[str, Any]:
    conditions = _scope(account_id, month, year) + [
        Transaction.type == TransactionType.EXPENSE
    ]
    total_col = func.sum(Transaction.amount)
    rows = session.exec(
        select(Transaction.category, total_col)
        .where(*conditions)
        .group_by(Transaction.category)
        .order_by(total_col.desc())
    ).all()

    total_expenses = sum(float(total or 0) for _, total in rows)
    categories = [
        {
            "category": category,
            "total": float(total or 0),
            "percentage": (
                round(float(total or 0) / total_expenses * 100, 2) if total_expenses > 0 else 0
            ),
        }
        for category, total in rows
    ]
    return {"total_expenses": total_expenses, "categories": categories}


def account_summary(
    session: Session,
    ctx: AuthenticatedContext,
    account_id: int,
    month: Optional[str] = None,
    year: Optional[str] = None,
) -> Dict[str, Any]:
    """Income, expense, balance and count; all-time unless month+year given."""
    require_membership(session, ctx.user_id, account_id, "Access denied.")
    return _summary(session, account_id, month, year)


def category_analytics(
    session: Session,
    ctx: AuthenticatedContext,
    account_id: int,
    month: Optional[str] = None,
    year: Optional[str] = None,
) -> Dict[str, Any]:
    """Expense totals per category, largest first, with share of all expenses."""
    require_membership(session, ctx.user_id, account_id, "Access denied.")
    return _category_analytics(session, account_id, month, year)


def dashboard(
    session: Session,
    ctx: AuthenticatedContext,
    account_id: int,
    month: Optional[str] = None,
    year: Optional[str] = None,
) -> Dict[str, Any]:
    require_membership(session, ctx.user_id, account_id, "Access denied.")
    latest = session.exec(
        select(Transaction)
        .where(*_scope(account_id, month, year))
        .order_by(Transaction.date.desc(), Transaction.id.desc())
        .limit(LATEST_COUNT)
    ).all()
    return {
        "summary": _summary(session, account_id, month, year),
        "analytics": _category_analytics(session, account_id, month, year),
        "latest_transactions": list(latest),
    }
