# app/services/saving_goals.py
"""
Saving goals and the money moved in and out of them.

Balance checks run against the value read before the update; two moves
racing on the same goal can overshoot. No locking is attempted.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from sqlmodel import Session, select

from app.audit import AuditOutbox, snapshot
from app.errors import ConflictError, NotFoundError, ValidationError
from app.models import AuditAction, SavingGoal
from app.period import utcnow
from app.security import AuthenticatedContext
from app.services.memberships import require_membership

ENTITY = "SavingGoal"

ADD = "ADD"
REMOVE = "REMOVE"

Amount = Union[Decimal, float, int, str]


def _to_decimal(value: Amount) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def create_saving_goal(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    *,
    account_id: int,
    title: str,
    target_amount: Amount,
    deadline: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> SavingGoal:
    if not (title or "").strip() or target_amount is None:
        raise ValidationError("Missing required fields.")
    target = _to_decimal(target_amount)
    if target <= 0:
        raise ValidationError("Target amount must be greater than zero.")
    require_membership(session, ctx.user_id, account_id, "Access denied.")

    now = utcnow()
    goal = SavingGoal(
        account_id=account_id,
        title=title.strip(),
        target_amount=target,
        current_amount=Decimal("0"),
        deadline=deadline,
        notes=notes,
        created_by_id=ctx.user_id,
        created_at=now,
        updated_at=now,
    )
    session.add(goal)
    session.commit()
    session.refresh(goal)

    audit.record(AuditAction.CREATE, ENTITY, goal.id, ctx.user_id, account_id, new=snapshot(goal))
    return goal


def list_saving_goals(
    session: Session, ctx: AuthenticatedContext, account_id: int
) -> List[SavingGoal]:
    require_membership(session, ctx.user_id, account_id, "Access denied.")
    stmt = (
        select(SavingGoal)
        .where(SavingGoal.account_id == account_id)
        .order_by(SavingGoal.deadline.desc(), SavingGoal.id.desc())
    )
    return list(session.exec(stmt).all())


def get_saving_goal(
    session: Session, ctx: AuthenticatedContext, goal_id: int
) -> SavingGoal:
    goal = session.get(SavingGoal, goal_id)
    if not goal:
        raise NotFoundError("Saving goal not found.")
    require_membership(session, ctx.user_id, goal.account_id, "Access denied.")
    return goal


def move_money(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    goal_id: int,
    *,
    amount: Optional[Amount],
    type: str,
) -> SavingGoal:
    """
    ADD or REMOVE `amount` on the goal's current balance.
    REMOVE cannot go below zero; ADD cannot go past the target.
    """
    if amount is None or _to_decimal(amount) <= 0:
        raise ValidationError("Amount must be greater than zero.")
    if type not in (ADD, REMOVE):
        raise ValidationError("Invalid operation type.")
    amount = _to_decimal(amount)

    goal = get_saving_goal(session, ctx, goal_id)
    current = _to_decimal(goal.current_amount)

    if type == REMOVE and amount > current:
        raise ConflictError("Insufficient funds.")
    if type == ADD and current + amount > _to_decimal(goal.target_amount):
        raise ConflictError("Target amount exceeded.")

    before = snapshot(goal)
    goal.current_amount = current + amount if type == ADD else current - amount
    goal.updated_by_id = ctx.user_id
    goal.updated_at = utcnow()
    session.add(goal)
    session.commit()
    session.refresh(goal)

    audit.record(
        AuditAction.UPDATE, ENTITY, goal.id, ctx.user_id, goal.account_id,
        old=before, new=snapshot(goal),
    )
    return goal


def update_saving_goal(
    session: Session,
    audit: AuditOutbox,
    ctx: AuthenticatedContext,
    goal_id: int,
    changes: Dict[str, Any],
) -> SavingGoal:
    """Apply only the keys present in `changes` (title, target_amount, deadline, notes)."""
    goal = get_saving_goal(session, ctx, goal_id)
    before = snapshot(goal)

    for key in ("title", "target_amount", "deadline", "notes"):
        if key not in changes:
            continue
        value = changes[key]
        if key == "target_amount":
            if value is None or _to_decimal(value) <= 0:
                raise ValidationError("Target amount must be greater than zero.")
            value = _to_decimal(value)
        elif key == "title" and not (value or "").strip():
            raise ValidationError("Title cannot be empty.")
        setattr(goal, key, value)
    goal.updated_by_id = ctx.user_id
    goal.updated_at = utcnow()

    session.add(goal)
    session.commit()
    session.refresh(goal)

    audit.record(
        AuditAction.UPDATE, ENTITY, goal.id, ctx.user_id, goal.account_id,
        old=before, new=snapshot(goal),
    )
    return goal


def delete_saving_goal(
    session: Session, audit: AuditOutbox, ctx: AuthenticatedContext, goal_id: int
) -> None:
    goal = get_saving_goal(session, ctx, goal_id)
    before = snapshot(goal)
    session.delete(goal)
    session.commit()
    audit.record(
        AuditAction.DELETE, ENTITY, before["id"], ctx.user_id, before["account_id"], old=before
    )
