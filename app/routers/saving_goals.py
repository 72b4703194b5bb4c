# app/routers/saving_goals.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.audit import AuditOutbox, get_audit_outbox
from app.db import get_session
from app.schemas import MessageOut, MoveMoneyIn, SavingGoalCreate, SavingGoalRead, SavingGoalUpdate
from app.security import AuthenticatedContext, get_current_context
from app.services import saving_goals as goal_service

router = APIRouter(prefix="/api/saving-goals", tags=["saving-goals"])


@router.post("", response_model=SavingGoalRead, status_code=status.HTTP_201_CREATED)
def create_goal(
    body: SavingGoalCreate,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    goal = goal_service.create_saving_goal(
        session,
        audit,
        ctx,
        account_id=body.account_id,
        title=body.title,
        target_amount=body.target_amount,
        deadline=body.deadline,
        notes=body.notes,
    )
    return SavingGoalRead.model_validate(goal)


@router.get("/account/{account_id}", response_model=List[SavingGoalRead])
def list_goals(
    account_id: int,
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    goals = goal_service.list_saving_goals(session, ctx, account_id)
    return [SavingGoalRead.model_validate(g) for g in goals]


@router.get("/{goal_id}", response_model=SavingGoalRead)
def get_goal(
    goal_id: int,
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    return SavingGoalRead.model_validate(goal_service.get_saving_goal(session, ctx, goal_id))


@router.put("/{goal_id}", response_model=SavingGoalRead)
def update_goal(
    goal_id: int,
    body: SavingGoalUpdate,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    goal = goal_service.update_saving_goal(
        session, audit, ctx, goal_id, body.model_dump(exclude_unset=True)
    )
    return SavingGoalRead.model_validate(goal)


@router.delete("/{goal_id}", response_model=MessageOut)
def delete_goal(
    goal_id: int,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    goal_service.delete_saving_goal(session, audit, ctx, goal_id)
    return MessageOut(message="Saving goal deleted successfully.")


@router.post("/{goal_id}/move-money", response_model=SavingGoalRead)
def move_money(
    goal_id: int,
    body: MoveMoneyIn,
    session: Session = Depends(get_session),
    audit: AuditOutbox = Depends(get_audit_outbox),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    goal = goal_service.move_money(
        session, audit, ctx, goal_id, amount=body.amount, type=body.type
    )
    return SavingGoalRead.model_validate(goal)
