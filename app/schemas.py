# app/schemas.py
"""
Request/response shapes for the JSON API.

Wire names are camelCase (the frontend contract); Python attributes stay
snake_case. Table models are returned directly where no reshaping is needed.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from app.models import (
    AccountRole,
    AuditAction,
    AuthProvider,
    Category,
    Currency,
    Gender,
    InviteStatus,
    TransactionType,
)


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# ---------- Auth & users ----------


class LoginIn(ApiModel):
    email: str = ""
    password: str = ""


class GoogleLoginIn(ApiModel):
    credential: str


class DeleteMeIn(ApiModel):
    password: str = ""


class TokenOut(ApiModel):
    auth_token: str


class UserSummary(ApiModel):
    id: int
    name: str
    email: str
    image: Optional[str] = None


class UserRead(UserSummary):
    gender: Optional[Gender] = None
    provider: AuthProvider
    created_at: datetime
    updated_at: datetime


class MessageOut(BaseModel):
    message: str


# ---------- Accounts & members ----------


class AccountCreate(ApiModel):
    name: str = ""
    description: Optional[str] = None
    currency: Optional[Currency] = None


class AccountUpdate(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None
    currency: Optional[Currency] = None


class AccountRead(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    currency: Currency
    created_at: datetime
    updated_at: datetime


class MemberRead(ApiModel):
    id: int
    user_id: int
    account_id: int
    role: AccountRole
    created_at: datetime
    user: Optional[UserSummary] = None


class AccountDetail(AccountRead):
    users: List[MemberRead] = []


class RoleUpdate(ApiModel):
    role: AccountRole


# ---------- Invites ----------


class InviteCreate(ApiModel):
    email: EmailStr
    account_id: int
    role: AccountRole = AccountRole.MEMBER


class AccountBrief(ApiModel):
    id: int
    name: str
    currency: Currency


class InviteRead(ApiModel):
    id: int
    email: str
    account_id: int
    role: AccountRole
    token: str
    status: InviteStatus
    expires_at: datetime
    invited_by_id: int
    created_at: datetime
    updated_at: datetime
    account: Optional[AccountBrief] = None
    invited_by: Optional[UserSummary] = None


# ---------- Transactions ----------


class TransactionCreate(ApiModel):
    title: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    type: TransactionType
    category: Category
    notes: Optional[str] = None
    date: Optional[datetime] = None
    account_id: int


class TransactionUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[Decimal] = Field(default=None, gt=0)
    type: Optional[TransactionType] = None
    category: Optional[Category] = None
    notes: Optional[str] = None
    date: Optional[datetime] = None


class TransactionRead(ApiModel):
    id: int
    account_id: int
    title: str
    amount: Decimal
    type: TransactionType
    category: Category
    notes: Optional[str] = None
    date: datetime
    created_by_id: int
    updated_by_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class SummaryOut(ApiModel):
    total_income: float
    total_expense: float
    balance: float
    transaction_count: int
    period: str


class CategoryShare(ApiModel):
    category: Category
    total: float
    percentage: float


class AnalyticsOut(ApiModel):
    total_expenses: float
    categories: List[CategoryShare]


class DashboardOut(ApiModel):
    summary: SummaryOut
    analytics: AnalyticsOut
    latest_transactions: List[TransactionRead]


# ---------- Saving goals ----------


class SavingGoalCreate(ApiModel):
    title: str = Field(min_length=1)
    target_amount: Decimal = Field(gt=0)
    deadline: Optional[datetime] = None
    notes: Optional[str] = None
    account_id: int


class SavingGoalUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1)
    target_amount: Optional[Decimal] = Field(default=None, gt=0)
    deadline: Optional[datetime] = None
    notes: Optional[str] = None


class MoveMoneyIn(ApiModel):
    amount: Optional[Decimal] = None
    type: Literal["ADD", "REMOVE"]


class SavingGoalRead(ApiModel):
    id: int
    account_id: int
    title: str
    target_amount: Decimal
    current_amount: Decimal
    deadline: Optional[datetime] = None
    notes: Optional[str] = None
    created_by_id: int
    updated_by_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


# ---------- Audit ----------


class AuditLogRead(ApiModel):
    id: int
    action: AuditAction
    entity_type: str
    entity_id: int
    performed_by_id: int
    account_id: int
    old_data: Optional[dict[str, Any]] = None
    new_data: Optional[dict[str, Any]] = None
    created_at: datetime
    performed_by: Optional[UserSummary] = None
