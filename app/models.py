# app/models.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel, UniqueConstraint

from app.period import utcnow

# ---------- Enums (stored as their names) ----------


class AuthProvider(str, Enum):
    LOCAL = "LOCAL"
    GOOGLE = "GOOGLE"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class Currency(str, Enum):
    EUR = "EUR"
    USD = "USD"
    GBP = "GBP"
    BRL = "BRL"
    CHF = "CHF"


class AccountRole(str, Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class InviteStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Category(str, Enum):
    SALARY = "SALARY"
    INVESTMENT = "INVESTMENT"
    FOOD = "FOOD"
    HOUSING = "HOUSING"
    UTILITIES = "UTILITIES"
    TRANSPORT = "TRANSPORT"
    HEALTH = "HEALTH"
    EDUCATION = "EDUCATION"
    ENTERTAINMENT = "ENTERTAINMENT"
    SHOPPING = "SHOPPING"
    OTHER = "OTHER"


# ---------- Tables ----------


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True)  # always stored lowercased
    hashed_password: Optional[str] = None  # None for OAuth-only users
    provider: AuthProvider = Field(default=AuthProvider.LOCAL)
    gender: Optional[Gender] = None
    image: Optional[str] = None
    image_public_id: Optional[str] = None  # image host handle, needed to delete
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)


class Account(SQLModel, table=True):
    """A shared financial workspace; the tenancy root for everything below."""

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    currency: Currency = Field(default=Currency.EUR)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Membership(SQLModel, table=True):
    __tablename__ = "account_member"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True, foreign_key="user.id")
    account_id: int = Field(index=True, foreign_key="account.id")
    role: AccountRole = Field(default=AccountRole.MEMBER, index=True)
    created_at: datetime = Field(default_factory=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "account_id", name="uq_member_user_account"),
    )


class AccountInvite(SQLModel, table=True):
    __tablename__ = "account_invite"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True)  # invitee; may not be a User yet
    account_id: int = Field(index=True, foreign_key="account.id")
    role: AccountRole = Field(default=AccountRole.MEMBER)  # granted on accept
    token: str = Field(index=True, unique=True)
    status: InviteStatus = Field(default=InviteStatus.PENDING, index=True)
    expires_at: datetime
    invited_by_id: int = Field(index=True, foreign_key="user.id")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # one row per (email, account); re-sending reuses it
    __table_args__ = (
        UniqueConstraint("email", "account_id", name="uq_invite_email_account"),
    )


class AuditLog(SQLModel, table=True):
    """
    Append-only record of a mutation. Never updated or deleted.
    No foreign keys: logs outlive the accounts and users they mention.
    """

    __tablename__ = "audit_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    action: AuditAction = Field(index=True)
    entity_type: str = Field(index=True)  # "Account", "SavingGoal", ...
    entity_id: int
    performed_by_id: int = Field(index=True)
    account_id: int = Field(index=True)
    old_data: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    new_data: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow, index=True)


class Transaction(SQLModel, table=True):
    """A single real-life entry of money moving in/out of an account."""

    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: int = Field(index=True, foreign_key="account.id")

    title: str
    amount: Decimal = Field(max_digits=12, decimal_places=2)
    type: TransactionType = Field(index=True)
    category: Category = Field(index=True)
    notes: Optional[str] = None
    date: datetime = Field(default_factory=utcnow, index=True)

    created_by_id: int = Field(index=True)  # plain id: history survives user deletion
    updated_by_id: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class SavingGoal(SQLModel, table=True):
    __tablename__ = "saving_goal"

    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: int = Field(index=True, foreign_key="account.id")

    title: str
    target_amount: Decimal = Field(max_digits=12, decimal_places=2)
    current_amount: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    deadline: Optional[datetime] = None
    notes: Optional[str] = None

    created_by_id: int = Field(index=True)  # plain id: history survives user deletion
    updated_by_id: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
