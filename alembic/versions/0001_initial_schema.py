"""Initial schema: users, accounts, members, invites, audit log, transactions, saving goals.

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# enum columns store the member names
auth_provider = sa.Enum("LOCAL", "GOOGLE", name="authprovider")
gender = sa.Enum("MALE", "FEMALE", "OTHER", name="gender")
currency = sa.Enum("EUR", "USD", "GBP", "BRL", "CHF", name="currency")
account_role = sa.Enum("OWNER", "ADMIN", "MEMBER", name="accountrole")
invite_status = sa.Enum("PENDING", "ACCEPTED", "EXPIRED", "CANCELLED", name="invitestatus")
audit_action = sa.Enum("CREATE", "UPDATE", "DELETE", name="auditaction")
transaction_type = sa.Enum("INCOME", "EXPENSE", name="transactiontype")
category = sa.Enum(
    "SALARY", "INVESTMENT", "FOOD", "HOUSING", "UTILITIES", "TRANSPORT",
    "HEALTH", "EDUCATION", "ENTERTAINMENT", "SHOPPING", "OTHER",
    name="category",
)


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=True),
        sa.Column("provider", auth_provider, nullable=False),
        sa.Column("gender", gender, nullable=True),
        sa.Column("image", sa.String(), nullable=True),
        sa.Column("image_public_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_user_email", "user", ["email"])

    op.create_table(
        "account",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("currency", currency, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "account_member",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("role", account_role, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"]),
        sa.ForeignKeyConstraint(["account_id"], ["account.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "account_id", name="uq_member_user_account"),
    )
    op.create_index("ix_account_member_user_id", "account_member", ["user_id"])
    op.create_index("ix_account_member_account_id", "account_member", ["account_id"])
    op.create_index("ix_account_member_role", "account_member", ["role"])

    op.create_table(
        "account_invite",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("role", account_role, nullable=False),
        sa.Column("token", sa.String(), nullable=False),
        sa.Column("status", invite_status, nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("invited_by_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["account.id"]),
        sa.ForeignKeyConstraint(["invited_by_id"], ["user.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", "account_id", name="uq_invite_email_account"),
    )
    op.create_index("ix_account_invite_email", "account_invite", ["email"])
    op.create_index("ix_account_invite_account_id", "account_invite", ["account_id"])
    op.create_index("ix_account_invite_token", "account_invite", ["token"], unique=True)
    op.create_index("ix_account_invite_status", "account_invite", ["status"])
    op.create_index("ix_account_invite_invited_by_id", "account_invite", ["invited_by_id"])

    # no foreign keys: rows outlive the accounts and users they mention
    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("action", audit_action, nullable=False),
        sa.Column("entity_type", sa.String(), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("performed_by_id", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("old_data", sa.JSON(), nullable=True),
        sa.Column("new_data", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_log_action", "audit_log", ["action"])
    op.create_index("ix_audit_log_entity_type", "audit_log", ["entity_type"])
    op.create_index("ix_audit_log_performed_by_id", "audit_log", ["performed_by_id"])
    op.create_index("ix_audit_log_account_id", "audit_log", ["account_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])

    op.create_table(
        "transaction",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("type", transaction_type, nullable=False),
        sa.Column("category", category, nullable=False),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("created_by_id", sa.Integer(), nullable=False),
        sa.Column("updated_by_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_transaction_account_id", "transaction", ["account_id"])
    op.create_index("ix_transaction_type", "transaction", ["type"])
    op.create_index("ix_transaction_category", "transaction", ["category"])
    op.create_index("ix_transaction_date", "transaction", ["date"])
    op.create_index("ix_transaction_created_by_id", "transaction", ["created_by_id"])

    op.create_table(
        "saving_goal",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("target_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("current_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("deadline", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("created_by_id", sa.Integer(), nullable=False),
        sa.Column("updated_by_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_saving_goal_account_id", "saving_goal", ["account_id"])
    op.create_index("ix_saving_goal_created_by_id", "saving_goal", ["created_by_id"])


def downgrade() -> None:
    op.drop_table("saving_goal")
    op.drop_table("transaction")
    op.drop_table("audit_log")
    op.drop_table("account_invite")
    op.drop_table("account_member")
    op.drop_table("account")
    op.drop_table("user")
