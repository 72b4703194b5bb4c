# app/permissions.py
"""
Role-based permission policy.

Pure functions: no session, no I/O. Anything that needs the database
(e.g. how many owners an account has) is passed in by the caller, read
at decision time.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

from app.errors import AppError, AuthorizationError, ConflictError
from app.models import AccountRole, Membership


class Decision(NamedTuple):
    allowed: bool
    error: Optional[AppError] = None

    def enforce(self) -> None:
        """Raise the denial reason, if any."""
        if not self.allowed and self.error is not None:
            raise self.error


ALLOW = Decision(True)


def deny(error: AppError) -> Decision:
    return Decision(False, error)


# ---------- Role checks ----------


def can_manage_members(role: AccountRole) -> bool:
    return role == AccountRole.OWNER


def can_mutate_transaction(role: AccountRole) -> bool:
    return role in (AccountRole.ADMIN, AccountRole.OWNER)


def can_update_account(role: AccountRole) -> bool:
    return role in (AccountRole.ADMIN, AccountRole.OWNER)


def can_delete_account(role: AccountRole) -> bool:
    return role == AccountRole.OWNER


# ---------- Member-targeted checks ----------


def _is_last_owner(target: Membership, owner_count: int) -> bool:
    return target.role == AccountRole.OWNER and owner_count <= 1


def can_change_role(
    actor: Membership,
    target: Membership,
    new_role: AccountRole,
    owner_count: int,
) -> Decision:
    """
    Only an OWNER changes roles, never their own (not even OWNER -> OWNER),
    and the last OWNER cannot be demoted.
    """
    if not can_manage_members(actor.role):
        return deny(AuthorizationError("Only OWNER can update roles."))
    if target.user_id == actor.user_id:
        return deny(ConflictError("Owner cannot change their own role."))
    if _is_last_owner(target, owner_count) and new_role != AccountRole.OWNER:
        return deny(ConflictError("Account must have at least one owner."))
    return ALLOW


def can_remove_member(
    actor: Membership,
    target: Membership,
    owner_count: int,
) -> Decision:
    """Only an OWNER removes members, never themselves, never the last OWNER."""
    if not can_manage_members(actor.role):
        return deny(AuthorizationError("Only OWNER can remove account members."))
    if target.user_id == actor.user_id:
        return deny(ConflictError("Owner cannot remove themselves."))
    if _is_last_owner(target, owner_count):
        return deny(ConflictError("Account must have at least one owner."))
    return ALLOW
