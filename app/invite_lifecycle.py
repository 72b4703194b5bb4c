# app/invite_lifecycle.py
"""
Invite status rules.

    PENDING -> ACCEPTED | EXPIRED | CANCELLED      (all three are terminal)

"Live" means PENDING and not past expires_at. Only one live invite may
exist per (email, account); a dead row for the same pair is reused when
the invite is sent again.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta

from app.errors import ConflictError
from app.models import AccountInvite, InviteStatus

TERMINAL = frozenset({InviteStatus.ACCEPTED, InviteStatus.EXPIRED, InviteStatus.CANCELLED})

TOKEN_BYTES = 32


def new_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def expiry_from(now: datetime, days: int) -> datetime:
    return now + timedelta(days=days)


def is_terminal(status: InviteStatus) -> bool:
    return status in TERMINAL


def is_expired(invite: AccountInvite, now: datetime) -> bool:
    return invite.expires_at < now


def is_live(invite: AccountInvite, now: datetime) -> bool:
    return invite.status == InviteStatus.PENDING and not is_expired(invite, now)


def can_transition(current: InviteStatus, target: InviteStatus) -> bool:
    return current == InviteStatus.PENDING and is_terminal(target)


def transition(
    invite: AccountInvite, target: InviteStatus, now: datetime, *, guarded: bool = True
) -> AccountInvite:
    """
    Move the invite to `target`. With guarded=False the PENDING precondition
    is skipped (cancel and reject do not check the current status).
    """
    if guarded and not can_transition(invite.status, target):
        raise ConflictError(f"Cannot move invite from {invite.status.value} to {target.value}.")
    invite.status = target
    invite.updated_at = now
    return invite


def reissue(invite: AccountInvite, now: datetime, days: int) -> AccountInvite:
    """Reset a dead invite row to a fresh PENDING one (new token, new expiry)."""
    if is_live(invite, now):
        raise ConflictError("Invite already exists.")
    invite.token = new_token()
    invite.expires_at = expiry_from(now, days)
    invite.status = InviteStatus.PENDING
    invite.updated_at = now
    return invite
