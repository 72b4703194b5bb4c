# app/audit.py
"""
Best-effort audit trail.

Services append entries to an AuditOutbox *after* their own commit.
The outbox is flushed once the request is over, each entry in its own
session; a failed write is logged and dropped. Nothing here can fail a
request or roll back a mutation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Generator, List, Optional

from fastapi import Depends
from fastapi.encoders import jsonable_encoder
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel

from app.db import get_session
from app.models import AuditAction, AuditLog

logger = logging.getLogger("ledger.audit")

# never copied into a snapshot
_SECRET_FIELDS = {"hashed_password"}


def snapshot(entity: SQLModel) -> dict[str, Any]:
    """JSON-safe copy of an entity's columns (Decimal -> float, datetime -> ISO)."""
    # dump in python mode first; json mode would already turn Decimal into str
    data = entity.model_dump(exclude=_SECRET_FIELDS)
    return jsonable_encoder(data, custom_encoder={Decimal: float})


@dataclass(frozen=True)
class AuditEntry:
    action: AuditAction
    entity_type: str
    entity_id: int
    performed_by_id: int
    account_id: int
    old_data: Optional[dict[str, Any]] = None
    new_data: Optional[dict[str, Any]] = None


class AuditOutbox:
    """
    Collects audit entries during a request and writes them afterwards.

    Usage:
        outbox = AuditOutbox(engine)
        ...commit the mutation...
        outbox.record(AuditAction.UPDATE, "Account", acc.id, ctx.user_id, acc.id,
                      old=before, new=snapshot(acc))
        outbox.flush()
    """

    def __init__(self, bind: Engine):
        self._bind = bind
        self._pending: List[AuditEntry] = []

    @property
    def pending(self) -> List[AuditEntry]:
        return list(self._pending)

    def record(
        self,
        action: AuditAction,
        entity_type: str,
        entity_id: int,
        performed_by_id: int,
        account_id: int,
        *,
        old: Optional[dict[str, Any]] = None,
        new: Optional[dict[str, Any]] = None,
    ) -> None:
        self._pending.append(
            AuditEntry(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                performed_by_id=performed_by_id,
                account_id=account_id,
                old_data=old,
                new_data=new,
            )
        )

    def flush(self) -> int:
        """Write pending entries one by one. Returns how many were stored."""
        entries, self._pending = self._pending, []
        written = 0
        for entry in entries:
            try:
                with Session(self._bind) as session:
                    session.add(
                        AuditLog(
                            action=entry.action,
                            entity_type=entry.entity_type,
                            entity_id=entry.entity_id,
                            performed_by_id=entry.performed_by_id,
                            account_id=entry.account_id,
                            old_data=entry.old_data,
                            new_data=entry.new_data,
                        )
                    )
                    session.commit()
                written += 1
            except Exception:
                # audit failures must not block business operations
                logger.exception(
                    "Audit log error (%s %s #%s)",
                    entry.action.value,
                    entry.entity_type,
                    entry.entity_id,
                )
        return written


def get_audit_outbox(
    session: Session = Depends(get_session),
) -> Generator[AuditOutbox, None, None]:
    """FastAPI dependency: one outbox per request, flushed when the request ends."""
    outbox = AuditOutbox(session.get_bind())
    try:
        yield outbox
    finally:
        outbox.flush()
