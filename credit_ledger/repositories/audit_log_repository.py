"""Repository for AuditLog CRUD operations."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from credit_ledger.models.audit_log import AuditLog
from credit_ledger.models.shared import generate_uuid


class AuditLogRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        store_id: UUID,
        action: str,
        module: str,
        details: dict[str, Any],
        occurred_at: datetime,
        credit_id: UUID | None = None,
        actor_id: str | None = None,
        actor_name: str | None = None,
    ) -> AuditLog:
        audit_log = AuditLog(
            id=generate_uuid(),
            store_id=store_id,
            action=action,
            module=module,
            credit_id=credit_id,
            actor_id=actor_id,
            actor_name=actor_name,
            details=details,
            occurred_at=occurred_at,
        )
        self.db.add(audit_log)
        self.db.commit()
        self.db.refresh(audit_log)
        return audit_log

    def get_all(
        self,
        store_id: UUID,
        skip: int = 0,
        limit: int = 100,
        action: str | None = None,
        credit_id: UUID | None = None,
        actor_id: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[AuditLog]:
        query = self.db.query(AuditLog).filter(AuditLog.store_id == store_id)
        if action is not None:
            query = query.filter(AuditLog.action == action)
        if credit_id is not None:
            query = query.filter(AuditLog.credit_id == credit_id)
        if actor_id is not None:
            query = query.filter(AuditLog.actor_id == actor_id)
        if start_date is not None:
            query = query.filter(AuditLog.occurred_at >= start_date)
        if end_date is not None:
            query = query.filter(AuditLog.occurred_at <= end_date)
        return query.order_by(AuditLog.occurred_at.desc()).offset(skip).limit(limit).all()
