"""Audit service for recording the activity trail of ledger mutations."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from credit_ledger.models.audit_log import AuditLog
from credit_ledger.repositories.audit_log_repository import AuditLogRepository

AUDIT_MODULE = "credits"


class AuditService:
    """Service for recording audit trail entries."""

    def __init__(self, db: Session):
        self.repo = AuditLogRepository(db)

    def record_activity(self, store_id: UUID, event: dict[str, Any]) -> AuditLog:
        """Persist one activity-log event as emitted by a ledger operation.

        The event has the shape ``{action, module, actor: {user_id, user_name},
        details: {credit_id, ...}, timestamp}``.
        """
        actor = event.get("actor") or {}
        details = event.get("details") or {}
        credit_id = details.get("credit_id")
        return self.repo.create(
            store_id=store_id,
            action=event["action"],
            module=event.get("module", AUDIT_MODULE),
            credit_id=UUID(credit_id) if credit_id else None,
            actor_id=actor.get("user_id"),
            actor_name=actor.get("user_name"),
            details=details,
            occurred_at=datetime.fromisoformat(event["timestamp"]),
        )
