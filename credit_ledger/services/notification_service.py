"""Outbox notifications for the audit trail and the sale-management service.

Ledger operations stage events in their own transaction; delivery happens
after commit and may fail without affecting the ledger. Failed events are
retried by the worker with exponential backoff.
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from credit_ledger.core.config import settings
from credit_ledger.models.credit import Credit
from credit_ledger.models.outbox_event import OutboxEvent, OutboxEventStatus, OutboxEventType
from credit_ledger.models.shared import utc_now
from credit_ledger.repositories.outbox_event_repository import OutboxEventRepository
from credit_ledger.schemas.actor import Actor
from credit_ledger.services.audit_service import AUDIT_MODULE, AuditService

logger = logging.getLogger(__name__)

# Activity-log actions emitted by the ledger
CREDIT_CREATED = "credit_created"
CREDIT_PAYMENT_APPLIED = "credit_payment_applied"
CREDIT_CANCELLED = "credit_cancelled"
CREDIT_PAYMENT_CANCELLED = "credit_payment_cancelled"


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class NotificationService:
    """Stages and delivers outbox events."""

    def __init__(self, db: Session):
        self.db = db
        self.outbox_repo = OutboxEventRepository(db)
        self.audit_service = AuditService(db)

    def emit_activity(
        self,
        store_id: UUID,
        action: str,
        actor: Actor,
        details: dict[str, Any],
    ) -> OutboxEvent:
        """Stage an activity-log event in the current transaction."""
        payload = {
            "action": action,
            "module": AUDIT_MODULE,
            "actor": {"user_id": actor.user_id, "user_name": actor.user_name},
            "details": {key: _jsonable(value) for key, value in details.items()},
            "timestamp": utc_now().isoformat(),
        }
        return self.outbox_repo.add(
            store_id,
            OutboxEventType.ACTIVITY_LOG,
            payload,
            max_retries=settings.NOTIFICATION_MAX_RETRIES,
        )

    def emit_sale_credit_status(self, credit: Credit) -> OutboxEvent | None:
        """Stage a credit status mirror update for the credit's sale, if it has one."""
        if not credit.sale_id:
            return None
        payload = {
            "sale_id": str(credit.sale_id),
            "credit_id": str(credit.id),
            "invoice_number": str(credit.invoice_number),
            "credit_status": str(credit.status),
        }
        return self.outbox_repo.add(
            credit.store_id,  # type: ignore[arg-type]
            OutboxEventType.SALE_CREDIT_STATUS,
            payload,
            max_retries=settings.NOTIFICATION_MAX_RETRIES,
        )

    def dispatch(self, event_ids: Iterable[UUID]) -> int:
        """Deliver the given pending events. Returns the number delivered."""
        delivered = 0
        for event_id in event_ids:
            event = self.outbox_repo.get_by_id(event_id)
            if event is None or event.status != OutboxEventStatus.PENDING.value:
                continue
            if self.deliver(event):
                delivered += 1
        return delivered

    def dispatch_after_commit(self, event_ids: list[UUID]) -> int:
        """Best-effort immediate delivery right after a ledger commit.

        Never raises: whatever is not delivered here stays in the outbox for
        the worker.
        """
        try:
            return self.dispatch(event_ids)
        except Exception:
            self.db.rollback()
            logger.warning(
                "Immediate delivery of %d notification(s) failed, left for the worker",
                len(event_ids),
                exc_info=True,
            )
            return 0

    def dispatch_pending(self, limit: int = 100) -> int:
        """Deliver pending events, oldest first."""
        events = self.outbox_repo.get_pending(limit=limit)
        return self.dispatch([UUID(str(event.id)) for event in events])

    def deliver(self, event: OutboxEvent) -> bool:
        """Deliver a single event, recording success or failure on it."""
        try:
            if event.event_type == OutboxEventType.ACTIVITY_LOG.value:
                self.audit_service.record_activity(event.store_id, event.payload)  # type: ignore[arg-type]
            elif event.event_type == OutboxEventType.SALE_CREDIT_STATUS.value:
                self._notify_sale(event.payload)  # type: ignore[arg-type]
            else:
                self.outbox_repo.mark_failed(event, f"Unknown event type {event.event_type}")
                return False
        except httpx.HTTPError as exc:
            logger.warning("Notification %s delivery failed: %s", event.id, exc)
            self.outbox_repo.mark_failed(event, str(exc))
            return False
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Notification %s could not be recorded: %s", event.id, exc)
            self.outbox_repo.mark_failed(event, str(exc))
            return False

        self.outbox_repo.mark_delivered(event)
        return True

    def _notify_sale(self, payload: dict[str, Any]) -> None:
        if not settings.sales_service_enabled:
            logger.debug("Sales service not configured, skipping mirror for %s", payload["sale_id"])
            return

        url = f"{settings.SALES_SERVICE_URL.rstrip('/')}/sales/{payload['sale_id']}/credit_status"
        with httpx.Client(timeout=settings.SALES_SERVICE_TIMEOUT_SECONDS) as client:
            resp = client.post(
                url,
                json={
                    "credit_id": payload["credit_id"],
                    "invoice_number": payload["invoice_number"],
                    "credit_status": payload["credit_status"],
                },
            )
        resp.raise_for_status()

    def retry_failed(self) -> int:
        """Retry failed events whose backoff (2^retries minutes) has elapsed.

        Returns:
            Number of events retried.
        """
        retried = 0
        now = datetime.now(UTC)
        for event in self.outbox_repo.get_failed_for_retry():
            if event.last_attempted_at:
                next_retry_at = event.last_attempted_at.replace(tzinfo=UTC) + timedelta(
                    minutes=2 ** int(event.retries)
                )
                if now < next_retry_at:
                    continue

            self.outbox_repo.increment_retry(event)
            self.deliver(event)
            retried += 1

        return retried
