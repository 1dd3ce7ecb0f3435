"""OutboxEvent repository for data access."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from credit_ledger.models.outbox_event import OutboxEvent, OutboxEventStatus, OutboxEventType
from credit_ledger.models.shared import utc_now


class OutboxEventRepository:
    """Repository for OutboxEvent model."""

    def __init__(self, db: Session):
        self.db = db

    def add(
        self,
        store_id: UUID,
        event_type: OutboxEventType,
        payload: dict[str, Any],
        max_retries: int = 5,
    ) -> OutboxEvent:
        """Stage an event in the current transaction without committing."""
        event = OutboxEvent(
            store_id=store_id,
            event_type=event_type.value,
            payload=payload,
            status=OutboxEventStatus.PENDING.value,
            retries=0,
            max_retries=max_retries,
        )
        self.db.add(event)
        self.db.flush()
        return event

    def get_by_id(self, event_id: UUID) -> OutboxEvent | None:
        """Get an outbox event by ID."""
        return self.db.query(OutboxEvent).filter(OutboxEvent.id == event_id).first()

    def get_pending(self, limit: int = 100) -> list[OutboxEvent]:
        """Get pending events, oldest first."""
        return (
            self.db.query(OutboxEvent)
            .filter(OutboxEvent.status == OutboxEventStatus.PENDING.value)
            .order_by(OutboxEvent.created_at.asc())
            .limit(limit)
            .all()
        )

    def get_failed_for_retry(self) -> list[OutboxEvent]:
        """Get failed events eligible for retry (retries < max_retries)."""
        return (
            self.db.query(OutboxEvent)
            .filter(
                OutboxEvent.status == OutboxEventStatus.FAILED.value,
                OutboxEvent.retries < OutboxEvent.max_retries,
            )
            .order_by(OutboxEvent.created_at.asc())
            .all()
        )

    def mark_delivered(self, event: OutboxEvent) -> OutboxEvent:
        """Mark an event as delivered."""
        event.status = OutboxEventStatus.DELIVERED.value  # type: ignore[assignment]
        event.delivered_at = utc_now()  # type: ignore[assignment]
        event.last_attempted_at = event.delivered_at
        event.last_error = None  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(event)
        return event

    def mark_failed(self, event: OutboxEvent, error: str) -> OutboxEvent:
        """Mark an event as failed with the delivery error."""
        event.status = OutboxEventStatus.FAILED.value  # type: ignore[assignment]
        event.last_attempted_at = utc_now()  # type: ignore[assignment]
        event.last_error = error[:1000]  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(event)
        return event

    def increment_retry(self, event: OutboxEvent) -> OutboxEvent:
        """Count a retry and put the event back to pending."""
        event.retries = event.retries + 1  # type: ignore[assignment]
        event.status = OutboxEventStatus.PENDING.value  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(event)
        return event
