"""OutboxEvent model: side notifications written with the ledger transaction."""

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text, func

from credit_ledger.core.database import Base
from credit_ledger.models.shared import DEFAULT_STORE_ID, UUIDType, generate_uuid


class OutboxEventType(str, Enum):
    ACTIVITY_LOG = "activity_log"
    SALE_CREDIT_STATUS = "sale_credit_status"


class OutboxEventStatus(str, Enum):
    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"


class OutboxEvent(Base):
    """OutboxEvent model - an at-least-once notification awaiting delivery."""

    __tablename__ = "outbox_events"
    __table_args__ = (
        Index("ix_outbox_events_status", "status"),
        Index("ix_outbox_events_event_type", "event_type"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    store_id = Column(UUIDType, nullable=False, index=True, default=DEFAULT_STORE_ID)
    event_type = Column(String(50), nullable=False)
    payload = Column(JSON, nullable=False)
    status = Column(String(20), nullable=False, default=OutboxEventStatus.PENDING.value)
    retries = Column(Integer, nullable=False, default=0)
    max_retries = Column(Integer, nullable=False, default=5)
    last_attempted_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    last_error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
