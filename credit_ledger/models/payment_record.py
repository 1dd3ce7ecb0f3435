"""PaymentRecord model: one payment applied against a credit."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, Numeric, String, Text, func

from credit_ledger.core.database import Base
from credit_ledger.models.shared import (
    DEFAULT_STORE_ID,
    MONEY_PRECISION,
    MONEY_SCALE,
    UUIDType,
    generate_uuid,
)


class PaymentMethod(str, Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    MIXED = "mixed"


class PaymentRecordStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class PaymentRecord(Base):
    """PaymentRecord model - a payment event; inert for good once cancelled."""

    __tablename__ = "payment_records"
    __table_args__ = (
        Index("ix_payment_records_credit_status", "credit_id", "status"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    store_id = Column(UUIDType, nullable=False, index=True, default=DEFAULT_STORE_ID)
    credit_id = Column(
        UUIDType, ForeignKey("credits.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    amount = Column(Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=False)
    payment_date = Column(DateTime(timezone=True), nullable=False)
    payment_method = Column(String(20), nullable=False)
    cash_amount = Column(Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=True)
    transfer_amount = Column(Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=True)
    description = Column(Text, nullable=True)

    user_id = Column(String(64), nullable=False)
    user_name = Column(String(255), nullable=False)

    status = Column(String(20), nullable=False, default=PaymentRecordStatus.ACTIVE.value)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(String(64), nullable=True)
    cancelled_by_name = Column(String(255), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def is_active(self) -> bool:
        return self.status == PaymentRecordStatus.ACTIVE.value
