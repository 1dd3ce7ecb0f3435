"""PaymentRecord repository for data access."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from credit_ledger.core.exceptions import ValidationError
from credit_ledger.models.payment_record import (
    PaymentMethod,
    PaymentRecord,
    PaymentRecordStatus,
)
from credit_ledger.models.shared import utc_now
from credit_ledger.schemas.actor import Actor
from credit_ledger.schemas.payment_record import PaymentCreate


def validate_payment(data: PaymentCreate) -> None:
    """Check the amount and, for mixed payments, the cash/transfer split."""
    if data.amount <= 0:
        raise ValidationError("Payment amount must be positive", amount=str(data.amount))

    has_split = data.cash_amount is not None or data.transfer_amount is not None
    if data.payment_method != PaymentMethod.MIXED:
        if has_split:
            raise ValidationError("Cash and transfer amounts only apply to mixed payments")
        return

    if data.cash_amount is None or data.transfer_amount is None:
        raise ValidationError("Mixed payments require both cash and transfer amounts")
    if data.cash_amount < 0 or data.transfer_amount < 0:
        raise ValidationError("Cash and transfer amounts cannot be negative")
    if data.cash_amount + data.transfer_amount != data.amount:
        raise ValidationError(
            f"Cash {data.cash_amount} plus transfer {data.transfer_amount} "
            f"must equal the payment amount {data.amount}",
            amount=str(data.amount),
        )


class PaymentRecordRepository:
    """Repository for PaymentRecord model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, payment_record_id: UUID, store_id: UUID) -> PaymentRecord | None:
        """Get a payment record by ID within a store."""
        return (
            self.db.query(PaymentRecord)
            .filter(PaymentRecord.id == payment_record_id, PaymentRecord.store_id == store_id)
            .first()
        )

    def get_for_update(self, payment_record_id: UUID, store_id: UUID) -> PaymentRecord | None:
        """Get a payment record with its row locked, refreshed from the store."""
        return (
            self.db.query(PaymentRecord)
            .filter(PaymentRecord.id == payment_record_id, PaymentRecord.store_id == store_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_by_credit_id(
        self,
        credit_id: UUID,
        status: PaymentRecordStatus | None = None,
    ) -> list[PaymentRecord]:
        """Get the payment history of a credit, most recent payment first."""
        query = self.db.query(PaymentRecord).filter(PaymentRecord.credit_id == credit_id)
        if status:
            query = query.filter(PaymentRecord.status == status.value)
        return query.order_by(
            PaymentRecord.payment_date.desc(), PaymentRecord.created_at.desc()
        ).all()

    def get_latest_active(self, credit_id: UUID) -> PaymentRecord | None:
        """Get the most recent active payment of a credit."""
        records = self.get_by_credit_id(credit_id, status=PaymentRecordStatus.ACTIVE)
        return records[0] if records else None

    def sum_active(self, credit_id: UUID) -> Decimal:
        """Sum of the amounts of a credit's active payments."""
        total = (
            self.db.query(func.coalesce(func.sum(PaymentRecord.amount), 0))
            .filter(
                PaymentRecord.credit_id == credit_id,
                PaymentRecord.status == PaymentRecordStatus.ACTIVE.value,
            )
            .scalar()
        )
        return Decimal(str(total))

    def create(
        self,
        credit_id: UUID,
        store_id: UUID,
        data: PaymentCreate,
        actor: Actor,
        payment_date: datetime | None = None,
    ) -> PaymentRecord:
        """Create an active payment record from an already validated payment."""
        record = PaymentRecord(
            store_id=store_id,
            credit_id=credit_id,
            amount=data.amount,
            payment_date=payment_date or data.payment_date or utc_now(),
            payment_method=data.payment_method.value,
            cash_amount=data.cash_amount,
            transfer_amount=data.transfer_amount,
            description=data.description,
            user_id=actor.user_id,
            user_name=actor.user_name,
            status=PaymentRecordStatus.ACTIVE.value,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def mark_cancelled(self, record: PaymentRecord, actor: Actor, reason: str) -> PaymentRecord:
        """Cancel a payment record for good."""
        record.status = PaymentRecordStatus.CANCELLED.value  # type: ignore[assignment]
        record.cancelled_at = utc_now()  # type: ignore[assignment]
        record.cancelled_by = actor.user_id  # type: ignore[assignment]
        record.cancelled_by_name = actor.user_name  # type: ignore[assignment]
        record.cancellation_reason = reason  # type: ignore[assignment]
        self.db.flush()
        return record
