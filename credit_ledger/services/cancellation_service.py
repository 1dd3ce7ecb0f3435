"""Cancellation of credits and of individual payments, with audit metadata."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from credit_ledger.core.database import transaction
from credit_ledger.core.exceptions import (
    InvalidStateError,
    InvariantViolationError,
    NotFoundError,
    ValidationError,
)
from credit_ledger.models.credit import Credit, CreditStatus
from credit_ledger.models.payment_record import PaymentRecord
from credit_ledger.repositories.credit_repository import CreditRepository, LastPayment
from credit_ledger.repositories.payment_record_repository import PaymentRecordRepository
from credit_ledger.schemas.actor import Actor
from credit_ledger.services.credit_status import derive_status
from credit_ledger.services.notification_service import (
    CREDIT_CANCELLED,
    CREDIT_PAYMENT_CANCELLED,
    NotificationService,
)
from credit_ledger.services.payment_service import verify_paid_matches_payments

logger = logging.getLogger(__name__)


@dataclass
class CreditCancellation:
    """Result of cancelling a credit."""

    credit: Credit
    total_collected: Decimal


@dataclass
class PaymentCancellation:
    """Result of cancelling a payment record."""

    credit: Credit
    payment_record: PaymentRecord


def _clean_reason(reason: str | None) -> str:
    cleaned = (reason or "").strip()
    if not cleaned:
        raise ValidationError("A cancellation reason is required")
    return cleaned


class CancellationService:
    """Service reversing credits and payments."""

    def __init__(self, db: Session):
        self.db = db
        self.credit_repo = CreditRepository(db)
        self.payment_repo = PaymentRecordRepository(db)
        self.notifications = NotificationService(db)

    def cancel_credit(
        self,
        store_id: UUID,
        credit_id: UUID,
        actor: Actor,
        reason: str,
    ) -> CreditCancellation:
        """Cancel a credit: no further collection will be pursued.

        Paid and pending amounts are kept as they were, and the credit's
        payment records stay active since that money was received.

        Raises:
            ValidationError: If the reason is empty.
            NotFoundError: If the credit does not exist in this store.
            InvalidStateError: If the credit is already cancelled.
        """
        reason = _clean_reason(reason)
        with transaction(self.db):
            credit = self.credit_repo.get_for_update(credit_id, store_id)
            if not credit:
                raise NotFoundError("Credit", credit_id)
            if credit.is_cancelled:
                raise InvalidStateError("Credit is already cancelled")

            previous_status = CreditStatus(credit.status)
            new_status = derive_status(
                Decimal(str(credit.total_amount)),
                Decimal(str(credit.paid_amount)),
                cancelled=True,
            )
            self.credit_repo.mark_cancelled(credit, new_status, actor, reason)
            total_collected = self.payment_repo.sum_active(UUID(str(credit.id)))

            events = [
                self.notifications.emit_activity(
                    store_id,
                    CREDIT_CANCELLED,
                    actor,
                    {
                        "credit_id": credit.id,
                        "previous_status": previous_status.value,
                        "new_status": new_status.value,
                        "reason": reason,
                        "pending_amount": credit.pending_amount,
                        "total_collected": total_collected,
                    },
                )
            ]
            sale_event = self.notifications.emit_sale_credit_status(credit)
            if sale_event is not None:
                events.append(sale_event)
            event_ids = [UUID(str(event.id)) for event in events]

        logger.info(
            "Credit %s cancelled by %s (was %s, collected %s): %s",
            credit_id,
            actor.user_id,
            previous_status.value,
            total_collected,
            reason,
        )
        self.notifications.dispatch_after_commit(event_ids)
        return CreditCancellation(credit=credit, total_collected=total_collected)

    def cancel_payment_record(
        self,
        store_id: UUID,
        payment_record_id: UUID,
        actor: Actor,
        reason: str,
    ) -> PaymentCancellation:
        """Cancel one payment and reverse its effect on the owning credit.

        The credit ends up with the amounts and status it would have had
        without this payment; the last-payment snapshot moves to the most
        recent remaining active payment, or is cleared.

        Raises:
            ValidationError: If the reason is empty.
            NotFoundError: If the payment record does not exist in this store.
            InvalidStateError: If the payment is already cancelled or its
                credit is cancelled.
            InvariantViolationError: If the reversal would drive paid below zero.
        """
        reason = _clean_reason(reason)
        with transaction(self.db):
            found = self.payment_repo.get_by_id(payment_record_id, store_id)
            if not found:
                raise NotFoundError("Payment record", payment_record_id)

            # The record status only counts once read under the credit lock
            credit = self.credit_repo.get_for_update(UUID(str(found.credit_id)), store_id)
            if not credit:
                raise NotFoundError("Credit", found.credit_id)
            record = self.payment_repo.get_for_update(payment_record_id, store_id)
            if not record:
                raise NotFoundError("Payment record", payment_record_id)
            if not record.is_active:
                raise InvalidStateError("Payment record is already cancelled")
            if credit.is_cancelled:
                raise InvalidStateError("Cannot cancel a payment of a cancelled credit")

            amount = Decimal(str(record.amount))
            total = Decimal(str(credit.total_amount))
            previous_status = CreditStatus(credit.status)
            new_paid = Decimal(str(credit.paid_amount)) - amount
            if new_paid < 0:
                raise InvariantViolationError(
                    f"Reversing payment {record.id} would make paid amount {new_paid}",
                    credit_id=str(credit.id),
                    payment_record_id=str(record.id),
                )
            new_pending = total - new_paid
            new_status = derive_status(total, new_paid)

            self.payment_repo.mark_cancelled(record, actor, reason)
            latest = self.payment_repo.get_latest_active(UUID(str(credit.id)))
            self.credit_repo.update_amounts(
                credit,
                paid_amount=new_paid,
                pending_amount=new_pending,
                status=new_status,
                last_payment=(
                    LastPayment(
                        amount=Decimal(str(latest.amount)),
                        payment_date=latest.payment_date,  # type: ignore[arg-type]
                        user_id=str(latest.user_id),
                        user_name=str(latest.user_name),
                    )
                    if latest
                    else None
                ),
            )
            verify_paid_matches_payments(credit, self.payment_repo)

            events = [
                self.notifications.emit_activity(
                    store_id,
                    CREDIT_PAYMENT_CANCELLED,
                    actor,
                    {
                        "credit_id": credit.id,
                        "payment_record_id": record.id,
                        "amount": amount,
                        "previous_status": previous_status.value,
                        "new_status": new_status.value,
                        "reason": reason,
                        "paid_amount": new_paid,
                        "pending_amount": new_pending,
                    },
                )
            ]
            if new_status != previous_status:
                sale_event = self.notifications.emit_sale_credit_status(credit)
                if sale_event is not None:
                    events.append(sale_event)
            event_ids = [UUID(str(event.id)) for event in events]

        logger.info(
            "Payment %s (%s) on credit %s cancelled by %s: %s -> %s",
            payment_record_id,
            amount,
            credit.id,
            actor.user_id,
            previous_status.value,
            new_status.value,
        )
        self.notifications.dispatch_after_commit(event_ids)
        return PaymentCancellation(credit=credit, payment_record=record)
