"""Payment application: applying one payment to one credit."""

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
    OverpaymentError,
)
from credit_ledger.models.credit import Credit, CreditStatus
from credit_ledger.models.payment_record import PaymentRecord
from credit_ledger.repositories.credit_repository import CreditRepository, LastPayment
from credit_ledger.repositories.payment_record_repository import (
    PaymentRecordRepository,
    validate_payment,
)
from credit_ledger.schemas.actor import Actor
from credit_ledger.schemas.payment_record import PaymentCreate
from credit_ledger.services.credit_status import derive_status
from credit_ledger.services.notification_service import (
    CREDIT_PAYMENT_APPLIED,
    NotificationService,
)

logger = logging.getLogger(__name__)


@dataclass
class PaymentApplication:
    """Result of applying a payment."""

    credit: Credit
    payment_record: PaymentRecord


def verify_paid_matches_payments(
    credit: Credit, payment_repo: PaymentRecordRepository
) -> None:
    """Raise InvariantViolationError unless paid_amount equals the active payments' sum."""
    active_total = payment_repo.sum_active(UUID(str(credit.id)))
    paid = Decimal(str(credit.paid_amount))
    if active_total != paid:
        raise InvariantViolationError(
            f"Credit {credit.id} paid amount {paid} differs from active payments total {active_total}",
            credit_id=str(credit.id),
            paid_amount=str(paid),
            active_total=str(active_total),
        )


class PaymentService:
    """Service applying payments to credits."""

    def __init__(self, db: Session):
        self.db = db
        self.credit_repo = CreditRepository(db)
        self.payment_repo = PaymentRecordRepository(db)
        self.notifications = NotificationService(db)

    def apply_payment(
        self,
        store_id: UUID,
        credit_id: UUID,
        data: PaymentCreate,
        actor: Actor,
    ) -> PaymentApplication:
        """Apply a payment to a credit as one transaction.

        Creates an active payment record, raises the paid amount, re-derives
        the status and refreshes the last-payment snapshot. Nothing is written
        when any step fails.

        Raises:
            NotFoundError: If the credit does not exist in this store.
            InvalidStateError: If the credit is cancelled.
            ValidationError: If the amount or the mixed split is invalid.
            OverpaymentError: If the amount exceeds the pending amount.
            ConflictError: If the credit was changed concurrently.
        """
        with transaction(self.db):
            credit = self.credit_repo.get_for_update(credit_id, store_id)
            if not credit:
                raise NotFoundError("Credit", credit_id)
            if credit.is_cancelled:
                raise InvalidStateError("Cannot apply a payment to a cancelled credit")

            validate_payment(data)
            pending = credit.pending_amount
            if data.amount > pending:
                raise OverpaymentError(data.amount, pending)

            previous_status = CreditStatus(credit.status)
            record = self.payment_repo.create(
                UUID(str(credit.id)), store_id, data, actor
            )

            total = Decimal(str(credit.total_amount))
            new_paid = Decimal(str(credit.paid_amount)) + data.amount
            new_pending = total - new_paid
            new_status = derive_status(total, new_paid)
            self.credit_repo.update_amounts(
                credit,
                paid_amount=new_paid,
                pending_amount=new_pending,
                status=new_status,
                last_payment=LastPayment(
                    amount=data.amount,
                    payment_date=record.payment_date,  # type: ignore[arg-type]
                    user_id=actor.user_id,
                    user_name=actor.user_name,
                ),
            )
            verify_paid_matches_payments(credit, self.payment_repo)

            events = [
                self.notifications.emit_activity(
                    store_id,
                    CREDIT_PAYMENT_APPLIED,
                    actor,
                    {
                        "credit_id": credit.id,
                        "payment_record_id": record.id,
                        "amount": data.amount,
                        "payment_method": data.payment_method.value,
                        "previous_status": previous_status.value,
                        "new_status": new_status.value,
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
            "Payment %s of %s applied to credit %s by %s: paid %s, pending %s, %s -> %s",
            record.id,
            data.amount,
            credit_id,
            actor.user_id,
            new_paid,
            new_pending,
            previous_status.value,
            new_status.value,
        )
        self.notifications.dispatch_after_commit(event_ids)
        return PaymentApplication(credit=credit, payment_record=record)
