"""Credit repository for data access.

Mutating methods only flush; the calling service owns the transaction.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from credit_ledger.core.exceptions import InvariantViolationError, ValidationError
from credit_ledger.models.credit import Credit, CreditStatus
from credit_ledger.models.shared import utc_now
from credit_ledger.schemas.actor import Actor
from credit_ledger.schemas.credit import CreditCreate


@dataclass(frozen=True)
class LastPayment:
    """Display snapshot of the most recent active payment on a credit."""

    amount: Decimal
    payment_date: datetime
    user_id: str
    user_name: str


def _duplicate_invoice(invoice_number: str) -> ValidationError:
    return ValidationError(
        f"A credit for invoice {invoice_number} already exists",
        invoice_number=invoice_number,
    )


class CreditRepository:
    """Repository for Credit model."""

    def __init__(self, db: Session):
        self.db = db

    def _scoped(self, store_id: UUID):  # type: ignore[no-untyped-def]
        return self.db.query(Credit).filter(Credit.store_id == store_id)

    def get_all(
        self,
        store_id: UUID,
        skip: int = 0,
        limit: int = 100,
        client_id: str | None = None,
        status: CreditStatus | None = None,
        today: date | None = None,
    ) -> list[Credit]:
        """Get credits of a store, newest first, with optional filters."""
        query = self._filtered(store_id, client_id, status, today)
        return query.order_by(Credit.created_at.desc()).offset(skip).limit(limit).all()

    def count(
        self,
        store_id: UUID,
        client_id: str | None = None,
        status: CreditStatus | None = None,
        today: date | None = None,
    ) -> int:
        """Count credits of a store matching the same filters as get_all."""
        query = self._filtered(store_id, client_id, status, today)
        return query.with_entities(func.count(Credit.id)).scalar() or 0

    def _filtered(
        self,
        store_id: UUID,
        client_id: str | None,
        status: CreditStatus | None,
        today: date | None,
    ):  # type: ignore[no-untyped-def]
        query = self._scoped(store_id)
        if client_id:
            query = query.filter(Credit.client_id == client_id)
        if status == CreditStatus.OVERDUE:
            query = query.filter(
                Credit.status.in_([CreditStatus.PENDING.value, CreditStatus.PARTIAL.value]),
                Credit.due_date.isnot(None),
                Credit.due_date < (today or utc_now().date()),
                Credit.pending_amount > 0,
            )
        elif status:
            query = query.filter(Credit.status == status.value)
        return query

    def get_by_id(self, credit_id: UUID, store_id: UUID) -> Credit | None:
        """Get a credit by ID within a store."""
        return self._scoped(store_id).filter(Credit.id == credit_id).first()

    def get_for_update(self, credit_id: UUID, store_id: UUID) -> Credit | None:
        """Get a credit by ID, locking its row where the dialect supports it."""
        return (
            self._scoped(store_id)
            .filter(Credit.id == credit_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_by_invoice_number(self, store_id: UUID, invoice_number: str) -> Credit | None:
        """Get a credit by its invoice number within a store."""
        return self._scoped(store_id).filter(Credit.invoice_number == invoice_number).first()

    def get_by_store_id(self, store_id: UUID) -> list[Credit]:
        """Get every credit of a store, oldest first."""
        return self._scoped(store_id).order_by(Credit.created_at.asc()).all()

    def get_by_client_id(self, store_id: UUID, client_id: str) -> list[Credit]:
        """Get all credits of a client, oldest first."""
        return (
            self._scoped(store_id)
            .filter(Credit.client_id == client_id)
            .order_by(Credit.created_at.asc())
            .all()
        )

    def create(
        self,
        data: CreditCreate,
        store_id: UUID,
        created_by: Actor | None = None,
    ) -> Credit:
        """Create a new credit with nothing paid yet."""
        if data.total_amount <= 0:
            raise ValidationError("Total amount must be positive", total_amount=str(data.total_amount))
        if self.get_by_invoice_number(store_id, data.invoice_number):
            raise _duplicate_invoice(data.invoice_number)

        credit = Credit(
            store_id=store_id,
            sale_id=data.sale_id,
            client_id=data.client_id,
            client_name=data.client_name,
            invoice_number=data.invoice_number,
            total_amount=data.total_amount,
            paid_amount=Decimal("0"),
            status=CreditStatus.PENDING.value,
            due_date=data.due_date,
            created_by=created_by.user_id if created_by else None,
            created_by_name=created_by.user_name if created_by else None,
        )
        self.db.add(credit)
        try:
            self.db.flush()
        except IntegrityError as exc:
            # Lost the race against a concurrent create of the same invoice
            raise _duplicate_invoice(data.invoice_number) from exc
        return credit

    def update_amounts(
        self,
        credit: Credit,
        paid_amount: Decimal,
        pending_amount: Decimal,
        status: CreditStatus,
        last_payment: LastPayment | None,
    ) -> Credit:
        """Write new amounts, status and last-payment snapshot in one UPDATE.

        The UPDATE is conditional on the version read, so a concurrent writer
        makes the flush fail with StaleDataError instead of losing an update.
        """
        total = Decimal(str(credit.total_amount))
        if total - paid_amount != pending_amount:
            raise InvariantViolationError(
                f"Pending amount {pending_amount} does not match total {total} minus paid {paid_amount}",
                credit_id=str(credit.id),
            )

        credit.paid_amount = paid_amount  # type: ignore[assignment]
        credit.status = status.value  # type: ignore[assignment]
        credit.last_payment_amount = last_payment.amount if last_payment else None  # type: ignore[assignment]
        credit.last_payment_date = last_payment.payment_date if last_payment else None  # type: ignore[assignment]
        credit.last_payment_user_id = last_payment.user_id if last_payment else None  # type: ignore[assignment]
        credit.last_payment_user_name = last_payment.user_name if last_payment else None  # type: ignore[assignment]
        self.db.flush()
        return credit

    def mark_cancelled(
        self,
        credit: Credit,
        status: CreditStatus,
        actor: Actor,
        reason: str,
    ) -> Credit:
        """Cancel a credit, leaving its amounts as they were."""
        if status != CreditStatus.CANCELLED:
            raise InvariantViolationError(
                f"Cancelling credit {credit.id} requires cancelled status, got {status.value}",
                credit_id=str(credit.id),
            )
        credit.status = status.value  # type: ignore[assignment]
        credit.cancelled_at = utc_now()  # type: ignore[assignment]
        credit.cancelled_by = actor.user_id  # type: ignore[assignment]
        credit.cancelled_by_name = actor.user_name  # type: ignore[assignment]
        credit.cancellation_reason = reason  # type: ignore[assignment]
        self.db.flush()
        return credit
