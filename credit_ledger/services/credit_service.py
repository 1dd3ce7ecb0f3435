"""Credit service: creating credits and reading the ledger."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from credit_ledger.core.database import store_errors, transaction
from credit_ledger.core.exceptions import NotFoundError
from credit_ledger.models.credit import Credit, CreditStatus
from credit_ledger.models.payment_record import PaymentRecord
from credit_ledger.repositories.credit_repository import CreditRepository
from credit_ledger.repositories.payment_record_repository import PaymentRecordRepository
from credit_ledger.schemas.actor import Actor
from credit_ledger.schemas.credit import CreditCreate
from credit_ledger.services.notification_service import CREDIT_CREATED, NotificationService

logger = logging.getLogger(__name__)


class CreditService:
    """Service for credit creation and ledger reads."""

    def __init__(self, db: Session):
        self.db = db
        self.credit_repo = CreditRepository(db)
        self.payment_repo = PaymentRecordRepository(db)
        self.notifications = NotificationService(db)

    def create_credit(self, store_id: UUID, data: CreditCreate, actor: Actor) -> Credit:
        """Record a new credit for a credit sale.

        Raises:
            ValidationError: If the total amount is not positive or the invoice
                number already has a credit in this store.
        """
        with transaction(self.db):
            credit = self.credit_repo.create(data, store_id, created_by=actor)
            event = self.notifications.emit_activity(
                store_id,
                CREDIT_CREATED,
                actor,
                {
                    "credit_id": credit.id,
                    "amount": credit.total_amount,
                    "new_status": credit.status,
                    "invoice_number": credit.invoice_number,
                    "client_id": credit.client_id,
                },
            )
            event_ids = [UUID(str(event.id))]

        logger.info(
            "Credit %s created for client %s, invoice %s, total %s",
            credit.id,
            credit.client_id,
            credit.invoice_number,
            credit.total_amount,
        )
        self.notifications.dispatch_after_commit(event_ids)
        return credit

    def get_credit(self, store_id: UUID, credit_id: UUID) -> Credit:
        with store_errors(self.db):
            credit = self.credit_repo.get_by_id(credit_id, store_id)
        if not credit:
            raise NotFoundError("Credit", credit_id)
        return credit

    def get_credit_by_invoice_number(self, store_id: UUID, invoice_number: str) -> Credit:
        with store_errors(self.db):
            credit = self.credit_repo.get_by_invoice_number(store_id, invoice_number)
        if not credit:
            raise NotFoundError("Credit for invoice", invoice_number)
        return credit

    def list_credits(
        self,
        store_id: UUID,
        skip: int = 0,
        limit: int = 100,
        client_id: str | None = None,
        status: CreditStatus | None = None,
    ) -> tuple[list[Credit], int]:
        """List credits of a store, newest first, with the total matching count."""
        with store_errors(self.db):
            credits = self.credit_repo.get_all(
                store_id, skip=skip, limit=limit, client_id=client_id, status=status
            )
            total = self.credit_repo.count(store_id, client_id=client_id, status=status)
        return credits, total

    def list_credits_by_client(self, store_id: UUID, client_id: str) -> list[Credit]:
        with store_errors(self.db):
            return self.credit_repo.get_by_client_id(store_id, client_id)

    def list_payment_records(self, store_id: UUID, credit_id: UUID) -> list[PaymentRecord]:
        """Payment history of a credit, most recent first, cancelled ones included."""
        credit = self.get_credit(store_id, credit_id)
        with store_errors(self.db):
            return self.payment_repo.get_by_credit_id(UUID(str(credit.id)))
