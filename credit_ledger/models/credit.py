"""Credit model: one invoice-linked debt a client owes a store."""

from datetime import date
from decimal import Decimal

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.ext.hybrid import hybrid_property

from credit_ledger.core.database import Base
from credit_ledger.models.shared import (
    DEFAULT_STORE_ID,
    MONEY_PRECISION,
    MONEY_SCALE,
    CreditStatus,
    UUIDType,
    generate_uuid,
    utc_now,
)
from credit_ledger.services.credit_status import refine_overdue


class Credit(Base):
    """Credit model - tracks what a client owes on one credit sale.

    ``pending_amount`` is derived from the two stored amounts and ``status``
    never holds ``overdue``; that refinement is computed at read time by
    ``current_status``.
    """

    __tablename__ = "credits"
    __table_args__ = (
        UniqueConstraint("store_id", "invoice_number", name="uq_credits_store_invoice"),
        Index("ix_credits_store_client", "store_id", "client_id"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    store_id = Column(UUIDType, nullable=False, index=True, default=DEFAULT_STORE_ID)

    sale_id = Column(String(64), nullable=True, index=True)
    client_id = Column(String(64), nullable=False)
    client_name = Column(String(255), nullable=False)
    invoice_number = Column(String(50), nullable=False)

    total_amount = Column(Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=False)
    paid_amount = Column(Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=False, default=0)
    status = Column(String(20), nullable=False, default=CreditStatus.PENDING.value)
    due_date = Column(Date, nullable=True)

    # Snapshot of the most recent active payment, display only
    last_payment_amount = Column(Numeric(MONEY_PRECISION, MONEY_SCALE), nullable=True)
    last_payment_date = Column(DateTime(timezone=True), nullable=True)
    last_payment_user_id = Column(String(64), nullable=True)
    last_payment_user_name = Column(String(255), nullable=True)

    created_by = Column(String(64), nullable=True)
    created_by_name = Column(String(255), nullable=True)

    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(String(64), nullable=True)
    cancelled_by_name = Column(String(255), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version}

    @hybrid_property
    def pending_amount(self) -> Decimal:
        return Decimal(str(self.total_amount)) - Decimal(str(self.paid_amount))

    @pending_amount.expression  # type: ignore[no-redef]
    def pending_amount(cls):  # type: ignore[no-untyped-def]
        return cls.total_amount - cls.paid_amount

    @property
    def is_cancelled(self) -> bool:
        return self.status == CreditStatus.CANCELLED.value

    def effective_status(self, today: date | None = None) -> CreditStatus:
        """Stored status refined with ``overdue`` when the due date has passed."""
        return refine_overdue(
            CreditStatus(self.status),
            pending_amount=self.pending_amount,
            due_date=self.due_date,  # type: ignore[arg-type]
            today=today or utc_now().date(),
        )

    @property
    def current_status(self) -> str:
        return self.effective_status().value
