"""PaymentRecord schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from credit_ledger.models.payment_record import PaymentMethod


class PaymentCreate(BaseModel):
    amount: Decimal = Field(max_digits=14, decimal_places=2)
    payment_date: datetime | None = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    cash_amount: Decimal | None = Field(default=None, max_digits=14, decimal_places=2)
    transfer_amount: Decimal | None = Field(default=None, max_digits=14, decimal_places=2)
    description: str | None = Field(default=None, max_length=2000)


class PaymentRecordCancel(BaseModel):
    reason: str = Field(max_length=2000)


class PaymentRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    credit_id: UUID
    amount: Decimal
    payment_date: datetime
    payment_method: str
    cash_amount: Decimal | None = None
    transfer_amount: Decimal | None = None
    description: str | None = None
    user_id: str
    user_name: str
    status: str
    cancelled_at: datetime | None = None
    cancelled_by: str | None = None
    cancelled_by_name: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
