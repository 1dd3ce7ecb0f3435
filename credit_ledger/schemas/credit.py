"""Credit schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from credit_ledger.schemas.payment_record import PaymentRecordResponse


class CreditCreate(BaseModel):
    sale_id: str | None = Field(default=None, max_length=64)
    client_id: str = Field(min_length=1, max_length=64)
    client_name: str = Field(min_length=1, max_length=255)
    invoice_number: str = Field(min_length=1, max_length=50)
    total_amount: Decimal = Field(max_digits=14, decimal_places=2)
    due_date: date | None = None


class CreditCancel(BaseModel):
    reason: str = Field(max_length=2000)


class CreditResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    store_id: UUID
    sale_id: str | None = None
    client_id: str
    client_name: str
    invoice_number: str
    total_amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal
    status: str
    current_status: str
    due_date: date | None = None
    last_payment_amount: Decimal | None = None
    last_payment_date: datetime | None = None
    last_payment_user_id: str | None = None
    last_payment_user_name: str | None = None
    created_by: str | None = None
    created_by_name: str | None = None
    cancelled_at: datetime | None = None
    cancelled_by: str | None = None
    cancelled_by_name: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PaymentApplicationResponse(BaseModel):
    credit: CreditResponse
    payment_record: PaymentRecordResponse


class CreditCancellationResponse(BaseModel):
    credit: CreditResponse
    total_collected: Decimal


class PaymentCancellationResponse(BaseModel):
    credit: CreditResponse
    payment_record: PaymentRecordResponse
