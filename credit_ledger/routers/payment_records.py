"""Payment record API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from credit_ledger.core.auth import get_current_actor, get_current_store
from credit_ledger.core.database import get_db
from credit_ledger.schemas.actor import Actor
from credit_ledger.schemas.credit import CreditResponse, PaymentCancellationResponse
from credit_ledger.schemas.payment_record import PaymentRecordCancel, PaymentRecordResponse
from credit_ledger.services.cancellation_service import CancellationService

router = APIRouter()


@router.post(
    "/{payment_record_id}/cancel",
    response_model=PaymentCancellationResponse,
    summary="Cancel payment",
    responses={
        401: {"description": "Missing user headers"},
        404: {"description": "Payment record not found"},
        409: {"description": "Payment or its credit is already cancelled"},
        422: {"description": "Missing cancellation reason"},
    },
)
async def cancel_payment_record(
    payment_record_id: UUID,
    data: PaymentRecordCancel,
    db: Session = Depends(get_db),
    store_id: UUID = Depends(get_current_store),
    actor: Actor = Depends(get_current_actor),
) -> PaymentCancellationResponse:
    """Cancel a payment and reverse its effect on the credit."""
    result = CancellationService(db).cancel_payment_record(
        store_id, payment_record_id, actor, data.reason
    )
    return PaymentCancellationResponse(
        credit=CreditResponse.model_validate(result.credit),
        payment_record=PaymentRecordResponse.model_validate(result.payment_record),
    )
