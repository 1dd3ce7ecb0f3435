"""Credit API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from credit_ledger.core.auth import get_current_actor, get_current_store
from credit_ledger.core.database import get_db
from credit_ledger.models.credit import CreditStatus
from credit_ledger.schemas.actor import Actor
from credit_ledger.schemas.credit import (
    CreditCancel,
    CreditCancellationResponse,
    CreditCreate,
    CreditResponse,
    PaymentApplicationResponse,
)
from credit_ledger.schemas.payment_record import PaymentCreate, PaymentRecordResponse
from credit_ledger.services.cancellation_service import CancellationService
from credit_ledger.services.credit_service import CreditService
from credit_ledger.services.payment_service import PaymentService

router = APIRouter()


@router.post(
    "/",
    response_model=CreditResponse,
    status_code=201,
    summary="Create credit",
    responses={
        401: {"description": "Missing user headers"},
        422: {"description": "Validation error or duplicate invoice number"},
    },
)
async def create_credit(
    data: CreditCreate,
    db: Session = Depends(get_db),
    store_id: UUID = Depends(get_current_store),
    actor: Actor = Depends(get_current_actor),
) -> CreditResponse:
    """Record a credit for a sale made on credit."""
    credit = CreditService(db).create_credit(store_id, data, actor)
    return CreditResponse.model_validate(credit)


@router.get(
    "/",
    response_model=list[CreditResponse],
    summary="List credits",
)
async def list_credits(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    client_id: str | None = None,
    status: CreditStatus | None = None,
    db: Session = Depends(get_db),
    store_id: UUID = Depends(get_current_store),
) -> list[CreditResponse]:
    """List credits, newest first. Filtering by ``overdue`` uses the due date."""
    credits, total = CreditService(db).list_credits(
        store_id, skip=skip, limit=limit, client_id=client_id, status=status
    )
    response.headers["X-Total-Count"] = str(total)
    return [CreditResponse.model_validate(credit) for credit in credits]


@router.get(
    "/by_invoice/{invoice_number}",
    response_model=CreditResponse,
    summary="Get credit by invoice number",
    responses={404: {"description": "No credit for this invoice"}},
)
async def get_credit_by_invoice(
    invoice_number: str,
    db: Session = Depends(get_db),
    store_id: UUID = Depends(get_current_store),
) -> CreditResponse:
    credit = CreditService(db).get_credit_by_invoice_number(store_id, invoice_number)
    return CreditResponse.model_validate(credit)


@router.get(
    "/{credit_id}",
    response_model=CreditResponse,
    summary="Get credit",
    responses={404: {"description": "Credit not found"}},
)
async def get_credit(
    credit_id: UUID,
    db: Session = Depends(get_db),
    store_id: UUID = Depends(get_current_store),
) -> CreditResponse:
    credit = CreditService(db).get_credit(store_id, credit_id)
    return CreditResponse.model_validate(credit)


@router.post(
    "/{credit_id}/payments",
    response_model=PaymentApplicationResponse,
    status_code=201,
    summary="Apply payment",
    responses={
        401: {"description": "Missing user headers"},
        404: {"description": "Credit not found"},
        409: {"description": "Credit is cancelled or was modified concurrently"},
        422: {"description": "Invalid amount, invalid split or overpayment"},
        503: {"description": "Ledger store did not answer in time"},
    },
)
async def apply_payment(
    credit_id: UUID,
    data: PaymentCreate,
    db: Session = Depends(get_db),
    store_id: UUID = Depends(get_current_store),
    actor: Actor = Depends(get_current_actor),
) -> PaymentApplicationResponse:
    """Apply a payment to a credit."""
    result = PaymentService(db).apply_payment(store_id, credit_id, data, actor)
    return PaymentApplicationResponse(
        credit=CreditResponse.model_validate(result.credit),
        payment_record=PaymentRecordResponse.model_validate(result.payment_record),
    )


@router.get(
    "/{credit_id}/payments",
    response_model=list[PaymentRecordResponse],
    summary="Payment history",
    responses={404: {"description": "Credit not found"}},
)
async def list_payments(
    credit_id: UUID,
    db: Session = Depends(get_db),
    store_id: UUID = Depends(get_current_store),
) -> list[PaymentRecordResponse]:
    """Payment history of a credit, most recent first, cancelled payments included."""
    records = CreditService(db).list_payment_records(store_id, credit_id)
    return [PaymentRecordResponse.model_validate(record) for record in records]


@router.post(
    "/{credit_id}/cancel",
    response_model=CreditCancellationResponse,
    summary="Cancel credit",
    responses={
        401: {"description": "Missing user headers"},
        404: {"description": "Credit not found"},
        409: {"description": "Credit is already cancelled"},
        422: {"description": "Missing cancellation reason"},
    },
)
async def cancel_credit(
    credit_id: UUID,
    data: CreditCancel,
    db: Session = Depends(get_db),
    store_id: UUID = Depends(get_current_store),
    actor: Actor = Depends(get_current_actor),
) -> CreditCancellationResponse:
    """Cancel a credit. Payments already collected stay recorded."""
    result = CancellationService(db).cancel_credit(store_id, credit_id, actor, data.reason)
    return CreditCancellationResponse(
        credit=CreditResponse.model_validate(result.credit),
        total_collected=result.total_collected,
    )
