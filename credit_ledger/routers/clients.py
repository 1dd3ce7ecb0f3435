"""Per-client credit endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from credit_ledger.core.auth import get_current_store
from credit_ledger.core.database import get_db
from credit_ledger.schemas.client_summary import ClientSummaryResponse
from credit_ledger.schemas.credit import CreditResponse
from credit_ledger.services.aggregation_service import AggregationService
from credit_ledger.services.credit_service import CreditService

router = APIRouter()


@router.get(
    "/summary",
    response_model=list[ClientSummaryResponse],
    summary="Summaries of all clients",
)
async def list_client_summaries(
    include_cancelled: bool = False,
    db: Session = Depends(get_db),
    store_id: UUID = Depends(get_current_store),
) -> list[ClientSummaryResponse]:
    """One consolidated view per client, largest pending balance first."""
    summaries = AggregationService(db).summarize_all_clients(
        store_id, include_cancelled=include_cancelled
    )
    return [ClientSummaryResponse.model_validate(summary) for summary in summaries]


@router.get(
    "/{client_id}/summary",
    response_model=ClientSummaryResponse,
    summary="Client summary",
    responses={404: {"description": "Client has no credits"}},
)
async def get_client_summary(
    client_id: str,
    include_cancelled: bool = False,
    db: Session = Depends(get_db),
    store_id: UUID = Depends(get_current_store),
) -> ClientSummaryResponse:
    summary = AggregationService(db).summarize_client(
        store_id, client_id, include_cancelled=include_cancelled
    )
    return ClientSummaryResponse.model_validate(summary)


@router.get(
    "/{client_id}/credits",
    response_model=list[CreditResponse],
    summary="Credits of a client",
)
async def list_client_credits(
    client_id: str,
    db: Session = Depends(get_db),
    store_id: UUID = Depends(get_current_store),
) -> list[CreditResponse]:
    credits = CreditService(db).list_credits_by_client(store_id, client_id)
    return [CreditResponse.model_validate(credit) for credit in credits]
