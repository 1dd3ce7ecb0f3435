"""Per-client consolidated credit schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class ClientScoreResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stars: int
    label: str
    score: int


class ClientSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    client_id: str
    client_name: str
    include_cancelled: bool
    total_amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal
    status: str
    credit_count: int
    cancelled_count: int
    completed_count: int
    overdue_count: int
    score: ClientScoreResponse
