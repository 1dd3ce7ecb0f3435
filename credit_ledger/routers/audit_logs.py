"""Audit log API endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from credit_ledger.core.auth import get_current_store
from credit_ledger.core.database import get_db
from credit_ledger.repositories.audit_log_repository import AuditLogRepository
from credit_ledger.schemas.audit_log import AuditLogResponse

router = APIRouter()


@router.get(
    "/",
    response_model=list[AuditLogResponse],
    summary="List audit logs",
)
async def list_audit_logs(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    action: str | None = None,
    credit_id: UUID | None = None,
    actor_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    db: Session = Depends(get_db),
    store_id: UUID = Depends(get_current_store),
) -> list[AuditLogResponse]:
    """List credit activity, most recent first, with optional filters."""
    repo = AuditLogRepository(db)
    return [
        AuditLogResponse.model_validate(log)
        for log in repo.get_all(
            store_id=store_id,
            skip=skip,
            limit=limit,
            action=action,
            credit_id=credit_id,
            actor_id=actor_id,
            start_date=start_date,
            end_date=end_date,
        )
    ]
