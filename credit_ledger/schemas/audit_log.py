"""Pydantic schemas for AuditLog."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    id: UUID
    store_id: UUID
    action: str
    module: str
    credit_id: UUID | None
    actor_id: str | None
    actor_name: str | None
    details: dict[str, Any]
    occurred_at: datetime

    model_config = {"from_attributes": True}

    created_at: datetime | None = None
