"""AuditLog model for the activity trail of ledger mutations."""


from sqlalchemy import JSON, Column, DateTime, String, func

from credit_ledger.core.database import Base
from credit_ledger.models.shared import DEFAULT_STORE_ID, UUIDType, generate_uuid


class AuditLog(Base):
    """AuditLog model - one row per mutating ledger operation."""

    __tablename__ = "audit_logs"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    store_id = Column(UUIDType, nullable=False, index=True, default=DEFAULT_STORE_ID)
    action = Column(String(50), nullable=False, index=True)
    module = Column(String(50), nullable=False, default="credits")
    credit_id = Column(UUIDType, nullable=True, index=True)
    actor_id = Column(String(64), nullable=True)
    actor_name = Column(String(255), nullable=True)
    details = Column(JSON, nullable=False, default=dict)
    occurred_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
