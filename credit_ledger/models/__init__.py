from credit_ledger.models.audit_log import AuditLog
from credit_ledger.models.credit import Credit, CreditStatus
from credit_ledger.models.outbox_event import OutboxEvent, OutboxEventStatus, OutboxEventType
from credit_ledger.models.payment_record import (
    PaymentMethod,
    PaymentRecord,
    PaymentRecordStatus,
)

__all__ = [
    "AuditLog",
    "Credit",
    "CreditStatus",
    "OutboxEvent",
    "OutboxEventStatus",
    "OutboxEventType",
    "PaymentMethod",
    "PaymentRecord",
    "PaymentRecordStatus",
]
