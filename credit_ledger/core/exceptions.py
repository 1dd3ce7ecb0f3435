"""Typed errors raised by the credit ledger.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer renders it with, so callers catch by type instead of parsing messages.

    LedgerError
     +-- ValidationError           bad input shape or amount
     +-- NotFoundError             unknown credit / payment record
     +-- OverpaymentError          payment larger than the pending balance
     +-- InvalidStateError         operation not allowed in the current status
     +-- ConflictError             concurrent write on the same credit
     +-- InvariantViolationError   ledger arithmetic would break an invariant
     +-- StoreTimeoutError         ledger store did not answer in time
"""

from decimal import Decimal
from typing import Any


class LedgerError(Exception):
    """Base class for all ledger errors."""

    code: str = "LEDGER_ERROR"
    http_status: int = 400

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    @property
    def public_message(self) -> str:
        return self.message


class ValidationError(LedgerError):
    code = "VALIDATION_ERROR"
    http_status = 422


class NotFoundError(LedgerError):
    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(f"{resource} {resource_id} not found", resource_id=str(resource_id))
        self.resource = resource
        self.resource_id = resource_id


class OverpaymentError(LedgerError):
    code = "OVERPAYMENT"
    http_status = 422

    def __init__(self, amount: Decimal, pending_amount: Decimal):
        super().__init__(
            f"Payment amount {amount} exceeds pending amount {pending_amount}",
            amount=str(amount),
            pending_amount=str(pending_amount),
        )
        self.amount = amount
        self.pending_amount = pending_amount


class InvalidStateError(LedgerError):
    code = "INVALID_STATE"
    http_status = 409


class ConflictError(LedgerError):
    code = "CONCURRENT_MODIFICATION"
    http_status = 409


class InvariantViolationError(LedgerError):
    """A mutation would leave the ledger inconsistent; indicates a bug or corrupt data."""

    code = "INVARIANT_VIOLATION"
    http_status = 500

    @property
    def public_message(self) -> str:
        return "Operation failed, contact support"


class StoreTimeoutError(LedgerError, TimeoutError):
    code = "STORE_TIMEOUT"
    http_status = 503
