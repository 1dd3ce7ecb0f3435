"""Credit status derivation.

Status is never set ad hoc: every mutating operation ends by calling
``derive_status`` with the credit's new amounts. ``overdue`` is not stored,
``refine_overdue`` applies it when a credit is read.
"""

from datetime import date
from decimal import Decimal

from credit_ledger.core.exceptions import InvariantViolationError
from credit_ledger.models.shared import CreditStatus

ZERO = Decimal("0")


def check_amounts(total_amount: Decimal, paid_amount: Decimal) -> None:
    """Raise InvariantViolationError unless 0 <= paid_amount <= total_amount."""
    if paid_amount < ZERO:
        raise InvariantViolationError(
            f"Paid amount {paid_amount} would be negative",
            total_amount=str(total_amount),
            paid_amount=str(paid_amount),
        )
    if paid_amount > total_amount:
        raise InvariantViolationError(
            f"Paid amount {paid_amount} would exceed total amount {total_amount}",
            total_amount=str(total_amount),
            paid_amount=str(paid_amount),
        )


def derive_status(
    total_amount: Decimal,
    paid_amount: Decimal,
    cancelled: bool = False,
) -> CreditStatus:
    """Stored status as a pure function of the amounts.

    cancelled wins; otherwise completed when nothing is pending, partial when
    something was paid, pending when nothing was.
    """
    if cancelled:
        return CreditStatus.CANCELLED
    check_amounts(total_amount, paid_amount)
    if total_amount - paid_amount == ZERO:
        return CreditStatus.COMPLETED
    if paid_amount > ZERO:
        return CreditStatus.PARTIAL
    return CreditStatus.PENDING


def refine_overdue(
    status: CreditStatus,
    pending_amount: Decimal,
    due_date: date | None,
    today: date,
) -> CreditStatus:
    """Display status: pending/partial credits past their due date read as overdue."""
    if status not in (CreditStatus.PENDING, CreditStatus.PARTIAL):
        return status
    if due_date is None or pending_amount <= ZERO:
        return status
    if due_date < today:
        return CreditStatus.OVERDUE
    return status


def consolidated_status(total_pending: Decimal, total_paid: Decimal) -> CreditStatus:
    """Combined status of several credits from their summed amounts."""
    if total_pending == ZERO:
        return CreditStatus.COMPLETED
    if total_paid > ZERO:
        return CreditStatus.PARTIAL
    return CreditStatus.PENDING
