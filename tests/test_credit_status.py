"""Tests for credit status derivation."""

from datetime import date
from decimal import Decimal

import pytest

from credit_ledger.core.exceptions import InvariantViolationError
from credit_ledger.models.credit import CreditStatus
from credit_ledger.services.credit_status import (
    check_amounts,
    consolidated_status,
    derive_status,
    refine_overdue,
)

TODAY = date(2026, 3, 15)


class TestDeriveStatus:
    def test_nothing_paid_is_pending(self):
        assert derive_status(Decimal("100"), Decimal("0")) == CreditStatus.PENDING

    def test_partly_paid_is_partial(self):
        assert derive_status(Decimal("100"), Decimal("0.01")) == CreditStatus.PARTIAL

    def test_fully_paid_is_completed(self):
        assert derive_status(Decimal("100.00"), Decimal("100")) == CreditStatus.COMPLETED

    def test_cancelled_wins(self):
        assert derive_status(Decimal("100"), Decimal("40"), cancelled=True) == CreditStatus.CANCELLED

    def test_never_returns_overdue(self):
        for paid in ("0", "50", "100"):
            assert derive_status(Decimal("100"), Decimal(paid)) != CreditStatus.OVERDUE

    def test_paid_above_total_is_invariant_violation(self):
        with pytest.raises(InvariantViolationError):
            derive_status(Decimal("100"), Decimal("100.01"))

    def test_negative_paid_is_invariant_violation(self):
        with pytest.raises(InvariantViolationError):
            derive_status(Decimal("100"), Decimal("-1"))


class TestCheckAmounts:
    def test_bounds_are_inclusive(self):
        check_amounts(Decimal("100"), Decimal("0"))
        check_amounts(Decimal("100"), Decimal("100"))

    def test_violation_carries_context(self):
        with pytest.raises(InvariantViolationError) as exc_info:
            check_amounts(Decimal("10"), Decimal("11"))
        assert exc_info.value.context == {"total_amount": "10", "paid_amount": "11"}
        assert exc_info.value.public_message == "Operation failed, contact support"


class TestRefineOverdue:
    def test_past_due_pending_is_overdue(self):
        status = refine_overdue(CreditStatus.PENDING, Decimal("10"), date(2026, 3, 14), TODAY)
        assert status == CreditStatus.OVERDUE

    def test_past_due_partial_is_overdue(self):
        status = refine_overdue(CreditStatus.PARTIAL, Decimal("10"), date(2026, 1, 1), TODAY)
        assert status == CreditStatus.OVERDUE

    def test_due_today_is_not_overdue(self):
        assert refine_overdue(CreditStatus.PENDING, Decimal("10"), TODAY, TODAY) == CreditStatus.PENDING

    def test_no_due_date_is_not_overdue(self):
        assert refine_overdue(CreditStatus.PARTIAL, Decimal("10"), None, TODAY) == CreditStatus.PARTIAL

    @pytest.mark.parametrize("status", [CreditStatus.COMPLETED, CreditStatus.CANCELLED])
    def test_closed_credits_are_never_overdue(self, status):
        assert refine_overdue(status, Decimal("10"), date(2020, 1, 1), TODAY) == status

    def test_nothing_pending_is_not_overdue(self):
        status = refine_overdue(CreditStatus.PARTIAL, Decimal("0"), date(2020, 1, 1), TODAY)
        assert status == CreditStatus.PARTIAL


class TestCreditEffectiveStatus:
    def test_past_due_credit_reads_overdue(self, make_credit):
        credit = make_credit(total="100", due_date=date(2026, 3, 1))

        assert credit.status == CreditStatus.PENDING.value
        assert credit.effective_status(today=TODAY) == CreditStatus.OVERDUE
        assert credit.effective_status(today=date(2026, 2, 1)) == CreditStatus.PENDING


class TestConsolidatedStatus:
    def test_completed_when_nothing_pending(self):
        assert consolidated_status(Decimal("0"), Decimal("500")) == CreditStatus.COMPLETED

    def test_partial_when_something_paid(self):
        assert consolidated_status(Decimal("10"), Decimal("5")) == CreditStatus.PARTIAL

    def test_pending_when_nothing_paid(self):
        assert consolidated_status(Decimal("10"), Decimal("0")) == CreditStatus.PENDING
