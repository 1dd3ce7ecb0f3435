"""Read-only consolidated views of a client's credits."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from credit_ledger.core.database import store_errors
from credit_ledger.core.exceptions import NotFoundError
from credit_ledger.models.credit import Credit, CreditStatus
from credit_ledger.models.shared import utc_now
from credit_ledger.repositories.credit_repository import CreditRepository
from credit_ledger.services.credit_status import ZERO, consolidated_status

QUICK_PAYMENT_DAYS = 60


@dataclass
class ClientScore:
    stars: int
    label: str
    score: int


@dataclass
class ClientCreditSummary:
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
    score: ClientScore


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.replace(tzinfo=None)


def _is_fully_paid(credit: Credit) -> bool:
    return credit.status == CreditStatus.COMPLETED.value or credit.pending_amount == ZERO


def _paid_on_time(credit: Credit, today: date) -> bool:
    if credit.last_payment_date is not None:
        return _naive_utc(credit.last_payment_date).date() <= credit.due_date  # type: ignore[return-value,operator]
    return credit.due_date >= today  # type: ignore[return-value,operator]


def _paid_quickly(credit: Credit) -> bool:
    if credit.last_payment_date is None or credit.created_at is None:
        return False
    elapsed = _naive_utc(credit.last_payment_date) - _naive_utc(credit.created_at)  # type: ignore[arg-type]
    return elapsed.total_seconds() / 86400 <= QUICK_PAYMENT_DAYS


def score_client(credits: Sequence[Credit], today: date) -> ClientScore:
    """Payment reliability score of a client, from 1 to 5 stars.

    Weighted from the non-cancelled credits: completion rate 50%, share of
    the historical total already collected 30%, completed credits paid by
    their due date 15%, completed credits paid within 60 days 5%.
    """
    active = [c for c in credits if not c.is_cancelled]
    if not active:
        return ClientScore(stars=0, label="no_history", score=0)

    total_debt = sum((c.pending_amount for c in active), ZERO)
    fully_paid = [c for c in active if _is_fully_paid(c)]
    if total_debt == ZERO and len(fully_paid) == len(active):
        return ClientScore(stars=5, label="excellent", score=100)

    completion_rate = Decimal(len(fully_paid)) / len(active) * 100
    historical = sum((Decimal(str(c.total_amount)) for c in active), ZERO)
    collected_rate = (historical - total_debt) / historical * 100 if historical > 0 else Decimal(100)

    completed = [c for c in active if c.status == CreditStatus.COMPLETED.value]
    with_due_date = [c for c in completed if c.due_date is not None]
    if with_due_date:
        on_time = sum(1 for c in with_due_date if _paid_on_time(c, today))
        on_time_rate = Decimal(on_time) / len(with_due_date) * 100
    else:
        on_time_rate = completion_rate
    if completed:
        quick_rate = Decimal(sum(1 for c in completed if _paid_quickly(c))) / len(completed) * 100
    else:
        quick_rate = ZERO

    weighted = (
        completion_rate * Decimal("0.5")
        + collected_rate * Decimal("0.3")
        + on_time_rate * Decimal("0.15")
        + quick_rate * Decimal("0.05")
    )
    score = int(weighted.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    if score >= 95 or (completion_rate == 100 and total_debt == ZERO):
        return ClientScore(stars=5, label="excellent", score=score)
    if score >= 80 or (completion_rate >= 80 and total_debt == ZERO):
        return ClientScore(stars=4, label="good", score=score)
    if score >= 60 or (completion_rate >= 60 and collected_rate >= 70):
        return ClientScore(stars=3, label="regular", score=score)
    if score >= 40:
        return ClientScore(stars=2, label="risky", score=score)
    return ClientScore(stars=1, label="high_risk", score=score)


def summarize_credits(
    client_id: str,
    credits: Sequence[Credit],
    include_cancelled: bool,
    today: date,
) -> ClientCreditSummary:
    """Sum a client's credits into one consolidated view.

    Cancelled credits count in the sums only when ``include_cancelled``.
    """
    included = [c for c in credits if include_cancelled or not c.is_cancelled]
    total = sum((Decimal(str(c.total_amount)) for c in included), ZERO)
    paid = sum((Decimal(str(c.paid_amount)) for c in included), ZERO)
    pending = sum((c.pending_amount for c in included), ZERO)
    # Most recent denormalized name wins
    client_name = str(credits[-1].client_name) if credits else ""

    return ClientCreditSummary(
        client_id=client_id,
        client_name=client_name,
        include_cancelled=include_cancelled,
        total_amount=total,
        paid_amount=paid,
        pending_amount=pending,
        status=consolidated_status(pending, paid).value,
        credit_count=len(included),
        cancelled_count=sum(1 for c in credits if c.is_cancelled),
        completed_count=sum(1 for c in included if c.status == CreditStatus.COMPLETED.value),
        overdue_count=sum(
            1 for c in included if c.effective_status(today) == CreditStatus.OVERDUE
        ),
        score=score_client(credits, today),
    )


class AggregationService:
    """Consolidated per-client credit views. Performs no writes."""

    def __init__(self, db: Session):
        self.db = db
        self.credit_repo = CreditRepository(db)

    def summarize_client(
        self,
        store_id: UUID,
        client_id: str,
        include_cancelled: bool = False,
        today: date | None = None,
    ) -> ClientCreditSummary:
        """Consolidated view of one client's credits.

        Raises:
            NotFoundError: If the client has no credits in this store.
        """
        with store_errors(self.db):
            credits = self.credit_repo.get_by_client_id(store_id, client_id)
        if not credits:
            raise NotFoundError("Credits for client", client_id)
        return summarize_credits(
            client_id, credits, include_cancelled, today or utc_now().date()
        )

    def summarize_all_clients(
        self,
        store_id: UUID,
        include_cancelled: bool = False,
        today: date | None = None,
    ) -> list[ClientCreditSummary]:
        """One consolidated view per client, largest pending balance first."""
        today = today or utc_now().date()
        with store_errors(self.db):
            credits = self.credit_repo.get_by_store_id(store_id)

        by_client: dict[str, list[Credit]] = {}
        for credit in credits:
            by_client.setdefault(str(credit.client_id), []).append(credit)

        summaries = [
            summarize_credits(client_id, client_credits, include_cancelled, today)
            for client_id, client_credits in by_client.items()
        ]
        summaries.sort(key=lambda s: (-s.pending_amount, s.client_name))
        return summaries
