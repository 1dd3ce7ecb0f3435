"""Tests for worker background tasks and cron job registration."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from credit_ledger.core import database as db_module
from credit_ledger.models.outbox_event import OutboxEventStatus, OutboxEventType
from credit_ledger.repositories.outbox_event_repository import OutboxEventRepository
from credit_ledger.schemas.payment_record import PaymentCreate
from credit_ledger.services.notification_service import NotificationService
from credit_ledger.services.payment_service import PaymentService
from credit_ledger.tasks import (
    enqueue_dispatch_pending_notifications,
    enqueue_retry_failed_notifications,
)
from credit_ledger.worker import (
    WorkerSettings,
    dispatch_pending_notifications_task,
    retry_failed_notifications_task,
)
from tests.conftest import CASHIER, DEFAULT_STORE_ID


class TestDispatchPendingNotificationsTask:
    @pytest.mark.asyncio
    async def test_dispatches_pending(self):
        mock_service = MagicMock()
        mock_service.dispatch_pending.return_value = 2

        with patch("credit_ledger.worker.NotificationService", return_value=mock_service):
            result = await dispatch_pending_notifications_task({})

        assert result == 2
        mock_service.dispatch_pending.assert_called_once()

    @pytest.mark.asyncio
    async def test_closes_session_on_exception(self):
        mock_service = MagicMock()
        mock_service.dispatch_pending.side_effect = RuntimeError("DB error")
        mock_session = MagicMock()

        with (
            patch("credit_ledger.worker.SessionLocal", return_value=mock_session),
            patch("credit_ledger.worker.NotificationService", return_value=mock_service),
            pytest.raises(RuntimeError, match="DB error"),
        ):
            await dispatch_pending_notifications_task({})

        mock_session.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_integration_delivers_left_over_events(self, db_session, make_credit):
        credit = make_credit(total="100")
        with patch.object(NotificationService, "dispatch_after_commit", return_value=0):
            PaymentService(db_session).apply_payment(
                DEFAULT_STORE_ID, credit.id, PaymentCreate(amount=Decimal("10")), CASHIER
            )

        with patch("credit_ledger.worker.SessionLocal", db_module.SessionLocal):
            result = await dispatch_pending_notifications_task({})

        assert result == 1
        assert OutboxEventRepository(db_session).get_pending() == []


class TestRetryFailedNotificationsTask:
    @pytest.mark.asyncio
    async def test_retries_failed(self):
        mock_service = MagicMock()
        mock_service.retry_failed.return_value = 3

        with patch("credit_ledger.worker.NotificationService", return_value=mock_service):
            result = await retry_failed_notifications_task({})

        assert result == 3

    @pytest.mark.asyncio
    async def test_integration_without_failed_events(self, db_session):
        with patch("credit_ledger.worker.SessionLocal", db_module.SessionLocal):
            result = await retry_failed_notifications_task({})
        assert result == 0

    @pytest.mark.asyncio
    async def test_integration_retries_failed_event(self, db_session, make_credit):
        credit = make_credit(sale_id="sale-3")
        failed = OutboxEventRepository(db_session).add(
            DEFAULT_STORE_ID,
            OutboxEventType.SALE_CREDIT_STATUS,
            {
                "sale_id": "sale-3",
                "credit_id": str(credit.id),
                "invoice_number": credit.invoice_number,
                "credit_status": "pending",
            },
        )
        failed.status = OutboxEventStatus.FAILED.value
        db_session.commit()

        with patch("credit_ledger.worker.SessionLocal", db_module.SessionLocal):
            result = await retry_failed_notifications_task({})

        assert result == 1
        db_session.refresh(failed)
        assert failed.status == OutboxEventStatus.DELIVERED.value
        assert failed.retries == 1


class TestWorkerSettings:
    def test_registers_functions(self):
        assert dispatch_pending_notifications_task in WorkerSettings.functions
        assert retry_failed_notifications_task in WorkerSettings.functions

    def test_cron_jobs(self):
        assert len(WorkerSettings.cron_jobs) == 2
        retry_job = WorkerSettings.cron_jobs[1]
        assert retry_job.minute == {0, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50, 55}


class TestEnqueue:
    @pytest.mark.asyncio
    async def test_enqueue_helpers(self):
        pool = MagicMock()
        pool.enqueue_job = AsyncMock(return_value="job")
        pool.close = AsyncMock()

        with patch("credit_ledger.tasks.create_pool", AsyncMock(return_value=pool)):
            assert await enqueue_dispatch_pending_notifications() == "job"
            assert await enqueue_retry_failed_notifications() == "job"

        pool.enqueue_job.assert_any_call("dispatch_pending_notifications_task")
        pool.enqueue_job.assert_any_call("retry_failed_notifications_task")
        assert pool.close.await_count == 2
