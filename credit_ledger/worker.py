import logging
from typing import Any

from arq import cron

from credit_ledger.core.database import SessionLocal
from credit_ledger.services.notification_service import NotificationService
from credit_ledger.tasks import redis_settings

logger = logging.getLogger(__name__)


async def dispatch_pending_notifications_task(ctx: dict[str, Any]) -> int:
    """Background task: deliver outbox events that were not delivered right
    after their ledger commit.

    Runs every minute.
    """
    db = SessionLocal()
    try:
        service = NotificationService(db)
        count = service.dispatch_pending()
        if count > 0:
            logger.info("Dispatched %d pending notifications", count)
        return count
    finally:
        db.close()


async def retry_failed_notifications_task(ctx: dict[str, Any]) -> int:
    """Background task: retry failed notifications with exponential backoff.

    Runs every 5 minutes.
    """
    db = SessionLocal()
    try:
        service = NotificationService(db)
        count = service.retry_failed()
        if count > 0:
            logger.info("Retried %d failed notifications", count)
        return count
    finally:
        db.close()


class WorkerSettings:
    functions = [
        dispatch_pending_notifications_task,
        retry_failed_notifications_task,
    ]
    cron_jobs = [
        cron(dispatch_pending_notifications_task),  # every minute
        cron(
            retry_failed_notifications_task,
            minute={0, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50, 55},
        ),
    ]
    redis_settings = redis_settings
