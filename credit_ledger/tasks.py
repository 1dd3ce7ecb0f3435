from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from credit_ledger.core.config import settings

# Redis connection settings
redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def get_redis_pool() -> ArqRedis:
    """Get or create Redis pool for arq"""
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job:
    """Enqueue a task to the arq worker."""
    pool = await get_redis_pool()
    try:
        job = await pool.enqueue_job(task_name, *args, **kwargs)
        return job  # type: ignore[return-value]
    finally:
        await pool.close()


async def enqueue_dispatch_pending_notifications() -> Job:
    """Enqueue delivery of notifications still pending in the outbox."""
    return await enqueue_task("dispatch_pending_notifications_task")


async def enqueue_retry_failed_notifications() -> Job:
    """Enqueue a retry of failed notifications."""
    return await enqueue_task("retry_failed_notifications_task")
