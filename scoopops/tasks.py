"""Queueing jobs for the arq worker in ``scoopops.worker``."""

from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from scoopops.core.config import settings

redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)

PAYMENT_RETRIES_TASK = "process_payment_retries_task"
COVERAGE_CHECK_TASK = "check_coverage_risk_task"


async def get_redis_pool() -> ArqRedis:
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job:
    """Queue ``task_name`` on a short-lived pool.

    Raises when Redis is unreachable, or when arq declines the job because one
    with the same id is already queued.
    """
    pool = await get_redis_pool()
    try:
        job = await pool.enqueue_job(task_name, *args, **kwargs)
    finally:
        await pool.close()
    if job is None:
        raise RuntimeError(f"Job for {task_name} is already queued")
    return job


async def enqueue_payment_retries() -> Job:
    """Run due payment retries now instead of waiting for the hourly cron."""
    return await enqueue_task(PAYMENT_RETRIES_TASK)


async def enqueue_coverage_check() -> Job:
    return await enqueue_task(COVERAGE_CHECK_TASK)
