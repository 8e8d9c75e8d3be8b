import logging
from typing import Any

from arq import cron

from scoopops.core.database import SessionLocal
from scoopops.services.cache_service import CacheService
from scoopops.services.coverage_risk_service import CoverageRiskService
from scoopops.services.payment_retry_service import PaymentRetryService
from scoopops.tasks import redis_settings

logger = logging.getLogger(__name__)


async def process_payment_retries_task(ctx: dict[str, Any]) -> dict[str, int]:
    """Background task: charge every payment retry that has come due.

    Runs hourly.
    """
    db = SessionLocal()
    try:
        summary = await PaymentRetryService(db).process_due_retries()
        if summary.total > 0:
            logger.info(
                "Processed %d payment retries (%d succeeded, %d failed, %d skipped)",
                summary.total,
                summary.succeeded,
                summary.failed,
                summary.skipped,
            )
        return summary.model_dump()
    finally:
        db.close()


async def check_coverage_risk_task(ctx: dict[str, Any]) -> int:
    """Background task: alert the admin about zip codes without a scooper.

    Runs daily. Returns the number of uncovered zip codes.
    """
    db = SessionLocal()
    try:
        service = CoverageRiskService(db)
        report = service.build_report()
        result = await service.notify(report)
        return result.uncovered_zip_count
    finally:
        db.close()


async def purge_expired_cache_task(ctx: dict[str, Any]) -> int:
    db = SessionLocal()
    try:
        return CacheService(db).purge_expired()
    finally:
        db.close()


class WorkerSettings:
    functions = [
        process_payment_retries_task,
        check_coverage_risk_task,
        purge_expired_cache_task,
    ]
    cron_jobs = [
        cron(process_payment_retries_task, minute={0}),  # hourly
        cron(check_coverage_risk_task, hour={8}, minute={0}),  # daily at 08:00
        cron(purge_expired_cache_task, minute={30}),  # hourly
    ]
    redis_settings = redis_settings
