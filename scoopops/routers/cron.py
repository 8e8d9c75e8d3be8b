"""Scheduler-triggered jobs, authorised by the shared cron secret.

Each job runs inline by default. With ``?defer=true`` it is handed to the
arq worker instead and the endpoint answers 202 with the queued job id.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from arq.jobs import Job
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from scoopops.core.auth import verify_cron_secret
from scoopops.core.database import get_db
from scoopops.core.rate_limiter import default_rate_limiter, rate_limit
from scoopops.models.shared import utc_now
from scoopops.schemas.coverage import CoverageNotifyResponse
from scoopops.services.coverage_risk_service import CoverageRiskService
from scoopops.services.payment_retry_service import PaymentRetryService
from scoopops.tasks import enqueue_coverage_check, enqueue_payment_retries

logger = logging.getLogger(__name__)

router = APIRouter(
    dependencies=[
        Depends(rate_limit(default_rate_limiter, "cron")),
        Depends(verify_cron_secret),
    ]
)

_QUEUED = {202: {"description": "Job handed to the background worker"}}
_QUEUE_DOWN = {503: {"description": "Background worker queue unavailable"}}


async def _enqueue(name: str, enqueue: Callable[[], Awaitable[Job]]) -> JSONResponse:
    try:
        job = await enqueue()
    except Exception as exc:
        logger.exception("Failed to enqueue %s", name)
        raise HTTPException(status_code=503, detail="Task queue unavailable") from exc
    logger.info("Queued %s as job %s", name, job.job_id)
    return JSONResponse(
        status_code=202,
        content={"success": True, "timestamp": utc_now().isoformat(), "job_id": job.job_id},
    )


@router.api_route(
    "/retry-payments",
    methods=["GET", "POST"],
    response_model=None,
    summary="Run due payment retries",
    responses={**_QUEUED, **_QUEUE_DOWN},
)
async def retry_payments(
    defer: bool = Query(default=False, description="Queue the job on the worker"),
    db: Session = Depends(get_db),
) -> dict[str, Any] | JSONResponse:
    if defer:
        return await _enqueue("payment retries", enqueue_payment_retries)
    logger.info("Starting scheduled payment retry process")
    summary = await PaymentRetryService(db).process_due_retries()
    return {
        "success": True,
        "timestamp": utc_now().isoformat(),
        "results": summary.model_dump(),
    }


@router.api_route(
    "/coverage-risk",
    methods=["GET", "POST"],
    response_model=CoverageNotifyResponse,
    summary="Check coverage gaps and notify",
    responses={**_QUEUED, **_QUEUE_DOWN},
)
async def coverage_risk(
    defer: bool = Query(default=False, description="Queue the job on the worker"),
    db: Session = Depends(get_db),
) -> CoverageNotifyResponse | JSONResponse:
    if defer:
        return await _enqueue("coverage check", enqueue_coverage_check)
    service = CoverageRiskService(db)
    report = service.build_report()
    return await service.notify(report)
