"""Coverage-risk reporting endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from scoopops.core.auth import require_roles
from scoopops.core.database import get_db
from scoopops.models.user import UserRole
from scoopops.schemas.coverage import (
    CoverageNotifyRequest,
    CoverageNotifyResponse,
    CoverageRiskReport,
)
from scoopops.services.coverage_risk_service import CoverageRiskService

router = APIRouter(dependencies=[Depends(require_roles(UserRole.ADMIN))])


@router.get(
    "/risk",
    response_model=CoverageRiskReport,
    summary="Coverage-risk report",
    responses={403: {"description": "Admins only"}},
)
async def get_coverage_risk(
    refresh: bool = False,
    db: Session = Depends(get_db),
) -> CoverageRiskReport:
    """Zip codes with active customers but no active scooper.

    The report is cached briefly; pass ``refresh=true`` to rebuild it.
    """
    service = CoverageRiskService(db)
    if refresh:
        service.invalidate_cache()
    return service.get_cached_report()


@router.post(
    "/risk/notify",
    response_model=CoverageNotifyResponse,
    summary="Send coverage-gap notifications",
)
async def notify_coverage_risk(
    data: CoverageNotifyRequest | None = None,
    db: Session = Depends(get_db),
) -> CoverageNotifyResponse:
    """Build a fresh report and alert the admin (and optionally customers)."""
    service = CoverageRiskService(db)
    report = service.build_report()
    return await service.notify(
        report, notify_customers=data.notify_customers if data else None
    )
