"""Detect zip codes that have active customers but no active scooper."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from scoopops.core.config import settings
from scoopops.models.shared import utc_now
from scoopops.repositories.coverage_area_repository import CoverageAreaRepository
from scoopops.repositories.customer_repository import CustomerRepository
from scoopops.schemas.coverage import (
    CoverageNotifyResponse,
    CoveragePriority,
    CoverageRiskReport,
    UncoveredZip,
)
from scoopops.services.cache_service import CacheService
from scoopops.services.email_service import EmailService
from scoopops.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

REPORT_CACHE_KEY = "coverage:risk_report"


def priority_for(customer_count: int) -> CoveragePriority:
    if customer_count >= settings.COVERAGE_HIGH_PRIORITY_MIN_CUSTOMERS:
        return CoveragePriority.HIGH
    return CoveragePriority.MEDIUM


class CoverageRiskService:
    def __init__(self, db: Session, email_service: EmailService | None = None):
        self.db = db
        self.customer_repo = CustomerRepository(db)
        self.coverage_repo = CoverageAreaRepository(db)
        self.notification_service = NotificationService(db)
        self.cache = CacheService(db)
        self.email_service = email_service or EmailService()

    def find_uncovered_zip_codes(self) -> list[str]:
        """Zip codes of active customers with no active coverage area, sorted."""
        customer_zips = set(self.customer_repo.count_active_by_zip())
        covered_zips = self.coverage_repo.get_active_zip_codes()
        return sorted(customer_zips - covered_zips)

    def build_report(self, now: datetime | None = None) -> CoverageRiskReport:
        customer_counts = self.customer_repo.count_active_by_zip()
        covered_zips = self.coverage_repo.get_active_zip_codes()
        uncovered_zips = set(customer_counts) - covered_zips

        uncovered = [
            UncoveredZip(
                zip_code=zip_code,
                customer_count=customer_counts[zip_code],
                priority=priority_for(customer_counts[zip_code]),
            )
            for zip_code in uncovered_zips
        ]
        uncovered.sort(key=lambda gap: (-gap.customer_count, gap.zip_code))

        return CoverageRiskReport(
            total_customer_zips=len(customer_counts),
            total_covered_zips=len(covered_zips),
            uncovered_zip_count=len(uncovered),
            at_risk_customer_count=sum(gap.customer_count for gap in uncovered),
            uncovered=uncovered,
            generated_at=now or utc_now(),
        )

    def get_cached_report(self) -> CoverageRiskReport:
        """Return the cached report, rebuilding it when stale."""
        cached = self.cache.get(REPORT_CACHE_KEY)
        if cached is not None:
            return CoverageRiskReport.model_validate(cached)
        report = self.build_report()
        self.cache.set(
            REPORT_CACHE_KEY,
            report.model_dump(mode="json"),
            ttl_seconds=settings.COVERAGE_REPORT_CACHE_SECONDS,
        )
        return report

    def invalidate_cache(self) -> None:
        self.cache.delete(REPORT_CACHE_KEY)

    async def notify(
        self,
        report: CoverageRiskReport,
        notify_customers: bool | None = None,
    ) -> CoverageNotifyResponse:
        """Send one aggregate admin alert and, optionally, per-customer emails."""
        if notify_customers is None:
            notify_customers = settings.COVERAGE_NOTIFY_CUSTOMERS

        if not report.uncovered:
            return CoverageNotifyResponse(
                uncovered_zip_count=0, admin_notified=False, customers_emailed=0
            )

        zip_codes = [gap.zip_code for gap in report.uncovered]
        logger.info(
            "Coverage gaps found in %d zip code(s) affecting %d customer(s)",
            len(zip_codes),
            report.at_risk_customer_count,
        )
        self.notification_service.notify_coverage_gaps(
            uncovered_zip_codes=zip_codes,
            at_risk_customer_count=report.at_risk_customer_count,
        )
        try:
            await self.email_service.send_coverage_gap_admin_email(report)
        except Exception:
            logger.exception("Failed to send coverage gap email to admin")

        customers_emailed = 0
        if notify_customers:
            for customer in self.customer_repo.get_active_in_zip_codes(set(zip_codes)):
                try:
                    if await self.email_service.send_coverage_gap_customer_email(customer):
                        customers_emailed += 1
                except Exception:
                    logger.exception("Failed to send coverage email to customer %s", customer.id)

        return CoverageNotifyResponse(
            uncovered_zip_count=len(zip_codes),
            admin_notified=True,
            customers_emailed=customers_emailed,
        )
