"""Tests for coverage-gap detection, the cached report and its notifications."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from scoopops.core.config import settings
from scoopops.models.customer import Customer, CustomerStatus
from scoopops.models.notification import Notification
from scoopops.repositories.coverage_area_repository import CoverageAreaRepository
from scoopops.repositories.customer_repository import CustomerRepository
from scoopops.schemas.coverage import CoveragePriority
from scoopops.services.coverage_risk_service import (
    REPORT_CACHE_KEY,
    CoverageRiskService,
    priority_for,
)
from scoopops.services.email_service import EmailService
from tests.conftest import make_customer


def _cover(db_session, employee, zip_code, active=True):
    return CoverageAreaRepository(db_session).create(
        employee_id=employee.id, zip_code=zip_code, active=active
    )


@pytest.fixture
def email_service():
    service = MagicMock(spec=EmailService)
    service.send_coverage_gap_admin_email = AsyncMock(return_value=True)
    service.send_coverage_gap_customer_email = AsyncMock(return_value=True)
    return service


class TestPriority:
    def test_threshold(self):
        threshold = settings.COVERAGE_HIGH_PRIORITY_MIN_CUSTOMERS
        assert priority_for(threshold) == CoveragePriority.HIGH
        assert priority_for(threshold + 5) == CoveragePriority.HIGH
        assert priority_for(threshold - 1) == CoveragePriority.MEDIUM
        assert priority_for(1) == CoveragePriority.MEDIUM


class TestFindUncovered:
    def test_no_customers_means_no_gaps(self, db_session, employee):
        _cover(db_session, employee, "78701")
        assert CoverageRiskService(db_session).find_uncovered_zip_codes() == []

    def test_difference_of_customer_and_covered_zips(self, db_session, employee):
        make_customer(db_session, zip_code="78701")
        make_customer(db_session, name="B", zip_code="78702")
        make_customer(db_session, name="C", zip_code="78703")
        _cover(db_session, employee, "78702")
        _cover(db_session, employee, "78799")

        assert CoverageRiskService(db_session).find_uncovered_zip_codes() == ["78701", "78703"]

    def test_inactive_areas_do_not_cover(self, db_session, employee):
        make_customer(db_session, zip_code="78701")
        _cover(db_session, employee, "78701", active=False)

        assert CoverageRiskService(db_session).find_uncovered_zip_codes() == ["78701"]

    def test_inactive_customers_are_ignored(self, db_session):
        customer = make_customer(db_session, zip_code="78701")
        CustomerRepository(db_session).set_status(customer, CustomerStatus.DO_NOT_SERVICE)

        assert CoverageRiskService(db_session).find_uncovered_zip_codes() == []

    def test_zip_plus_four_customer_is_covered_by_its_zip(self, db_session, employee):
        customer = make_customer(db_session, zip_code="78701-1234")
        _cover(db_session, employee, "78701")

        assert customer.zip_code == "78701"
        assert CoverageRiskService(db_session).find_uncovered_zip_codes() == []

    def test_stored_zip_plus_four_rows_group_by_prefix(self, db_session, employee):
        db_session.add_all(
            [
                Customer(name="Legacy A", zip_code="78702-0001"),
                Customer(name="Legacy B", zip_code="78703-0002"),
                Customer(name="Legacy C", zip_code="78703"),
            ]
        )
        db_session.commit()
        _cover(db_session, employee, "78702-9999")

        report = CoverageRiskService(db_session).build_report()

        assert [(g.zip_code, g.customer_count) for g in report.uncovered] == [("78703", 2)]
        assert report.total_customer_zips == 2


class TestBuildReport:
    def test_report_counts_and_order(self, db_session, employee):
        for i in range(3):
            make_customer(db_session, name=f"A{i}", zip_code="78705")
        make_customer(db_session, name="B", zip_code="78701")
        make_customer(db_session, name="C", zip_code="78702")
        make_customer(db_session, name="D", zip_code="78703")
        _cover(db_session, employee, "78703")

        report = CoverageRiskService(db_session).build_report()

        assert report.total_customer_zips == 4
        assert report.total_covered_zips == 1
        assert report.uncovered_zip_count == 3
        assert report.at_risk_customer_count == 5
        assert [(g.zip_code, g.customer_count, g.priority) for g in report.uncovered] == [
            ("78705", 3, CoveragePriority.HIGH),
            ("78701", 1, CoveragePriority.MEDIUM),
            ("78702", 1, CoveragePriority.MEDIUM),
        ]


class TestCachedReport:
    def test_cached_until_invalidated(self, db_session, employee):
        make_customer(db_session, zip_code="78701")
        service = CoverageRiskService(db_session)

        first = service.get_cached_report()
        assert first.uncovered_zip_count == 1
        assert service.cache.get(REPORT_CACHE_KEY) is not None

        _cover(db_session, employee, "78701")
        assert service.get_cached_report().uncovered_zip_count == 1

        service.invalidate_cache()
        assert service.get_cached_report().uncovered_zip_count == 0


class TestNotify:
    @pytest.mark.asyncio
    async def test_no_gaps_sends_nothing(self, db_session, email_service):
        service = CoverageRiskService(db_session, email_service=email_service)

        result = await service.notify(service.build_report())

        assert result.admin_notified is False
        assert result.uncovered_zip_count == 0
        email_service.send_coverage_gap_admin_email.assert_not_awaited()
        assert db_session.query(Notification).count() == 0

    @pytest.mark.asyncio
    async def test_single_aggregate_admin_alert(self, db_session, email_service):
        make_customer(db_session, zip_code="78701")
        make_customer(db_session, name="B", zip_code="78702")
        service = CoverageRiskService(db_session, email_service=email_service)

        result = await service.notify(service.build_report(), notify_customers=False)

        assert result.admin_notified is True
        assert result.uncovered_zip_count == 2
        assert result.customers_emailed == 0
        email_service.send_coverage_gap_admin_email.assert_awaited_once()
        email_service.send_coverage_gap_customer_email.assert_not_awaited()
        notifications = db_session.query(Notification).all()
        assert len(notifications) == 1
        assert notifications[0].category == "coverage"
        assert "78701" in notifications[0].message

    @pytest.mark.asyncio
    async def test_customer_emails_when_enabled(self, db_session, email_service):
        make_customer(db_session, zip_code="78701")
        make_customer(db_session, name="B", email="b@example.com", zip_code="78701")
        service = CoverageRiskService(db_session, email_service=email_service)

        result = await service.notify(service.build_report(), notify_customers=True)

        assert result.customers_emailed == 2
        assert email_service.send_coverage_gap_customer_email.await_count == 2

    @pytest.mark.asyncio
    async def test_admin_email_failure_still_reports(self, db_session, email_service):
        make_customer(db_session, zip_code="78701")
        email_service.send_coverage_gap_admin_email.side_effect = OSError("smtp down")
        service = CoverageRiskService(db_session, email_service=email_service)

        result = await service.notify(service.build_report(), notify_customers=False)

        assert result.admin_notified is True
        assert db_session.query(Notification).count() == 1


class TestCoverageAPI:
    def test_risk_report(self, client: TestClient, db_session, admin_headers):
        make_customer(db_session, zip_code="78701")
        resp = client.get("/v1/coverage/risk", headers=admin_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["uncovered_zip_count"] == 1
        assert body["uncovered"][0]["zip_code"] == "78701"
        assert body["uncovered"][0]["priority"] == "medium"

    def test_risk_report_refresh(self, client: TestClient, db_session, admin_headers, employee):
        make_customer(db_session, zip_code="78701")
        client.get("/v1/coverage/risk", headers=admin_headers)
        _cover(db_session, employee, "78701")

        stale = client.get("/v1/coverage/risk", headers=admin_headers).json()
        fresh = client.get("/v1/coverage/risk?refresh=true", headers=admin_headers).json()

        assert stale["uncovered_zip_count"] == 1
        assert fresh["uncovered_zip_count"] == 0

    def test_risk_requires_admin(self, client: TestClient, employee_headers):
        assert client.get("/v1/coverage/risk", headers=employee_headers).status_code == 403

    def test_notify_endpoint(self, client: TestClient, db_session, admin_headers):
        make_customer(db_session, zip_code="78701")
        resp = client.post("/v1/coverage/risk/notify", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json() == {
            "uncovered_zip_count": 1,
            "admin_notified": True,
            "customers_emailed": 0,
        }
