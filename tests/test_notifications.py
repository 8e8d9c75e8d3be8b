"""Tests for NotificationService, NotificationRepository and the notification endpoints."""

from decimal import Decimal
from uuid import uuid4

from fastapi.testclient import TestClient

from scoopops.models.notification import NotificationCategory
from scoopops.repositories.notification_repository import NotificationRepository
from scoopops.services.notification_service import NotificationService


def _seed(db_session, category=NotificationCategory.PAYMENT, count=2):
    service = NotificationService(db_session)
    return [
        service.notify(category=category, title=f"{category.value}-{i}", message="m")
        for i in range(count)
    ]


class TestNotificationService:
    def test_retries_exhausted(self, db_session):
        payment_id = uuid4()
        notification = NotificationService(db_session).notify_retries_exhausted(
            customer_name="Dana Walker",
            amount=Decimal("49.99"),
            currency="USD",
            payment_id=payment_id,
        )
        assert notification.category == NotificationCategory.PAYMENT
        assert notification.title == "Customer suspended for non-payment"
        assert "Dana Walker" in notification.message
        assert "all payment retries failed" in notification.message
        assert "49.99" in notification.message
        assert notification.resource_type == "payment"
        assert notification.resource_id == payment_id
        assert notification.is_read is False

    def test_retries_cancelled_by_admin(self, db_session):
        notification = NotificationService(db_session).notify_retries_exhausted(
            customer_name="Dana Walker",
            amount=Decimal("10"),
            currency="USD",
            payment_id=uuid4(),
            cancelled_by_admin=True,
        )
        assert "cancelled by an admin" in notification.message

    def test_coverage_gaps(self, db_session):
        notification = NotificationService(db_session).notify_coverage_gaps(
            uncovered_zip_codes=["78701", "78702"], at_risk_customer_count=4
        )
        assert notification.category == NotificationCategory.COVERAGE
        assert notification.title == "2 zip code(s) without coverage"
        assert "78701, 78702" in notification.message
        assert notification.resource_id is None


class TestNotificationRepository:
    def test_unread_by_category(self, db_session):
        _seed(db_session, count=2)
        _seed(db_session, NotificationCategory.COVERAGE, count=1)
        assert NotificationRepository(db_session).unread_by_category() == {
            "payment": 2,
            "coverage": 1,
        }

    def test_mark_all_read_scoped_to_category(self, db_session):
        _seed(db_session, count=2)
        _seed(db_session, NotificationCategory.COVERAGE, count=1)
        repo = NotificationRepository(db_session)

        assert repo.mark_all_read(NotificationCategory.PAYMENT) == 2
        assert repo.unread_by_category() == {"coverage": 1}
        assert repo.mark_all_read() == 1
        assert repo.unread_by_category() == {}

    def test_find_by_resource(self, db_session):
        payment_id = uuid4()
        service = NotificationService(db_session)
        service.notify(
            category=NotificationCategory.PAYMENT,
            title="about the payment",
            message="m",
            resource_type="payment",
            resource_id=payment_id,
        )
        _seed(db_session, count=2)

        found = NotificationRepository(db_session).find(resource_id=payment_id)
        assert [n.title for n in found] == ["about the payment"]


class TestNotificationsAPI:
    def test_list_and_unread_count(self, client: TestClient, db_session, admin_headers):
        _seed(db_session)
        _seed(db_session, NotificationCategory.SUBSCRIPTION, count=1)
        assert len(client.get("/v1/notifications/", headers=admin_headers).json()) == 3
        resp = client.get("/v1/notifications/unread_count", headers=admin_headers)
        assert resp.json() == {
            "unread_count": 3,
            "by_category": {"payment": 2, "subscription": 1},
        }

    def test_mark_as_read(self, client: TestClient, db_session, admin_headers):
        first, _ = _seed(db_session)
        resp = client.post(f"/v1/notifications/{first.id}/read", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["is_read"] is True

        again = client.post(f"/v1/notifications/{first.id}/read", headers=admin_headers)
        assert again.status_code == 200

        unread = client.get("/v1/notifications/?is_read=false", headers=admin_headers).json()
        assert len(unread) == 1

    def test_mark_missing_as_read(self, client: TestClient, admin_headers):
        resp = client.post(f"/v1/notifications/{uuid4()}/read", headers=admin_headers)
        assert resp.status_code == 404

    def test_read_all(self, client: TestClient, db_session, admin_headers):
        _seed(db_session, count=3)
        resp = client.post("/v1/notifications/read_all", headers=admin_headers)
        assert resp.json() == {"marked": 3}
        resp = client.get("/v1/notifications/unread_count", headers=admin_headers)
        assert resp.json()["unread_count"] == 0

    def test_read_all_for_one_category(self, client: TestClient, db_session, admin_headers):
        _seed(db_session, count=1)
        _seed(db_session, NotificationCategory.COVERAGE, count=2)
        resp = client.post("/v1/notifications/read_all?category=coverage", headers=admin_headers)
        assert resp.json() == {"marked": 2}
        resp = client.get("/v1/notifications/unread_count", headers=admin_headers)
        assert resp.json()["by_category"] == {"payment": 1}

    def test_filter_by_category(self, client: TestClient, db_session, admin_headers):
        _seed(db_session, count=1)
        _seed(db_session, NotificationCategory.COVERAGE, count=1)
        resp = client.get("/v1/notifications/?category=coverage", headers=admin_headers)
        assert [n["title"] for n in resp.json()] == ["coverage-0"]

    def test_unknown_category_rejected(self, client: TestClient, admin_headers):
        resp = client.get("/v1/notifications/?category=weather", headers=admin_headers)
        assert resp.status_code == 422

    def test_requires_admin(self, client: TestClient, employee_headers):
        assert client.get("/v1/notifications/", headers=employee_headers).status_code == 403
