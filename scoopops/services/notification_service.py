"""Raise admin notifications for billing and coverage events."""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from scoopops.models.notification import Notification, NotificationCategory
from scoopops.repositories.notification_repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationRepository(db)

    def notify(
        self,
        *,
        category: NotificationCategory,
        title: str,
        message: str,
        resource_type: str | None = None,
        resource_id: UUID | None = None,
    ) -> Notification:
        resource = (resource_type, resource_id) if resource_type else None
        notification = self.repo.add(category, title, message, resource=resource)
        logger.info("Raised %s notification %s: %s", category.value, notification.id, title)
        return notification

    def notify_retries_exhausted(
        self,
        *,
        customer_name: str,
        amount: Decimal,
        currency: str,
        payment_id: UUID,
        cancelled_by_admin: bool = False,
    ) -> Notification:
        """Tell the admins a customer was moved to do-not-service over an unpaid charge."""
        if cancelled_by_admin:
            reason = "retries were cancelled by an admin"
        else:
            reason = "all payment retries failed"
        return self.notify(
            category=NotificationCategory.PAYMENT,
            title="Customer suspended for non-payment",
            message=(
                f"{customer_name}: {reason} for {amount:.2f} {currency}. "
                f"Subscription cancelled and customer marked do-not-service."
            ),
            resource_type="payment",
            resource_id=payment_id,
        )

    def notify_coverage_gaps(
        self,
        *,
        uncovered_zip_codes: list[str],
        at_risk_customer_count: int,
    ) -> Notification:
        zips = ", ".join(uncovered_zip_codes)
        return self.notify(
            category=NotificationCategory.COVERAGE,
            title=f"{len(uncovered_zip_codes)} zip code(s) without coverage",
            message=(
                f"{at_risk_customer_count} active customer(s) live in zip codes with no "
                f"active scooper: {zips}."
            ),
            resource_type="coverage_area",
        )
