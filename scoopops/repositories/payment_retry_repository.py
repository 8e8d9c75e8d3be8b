"""Payment retry repository for data access."""

from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from scoopops.core.database import commit
from scoopops.models.payment_retry import PaymentRetry, PaymentRetryStatus


class PaymentRetryRepository:
    """Repository for PaymentRetry model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, retry_id: UUID) -> PaymentRetry | None:
        return self.db.query(PaymentRetry).filter(PaymentRetry.id == retry_id).first()

    def get_for_payment(self, payment_id: UUID) -> list[PaymentRetry]:
        return (
            self.db.query(PaymentRetry)
            .filter(PaymentRetry.payment_id == payment_id)
            .order_by(PaymentRetry.attempt_number, PaymentRetry.created_at)
            .all()
        )

    def get_scheduled_for_payment(self, payment_id: UUID) -> list[PaymentRetry]:
        return (
            self.db.query(PaymentRetry)
            .filter(
                PaymentRetry.payment_id == payment_id,
                PaymentRetry.status == PaymentRetryStatus.SCHEDULED.value,
            )
            .all()
        )

    def get_due(self, now: datetime, limit: int = 500) -> list[PaymentRetry]:
        """Scheduled retries whose time has come, oldest first."""
        return (
            self.db.query(PaymentRetry)
            .filter(
                PaymentRetry.status == PaymentRetryStatus.SCHEDULED.value,
                PaymentRetry.scheduled_for <= now,
            )
            .order_by(PaymentRetry.scheduled_for)
            .limit(limit)
            .all()
        )

    def create(
        self,
        payment_id: UUID,
        scheduled_for: datetime,
        attempt_number: int,
    ) -> PaymentRetry:
        retry = PaymentRetry(
            payment_id=payment_id,
            scheduled_for=scheduled_for,
            attempt_number=attempt_number,
            status=PaymentRetryStatus.SCHEDULED.value,
        )
        self.db.add(retry)
        commit(self.db)
        self.db.refresh(retry)
        return retry

    def complete(
        self,
        retry: PaymentRetry,
        completed_at: datetime,
        succeeded: bool,
        error_message: str | None = None,
        stripe_payment_intent_id: str | None = None,
    ) -> PaymentRetry:
        retry.status = PaymentRetryStatus.COMPLETED.value  # type: ignore[assignment]
        retry.completed_at = completed_at  # type: ignore[assignment]
        retry.succeeded = succeeded  # type: ignore[assignment]
        retry.error_message = error_message  # type: ignore[assignment]
        if stripe_payment_intent_id:
            retry.stripe_payment_intent_id = stripe_payment_intent_id  # type: ignore[assignment]
        commit(self.db)
        self.db.refresh(retry)
        return retry

    def cancel_scheduled(self, payment_id: UUID) -> int:
        """Cancel every SCHEDULED retry of a payment. Returns the number cancelled."""
        retries = self.get_scheduled_for_payment(payment_id)
        for retry in retries:
            retry.status = PaymentRetryStatus.CANCELLED.value  # type: ignore[assignment]
        if retries:
            commit(self.db)
        return len(retries)
