"""Failed-payment tracking, retry scheduling and the do-not-service cascade."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from scoopops.core.config import settings
from scoopops.models.customer import Customer, CustomerStatus
from scoopops.models.payment import Payment, PaymentStatus
from scoopops.models.payment_retry import PaymentRetry
from scoopops.models.shared import utc_now
from scoopops.models.subscription import Subscription, SubscriptionStatus
from scoopops.repositories.customer_repository import CustomerRepository
from scoopops.repositories.payment_repository import PaymentRepository
from scoopops.repositories.payment_retry_repository import PaymentRetryRepository
from scoopops.repositories.subscription_repository import SubscriptionRepository
from scoopops.schemas.payment import CancelRetriesResponse, RetryRunSummary
from scoopops.services.email_service import EmailService
from scoopops.services.notification_service import NotificationService
from scoopops.services.payment_provider import (
    ChargeResult,
    ChargeStatus,
    PaymentProviderBase,
    PaymentProviderName,
    get_payment_provider,
)

logger = logging.getLogger(__name__)


class PaymentRetryService:
    """Tracks failed payments and drives them to resolution or cascade.

    A payment's ``retry_count`` counts failed collection attempts. While it is
    below ``PAYMENT_MAX_RETRIES`` exactly one SCHEDULED retry exists for the
    payment; once it reaches the limit the retries are cancelled, the
    subscription is cancelled and the customer is marked do-not-service.
    """

    def __init__(
        self,
        db: Session,
        provider: PaymentProviderBase | None = None,
        email_service: EmailService | None = None,
    ):
        self.db = db
        self.payment_repo = PaymentRepository(db)
        self.retry_repo = PaymentRetryRepository(db)
        self.customer_repo = CustomerRepository(db)
        self.subscription_repo = SubscriptionRepository(db)
        self.notification_service = NotificationService(db)
        self.email_service = email_service or EmailService()
        self._provider = provider

    @property
    def provider(self) -> PaymentProviderBase:
        if self._provider is None:
            self._provider = get_payment_provider(PaymentProviderName.STRIPE)
        return self._provider

    async def record_failure(
        self,
        payment: Payment,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> Payment:
        """Mark a payment FAILED and either schedule a retry or cascade."""
        now = now or utc_now()
        customer = self.customer_repo.get_by_id(payment.customer_id)  # type: ignore[arg-type]

        if customer is not None and customer.status == CustomerStatus.DO_NOT_SERVICE.value:
            logger.info(
                "Customer %s already do-not-service, not counting failure for payment %s",
                customer.id,
                payment.id,
            )
            self.retry_repo.cancel_scheduled(payment.id)  # type: ignore[arg-type]
            return self.payment_repo.mark_failed(
                payment, retry_count=int(payment.retry_count), failure_reason=reason
            )

        max_retries = settings.PAYMENT_MAX_RETRIES
        retry_count = min(int(payment.retry_count) + 1, max_retries)
        payment = self.payment_repo.mark_failed(
            payment, retry_count=retry_count, failure_reason=reason
        )

        if retry_count < max_retries:
            retry = self._schedule_retry(payment, retry_count, now)
            if customer is not None:
                await self._send_safely(
                    self.email_service.send_payment_failed_email(
                        customer, payment, next_retry_at=retry.scheduled_for
                    ),
                    "payment failed",
                    customer,
                )
            return payment

        cancelled = self.retry_repo.cancel_scheduled(payment.id)  # type: ignore[arg-type]
        logger.info(
            "Payment %s reached %d failed attempts, cancelled %d retries",
            payment.id,
            retry_count,
            cancelled,
        )
        await self.cascade_exhausted(payment, now=now)
        return payment

    def _schedule_retry(self, payment: Payment, attempt_number: int, now: datetime) -> PaymentRetry:
        existing = self.retry_repo.get_scheduled_for_payment(payment.id)  # type: ignore[arg-type]
        if existing:
            return existing[0]
        scheduled_for = now + timedelta(days=settings.PAYMENT_RETRY_INTERVAL_DAYS)
        retry = self.retry_repo.create(
            payment_id=payment.id,  # type: ignore[arg-type]
            scheduled_for=scheduled_for,
            attempt_number=attempt_number,
        )
        logger.info(
            "Scheduled retry %d for payment %s at %s",
            attempt_number,
            payment.id,
            scheduled_for.isoformat(),
        )
        return retry

    async def cascade_exhausted(
        self,
        payment: Payment,
        now: datetime | None = None,
        cancelled_by_admin: bool = False,
    ) -> bool:
        """Cancel the subscription and mark the customer do-not-service.

        Returns True when any status changed. Notifications are only sent on a
        change, so repeated calls have no side effects.
        """
        now = now or utc_now()
        customer = self.customer_repo.get_by_id(payment.customer_id)  # type: ignore[arg-type]
        subscription = self._subscription_for(payment)

        changed = False
        if subscription is not None and subscription.status != SubscriptionStatus.CANCELLED.value:
            changed |= self.subscription_repo.set_status(
                subscription, SubscriptionStatus.CANCELLED, when=now
            )
        if customer is not None:
            changed |= self.customer_repo.set_status(customer, CustomerStatus.DO_NOT_SERVICE)

        if not changed:
            return False

        logger.info(
            "Cascade applied for payment %s: subscription %s cancelled, customer %s "
            "marked do-not-service",
            payment.id,
            subscription.id if subscription is not None else None,
            payment.customer_id,
        )
        self.notification_service.notify_retries_exhausted(
            customer_name=str(customer.name) if customer is not None else "Unknown customer",
            amount=Decimal(str(payment.amount)),
            currency=str(payment.currency),
            payment_id=payment.id,  # type: ignore[arg-type]
            cancelled_by_admin=cancelled_by_admin,
        )
        if customer is not None:
            await self._send_safely(
                self.email_service.send_service_suspended_email(customer, payment),
                "service suspended",
                customer,
            )
        return True

    def _subscription_for(self, payment: Payment) -> Subscription | None:
        if payment.subscription_id is not None:
            return self.subscription_repo.get_by_id(payment.subscription_id)  # type: ignore[arg-type]
        return self.subscription_repo.get_current_for_customer(
            payment.customer_id  # type: ignore[arg-type]
        )

    async def cancel_retries(self, payment_id: UUID) -> CancelRetriesResponse:
        """Admin action: stop retrying a payment and apply the cascade.

        Raises:
            ValueError: If the payment does not exist.
        """
        payment = self.payment_repo.get_by_id(payment_id)
        if payment is None:
            raise ValueError(f"Payment {payment_id} not found")

        cancelled = self.retry_repo.cancel_scheduled(payment_id)
        self.payment_repo.reset_retry_count(payment)
        cascade_applied = await self.cascade_exhausted(payment, cancelled_by_admin=True)

        return CancelRetriesResponse(
            payment_id=payment_id,
            cancelled_retries=cancelled,
            cascade_applied=cascade_applied,
            retry_count=int(payment.retry_count),
        )

    def resolve_payment(
        self,
        payment: Payment,
        paid_at: datetime | None = None,
        stripe_payment_intent_id: str | None = None,
        current_period_end: datetime | None = None,
    ) -> Payment:
        """Mark a payment PAID and clear anything still scheduled against it."""
        paid_at = paid_at or utc_now()
        payment = self.payment_repo.mark_paid(
            payment, paid_at=paid_at, stripe_payment_intent_id=stripe_payment_intent_id
        )
        self.retry_repo.cancel_scheduled(payment.id)  # type: ignore[arg-type]

        subscription = self._subscription_for(payment)
        if subscription is not None:
            if subscription.status in (
                SubscriptionStatus.PAST_DUE.value,
                SubscriptionStatus.PENDING.value,
            ):
                self.subscription_repo.set_status(subscription, SubscriptionStatus.ACTIVE)
            self.subscription_repo.record_payment(
                subscription, paid_at=paid_at, current_period_end=current_period_end
            )
        logger.info("Payment %s resolved", payment.id)
        return payment

    async def process_due_retries(self, now: datetime | None = None) -> RetryRunSummary:
        """Charge every scheduled retry that is due at or before ``now``."""
        now = now or utc_now()
        due = self.retry_repo.get_due(now)
        summary = RetryRunSummary(total=len(due))
        logger.info("Found %d payment retries due", len(due))

        for retry in due:
            payment = self.payment_repo.get_by_id(retry.payment_id)  # type: ignore[arg-type]
            if payment is None or payment.status != PaymentStatus.FAILED.value:
                self.retry_repo.cancel_scheduled(retry.payment_id)  # type: ignore[arg-type]
                summary.skipped += 1
                continue

            customer = self.customer_repo.get_by_id(payment.customer_id)  # type: ignore[arg-type]
            if customer is None or not customer.stripe_customer_id:
                logger.warning("No customer or Stripe ID for payment %s", payment.id)
                self.retry_repo.complete(
                    retry,
                    completed_at=now,
                    succeeded=False,
                    error_message="No customer or Stripe ID found",
                )
                await self.record_failure(payment, "No customer or Stripe ID found", now=now)
                summary.skipped += 1
                continue

            result = self._charge(payment, customer)
            if result.status == ChargeStatus.SUCCEEDED:
                self.retry_repo.complete(
                    retry,
                    completed_at=now,
                    succeeded=True,
                    stripe_payment_intent_id=result.payment_intent_id,
                )
                self.resolve_payment(
                    payment, paid_at=now, stripe_payment_intent_id=result.payment_intent_id
                )
                summary.succeeded += 1
                continue

            self.retry_repo.complete(
                retry,
                completed_at=now,
                succeeded=False,
                error_message=result.error,
                stripe_payment_intent_id=result.payment_intent_id,
            )
            if result.status == ChargeStatus.REQUIRES_ACTION:
                logger.info("Payment %s requires customer action", payment.id)
                await self._send_safely(
                    self.email_service.send_payment_action_required_email(customer),
                    "action required",
                    customer,
                )
            await self.record_failure(payment, result.error, now=now)
            summary.failed += 1

        logger.info(
            "Completed payment retry run: total=%d succeeded=%d failed=%d skipped=%d",
            summary.total,
            summary.succeeded,
            summary.failed,
            summary.skipped,
        )
        return summary

    def _charge(self, payment: Payment, customer: Customer) -> ChargeResult:
        try:
            return self.provider.charge_off_session(
                payment_id=payment.id,  # type: ignore[arg-type]
                amount=Decimal(str(payment.amount)),
                currency=str(payment.currency),
                provider_customer_id=str(customer.stripe_customer_id),
            )
        except Exception as e:
            logger.exception("Error charging retry for payment %s", payment.id)
            return ChargeResult(status=ChargeStatus.FAILED, error=str(e) or "Unknown error")

    async def _send_safely(self, send: Awaitable[bool], kind: str, customer: Customer) -> None:
        try:
            await send
        except Exception:
            logger.exception("Failed to send %s email to customer %s", kind, customer.id)
