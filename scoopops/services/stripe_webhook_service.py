"""Apply verified payment-provider webhook events to local state."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from scoopops.core.config import settings
from scoopops.core.database import atomic, commit
from scoopops.models.customer import Customer
from scoopops.models.payment import Payment, PaymentStatus, PaymentType
from scoopops.models.subscription import PlanType, Subscription, SubscriptionStatus
from scoopops.repositories.customer_repository import CustomerRepository
from scoopops.repositories.payment_repository import PaymentRepository
from scoopops.repositories.processed_webhook_event_repository import (
    ProcessedWebhookEventRepository,
)
from scoopops.repositories.subscription_repository import SubscriptionRepository
from scoopops.services.email_service import EmailService
from scoopops.services.payment_provider import WebhookEvent
from scoopops.services.payment_retry_service import PaymentRetryService

logger = logging.getLogger(__name__)

STATUS_PROCESSED = "processed"
STATUS_IGNORED = "ignored"
STATUS_DUPLICATE = "duplicate"

# Stripe subscription status -> local status
SUBSCRIPTION_STATUS_MAP: dict[str, SubscriptionStatus] = {
    "active": SubscriptionStatus.ACTIVE,
    "trialing": SubscriptionStatus.ACTIVE,
    "past_due": SubscriptionStatus.PAST_DUE,
    "unpaid": SubscriptionStatus.PAST_DUE,
    "paused": SubscriptionStatus.PAUSED,
    "canceled": SubscriptionStatus.CANCELLED,
    "incomplete_expired": SubscriptionStatus.CANCELLED,
    "incomplete": SubscriptionStatus.PENDING,
}


def _from_timestamp(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=UTC)
    except (TypeError, ValueError, OverflowError):
        return None


def _cents_to_amount(value: Any) -> Decimal:
    return (Decimal(int(value or 0)) / Decimal(100)).quantize(Decimal("0.01"))


def _plan_type_for(data: dict[str, Any]) -> PlanType:
    """Derive the plan from the first price's recurring interval."""
    items = (data.get("items") or {}).get("data") or []
    recurring = ((items[0].get("price") or {}).get("recurring") or {}) if items else {}
    if recurring.get("interval") == "week":
        if recurring.get("interval_count") == 2:
            return PlanType.BIWEEKLY
        return PlanType.WEEKLY
    return PlanType.MONTHLY


class StripeWebhookService:
    """Dispatches verified webhook events by type.

    Every event id is claimed in ``processed_webhook_events`` before it is
    applied, so a redelivered event is reported as a duplicate and changes
    nothing.
    """

    def __init__(self, db: Session, retry_service: PaymentRetryService | None = None):
        self.db = db
        self.customer_repo = CustomerRepository(db)
        self.payment_repo = PaymentRepository(db)
        self.subscription_repo = SubscriptionRepository(db)
        self.event_repo = ProcessedWebhookEventRepository(db)
        self.retry_service = retry_service or PaymentRetryService(db)
        self.email_service: EmailService = self.retry_service.email_service

    @property
    def handlers(self) -> dict[str, Any]:
        return {
            "invoice.payment_failed": self.handle_invoice_payment_failed,
            "invoice.payment_succeeded": self.handle_invoice_payment_succeeded,
            "invoice.payment_action_required": self.handle_invoice_action_required,
            "customer.subscription.created": self.handle_subscription_created,
            "customer.subscription.updated": self.handle_subscription_updated,
            "customer.subscription.deleted": self.handle_subscription_deleted,
            "customer.subscription.paused": self.handle_subscription_paused,
            "customer.subscription.resumed": self.handle_subscription_resumed,
        }

    async def handle_event(self, provider: str, event: WebhookEvent) -> str:
        """Apply ``event`` once. Returns processed, ignored or duplicate."""
        handler = self.handlers.get(event.event_type)
        if handler is None:
            logger.info("Ignoring unhandled %s webhook %s", provider, event.event_type)
            return STATUS_IGNORED

        # The claim and every write the handler makes share one transaction, so a
        # failing handler leaves nothing behind and the redelivery starts clean.
        with atomic(self.db):
            if not self.event_repo.record(provider, event.event_id, event.event_type):
                logger.info("Duplicate %s webhook %s ignored", provider, event.event_id)
                return STATUS_DUPLICATE

            logger.info(
                "Processing %s webhook %s (%s)", provider, event.event_type, event.event_id
            )
            handled = await handler(event.data)
        return STATUS_PROCESSED if handled else STATUS_IGNORED

    def _customer_for(self, data: dict[str, Any]) -> Customer | None:
        stripe_customer_id = data.get("customer")
        if not stripe_customer_id:
            return None
        customer = self.customer_repo.get_by_stripe_customer_id(str(stripe_customer_id))
        if customer is None:
            logger.warning("No customer found with Stripe ID %s", stripe_customer_id)
        return customer

    def _subscription_for(
        self, customer: Customer, stripe_subscription_id: Any
    ) -> Subscription | None:
        if stripe_subscription_id:
            subscription = self.subscription_repo.get_by_stripe_id(str(stripe_subscription_id))
            if subscription is not None:
                return subscription
        return self.subscription_repo.get_current_for_customer(customer.id)  # type: ignore[arg-type]

    def _payment_for_invoice(
        self,
        customer: Customer,
        data: dict[str, Any],
        amount_field: str,
    ) -> Payment | None:
        invoice_id = data.get("id")
        if not invoice_id:
            return None
        payment = self.payment_repo.get_by_stripe_invoice_id(str(invoice_id))
        if payment is not None:
            return payment

        subscription = (
            self._subscription_for(customer, data["subscription"])
            if data.get("subscription")
            else None
        )
        return self.payment_repo.create(
            customer_id=customer.id,  # type: ignore[arg-type]
            amount=_cents_to_amount(data.get(amount_field)),
            payment_type=PaymentType.SUBSCRIPTION if data.get("subscription") else PaymentType.SERVICE,
            subscription_id=subscription.id if subscription is not None else None,  # type: ignore[arg-type]
            currency=str(data.get("currency") or "usd").upper(),
            stripe_invoice_id=str(invoice_id),
            stripe_payment_intent_id=data.get("payment_intent"),
        )

    async def handle_invoice_payment_failed(self, data: dict[str, Any]) -> bool:
        customer = self._customer_for(data)
        if customer is None:
            return False
        payment = self._payment_for_invoice(customer, data, "amount_due")
        if payment is None:
            return False
        if payment.status == PaymentStatus.PAID.value:
            logger.info("Ignoring failure for already paid payment %s", payment.id)
            return False

        if data.get("subscription"):
            subscription = self._subscription_for(customer, data["subscription"])
            if (
                subscription is not None
                and subscription.status != SubscriptionStatus.CANCELLED.value
            ):
                self.subscription_repo.set_status(subscription, SubscriptionStatus.PAST_DUE)

        last_error = (data.get("last_payment_error") or {}).get("message")
        await self.retry_service.record_failure(
            payment, reason=last_error or "Invoice payment failed"
        )
        logger.info("Recorded failed payment for invoice %s", data.get("id"))
        return True

    async def handle_invoice_payment_succeeded(self, data: dict[str, Any]) -> bool:
        customer = self._customer_for(data)
        if customer is None:
            return False
        payment = self._payment_for_invoice(customer, data, "amount_paid")
        if payment is None:
            return False
        if payment.status == PaymentStatus.PAID.value:
            return False

        first_subscription_payment = (
            payment.type == PaymentType.SUBSCRIPTION.value
            and self.payment_repo.count_paid_for_customer(
                customer.id, PaymentType.SUBSCRIPTION  # type: ignore[arg-type]
            )
            == 0
        )

        period_end = _from_timestamp(data.get("period_end"))
        self.retry_service.resolve_payment(
            payment,
            stripe_payment_intent_id=data.get("payment_intent"),
            current_period_end=period_end,
        )

        if payment.type == PaymentType.SUBSCRIPTION.value:
            credits = (
                settings.SERVICE_CREDITS_INITIAL
                if first_subscription_payment
                else settings.SERVICE_CREDITS_PER_PERIOD
            )
            self.customer_repo.grant_credits(customer, credits)
        if first_subscription_payment and customer.referred_by_id is not None:
            self._credit_referrer(customer)
        logger.info("Processed successful payment for invoice %s", data.get("id"))
        return True

    def _credit_referrer(self, customer: Customer) -> None:
        referrer = self.customer_repo.get_by_id(customer.referred_by_id)  # type: ignore[arg-type]
        if referrer is None:
            return
        if self.payment_repo.referral_exists(referrer.id, customer.id):  # type: ignore[arg-type]
            return
        self.payment_repo.create(
            customer_id=referrer.id,  # type: ignore[arg-type]
            amount=Decimal(str(settings.REFERRAL_REWARD_AMOUNT)),
            payment_type=PaymentType.REFERRAL,
            status=PaymentStatus.PENDING,
            referred_customer_id=customer.id,  # type: ignore[arg-type]
        )
        logger.info(
            "Created referral payment for customer %s (referred %s)", referrer.id, customer.id
        )

    async def handle_invoice_action_required(self, data: dict[str, Any]) -> bool:
        customer = self._customer_for(data)
        if customer is None:
            return False
        try:
            await self.email_service.send_payment_action_required_email(
                customer, data.get("hosted_invoice_url")
            )
        except Exception:
            logger.exception("Failed to send action required email to customer %s", customer.id)
        logger.info("Payment action required for invoice %s", data.get("id"))
        return True

    async def handle_subscription_created(self, data: dict[str, Any]) -> bool:
        customer = self._customer_for(data)
        if customer is None:
            return False
        stripe_subscription_id = str(data.get("id"))
        status = SUBSCRIPTION_STATUS_MAP.get(
            str(data.get("status")), SubscriptionStatus.PENDING
        )
        subscription = self.subscription_repo.get_by_stripe_id(stripe_subscription_id)
        if subscription is None:
            subscription = self.subscription_repo.create(
                customer_id=customer.id,  # type: ignore[arg-type]
                plan_type=_plan_type_for(data),
                status=status,
                stripe_subscription_id=stripe_subscription_id,
                current_period_end=_from_timestamp(data.get("current_period_end")),
            )
            logger.info("Created subscription %s for customer %s", subscription.id, customer.id)
        else:
            self.subscription_repo.set_status(subscription, status)
        return True

    async def handle_subscription_updated(self, data: dict[str, Any]) -> bool:
        customer = self._customer_for(data)
        if customer is None:
            return False
        subscription = self._subscription_for(customer, data.get("id"))
        if subscription is None:
            logger.warning("No subscription found for Stripe subscription %s", data.get("id"))
            return False

        status = SUBSCRIPTION_STATUS_MAP.get(str(data.get("status")))
        if status is not None:
            self.subscription_repo.set_status(subscription, status, when=datetime.now(UTC))
        period_end = _from_timestamp(data.get("current_period_end"))
        if period_end is not None:
            subscription.current_period_end = period_end  # type: ignore[assignment]
            commit(self.db)
        logger.info("Updated subscription %s status to %s", subscription.id, subscription.status)
        return True

    async def _set_subscription_status(
        self, data: dict[str, Any], status: SubscriptionStatus
    ) -> bool:
        customer = self._customer_for(data)
        if customer is None:
            return False
        subscription = self._subscription_for(customer, data.get("id"))
        if subscription is None:
            logger.warning("No subscription found for Stripe subscription %s", data.get("id"))
            return False
        self.subscription_repo.set_status(subscription, status, when=datetime.now(UTC))
        logger.info("Subscription %s is now %s", subscription.id, status.value)
        return True

    async def handle_subscription_deleted(self, data: dict[str, Any]) -> bool:
        return await self._set_subscription_status(data, SubscriptionStatus.CANCELLED)

    async def handle_subscription_paused(self, data: dict[str, Any]) -> bool:
        return await self._set_subscription_status(data, SubscriptionStatus.PAUSED)

    async def handle_subscription_resumed(self, data: dict[str, Any]) -> bool:
        return await self._set_subscription_status(data, SubscriptionStatus.ACTIVE)
