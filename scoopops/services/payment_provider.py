"""Payment processors behind one interface: off-session charges and signed webhooks.

Supports Stripe for card billing and a manual provider for payments recorded
by hand (cash, check) whose webhooks are signed with a shared HMAC secret.
"""

import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from scoopops.core.config import settings


class PaymentProviderName(str, Enum):
    STRIPE = "stripe"
    MANUAL = "manual"


class ChargeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    REQUIRES_ACTION = "requires_action"
    FAILED = "failed"


@dataclass
class ChargeResult:
    """Outcome of an off-session charge attempt."""

    status: ChargeStatus
    payment_intent_id: str | None = None
    error: str | None = None


@dataclass
class WebhookEvent:
    """A verified, parsed webhook event."""

    event_id: str
    event_type: str
    data: dict[str, Any]


class PaymentProviderBase(ABC):
    """What the retry scheduler and webhook router need from a processor."""

    @property
    @abstractmethod
    def provider_name(self) -> PaymentProviderName:
        pass  # pragma: no cover

    @abstractmethod
    def charge_off_session(
        self,
        payment_id: UUID,
        amount: Decimal,
        currency: str,
        provider_customer_id: str,
    ) -> ChargeResult:
        """Charge a customer's saved payment method without them present."""
        pass  # pragma: no cover

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """True only when ``signature`` was produced over the raw ``payload``."""
        pass  # pragma: no cover

    @abstractmethod
    def parse_webhook(self, payload: dict[str, Any]) -> WebhookEvent:
        """Pull the event id, type and object out of a decoded payload."""
        pass  # pragma: no cover


class StripeProvider(PaymentProviderBase):
    """Card billing through Stripe PaymentIntents."""

    def __init__(self, api_key: str | None = None, webhook_secret: str | None = None):
        self.api_key = api_key or settings.stripe_api_key
        self.webhook_secret = webhook_secret or settings.stripe_webhook_secret
        self._stripe: Any = None

    @property
    def stripe(self) -> Any:
        """Imported on first use so the SDK is only loaded by workers that charge."""
        if self._stripe is None:
            import stripe

            stripe.api_key = self.api_key
            self._stripe = stripe
        return self._stripe

    @property
    def provider_name(self) -> PaymentProviderName:
        return PaymentProviderName.STRIPE

    def charge_off_session(
        self,
        payment_id: UUID,
        amount: Decimal,
        currency: str,
        provider_customer_id: str,
    ) -> ChargeResult:
        """Create and confirm a PaymentIntent against the customer's saved card."""
        # Stripe uses the smallest currency unit
        amount_cents = int((amount * 100).to_integral_value())

        try:
            intent = self.stripe.PaymentIntent.create(
                amount=amount_cents,
                currency=currency.lower(),
                customer=provider_customer_id,
                payment_method_types=["card"],
                off_session=True,
                confirm=True,
                description=f"Retry payment for {payment_id}",
                metadata={"payment_id": str(payment_id)},
            )
        except self.stripe.error.CardError as e:
            # Declines surface as CardError; the intent id rides on the error
            intent_obj = getattr(e.error, "payment_intent", None) if e.error else None
            status = getattr(intent_obj, "status", None)
            return ChargeResult(
                status=(
                    ChargeStatus.REQUIRES_ACTION
                    if status == "requires_action"
                    else ChargeStatus.FAILED
                ),
                payment_intent_id=getattr(intent_obj, "id", None),
                error=e.user_message or str(e),
            )

        if intent.status == "succeeded":
            return ChargeResult(status=ChargeStatus.SUCCEEDED, payment_intent_id=intent.id)
        if intent.status == "requires_action":
            return ChargeResult(
                status=ChargeStatus.REQUIRES_ACTION,
                payment_intent_id=intent.id,
                error="Payment requires customer action",
            )
        return ChargeResult(
            status=ChargeStatus.FAILED,
            payment_intent_id=intent.id,
            error=f"Payment failed with status: {intent.status}",
        )

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        if not self.webhook_secret:
            return False
        try:
            self.stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
            return True
        except (ValueError, self.stripe.error.SignatureVerificationError):
            return False

    def parse_webhook(self, payload: dict[str, Any]) -> WebhookEvent:
        """Parse Stripe webhook payload."""
        event_id = payload.get("id")
        event_type = payload.get("type")
        if not event_id or not event_type:
            raise ValueError("Stripe event is missing id or type")
        data_object = (payload.get("data") or {}).get("object") or {}
        return WebhookEvent(event_id=event_id, event_type=event_type, data=data_object)


class ManualProvider(PaymentProviderBase):
    """Cash and check payments recorded by an operator; it never charges."""

    @property
    def provider_name(self) -> PaymentProviderName:
        return PaymentProviderName.MANUAL

    def charge_off_session(
        self,
        payment_id: UUID,
        amount: Decimal,
        currency: str,
        provider_customer_id: str,
    ) -> ChargeResult:
        """Manual payments are collected offline and cannot be charged."""
        return ChargeResult(
            status=ChargeStatus.FAILED,
            error="Manual payments cannot be charged off-session",
        )

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """HMAC-SHA256 hex digest of the body, optionally prefixed with ``sha256=``."""
        if not settings.manual_webhook_secret:
            return False
        expected = hmac.new(
            settings.manual_webhook_secret.encode(),
            payload,
            hashlib.sha256,
        ).hexdigest()

        return hmac.compare_digest(expected, signature.removeprefix("sha256="))

    def parse_webhook(self, payload: dict[str, Any]) -> WebhookEvent:
        """Parse manual webhook payload.

        Manual events mirror Stripe's envelope: ``id``, ``type`` and a
        ``data.object`` carrying invoice or subscription fields.
        """
        event_id = payload.get("id")
        event_type = payload.get("type") or payload.get("event_type")
        if not event_id or not event_type:
            raise ValueError("Manual event is missing id or type")
        data_object = (payload.get("data") or {}).get("object") or {}
        return WebhookEvent(event_id=event_id, event_type=event_type, data=data_object)


def get_payment_provider(provider: PaymentProviderName) -> PaymentProviderBase:
    """Return a fresh provider instance for a webhook route or the retry scheduler."""
    providers: dict[PaymentProviderName, type[PaymentProviderBase]] = {
        PaymentProviderName.STRIPE: StripeProvider,
        PaymentProviderName.MANUAL: ManualProvider,
    }

    try:
        return providers[PaymentProviderName(provider)]()
    except (KeyError, ValueError) as exc:
        raise ValueError(f"Unsupported payment provider: {provider}") from exc
