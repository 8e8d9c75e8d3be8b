"""Inbound payment-provider webhooks."""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from scoopops.core.database import get_db
from scoopops.services.payment_provider import PaymentProviderName, get_payment_provider
from scoopops.services.stripe_webhook_service import StripeWebhookService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/{provider}",
    summary="Receive a provider webhook",
    responses={
        400: {"description": "Malformed payload or unknown provider"},
        401: {"description": "Invalid signature"},
    },
)
async def handle_webhook(
    provider: PaymentProviderName,
    request: Request,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Verify, de-duplicate and apply a payment-provider webhook.

    Replayed events are acknowledged with ``status: duplicate`` so the
    provider stops redelivering them.
    """
    payload = await request.body()

    try:
        payment_provider = get_payment_provider(provider)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid provider") from None

    signature = stripe_signature or request.headers.get("X-Webhook-Signature", "")
    if not payment_provider.verify_webhook_signature(payload, signature):
        logger.warning("Rejected %s webhook with invalid signature", provider.value)
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        payload_json = json.loads(payload)
        event = payment_provider.parse_webhook(payload_json)
    except (ValueError, AttributeError):
        raise HTTPException(status_code=400, detail="Invalid webhook payload") from None

    status = await StripeWebhookService(db).handle_event(provider.value, event)
    return {"status": status, "event_type": event.event_type, "event_id": event.event_id}
