"""Payment and payment retry schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PaymentResponse(BaseModel):
    """Schema for payment response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    subscription_id: UUID | None = None
    referred_customer_id: UUID | None = None
    amount: Decimal
    currency: str
    status: str
    type: str
    retry_count: int
    failure_reason: str | None = None
    stripe_invoice_id: str | None = None
    stripe_payment_intent_id: str | None = None
    date: datetime
    paid_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class PaymentRetryResponse(BaseModel):
    """Schema for payment retry response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    payment_id: UUID
    status: str
    attempt_number: int
    scheduled_for: datetime
    completed_at: datetime | None = None
    succeeded: bool | None = None
    error_message: str | None = None
    created_at: datetime


class CancelRetriesResponse(BaseModel):
    """Result of cancelling all scheduled retries for a payment."""

    payment_id: UUID
    cancelled_retries: int
    cascade_applied: bool
    retry_count: int


class RetryRunSummary(BaseModel):
    """Counts from one pass over due payment retries."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
