"""Payment model for tracking subscription, service and referral payments."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func

from scoopops.core.database import Base
from scoopops.models.shared import UUIDType, generate_uuid, utc_now


class PaymentStatus(str, Enum):
    """Payment status enum."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentType(str, Enum):
    SUBSCRIPTION = "subscription"
    SERVICE = "service"
    REFERRAL = "referral"


class Payment(Base):
    """Payment model - one row per billed amount, retried in place on failure."""

    __tablename__ = "payments"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    subscription_id = Column(
        UUIDType, ForeignKey("subscriptions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    # Referral payouts point at the customer whose payment earned the reward
    referred_customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True
    )

    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    type = Column(String(20), nullable=False, default=PaymentType.SUBSCRIPTION.value)
    retry_count = Column(Integer, nullable=False, default=0)
    failure_reason = Column(Text, nullable=True)

    stripe_invoice_id = Column(String(255), unique=True, nullable=True, index=True)
    stripe_payment_intent_id = Column(String(255), nullable=True, index=True)

    date = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
