"""PaymentRetry model - a scheduled re-charge of a failed payment."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func

from scoopops.core.database import Base
from scoopops.models.shared import UUIDType, generate_uuid


class PaymentRetryStatus(str, Enum):
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentRetry(Base):
    __tablename__ = "payment_retries"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    payment_id = Column(
        UUIDType, ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(
        String(20), nullable=False, default=PaymentRetryStatus.SCHEDULED.value, index=True
    )
    attempt_number = Column(Integer, nullable=False, default=1)
    scheduled_for = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    succeeded = Column(Boolean, nullable=True)
    error_message = Column(Text, nullable=True)
    stripe_payment_intent_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
