"""Admin-facing notifications raised by payment, subscription and coverage events."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, String, func

from scoopops.core.database import Base
from scoopops.models.shared import UUIDType, generate_uuid


class NotificationCategory(str, Enum):
    PAYMENT = "payment"
    SUBSCRIPTION = "subscription"
    COVERAGE = "coverage"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    category = Column(String(50), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(String(2000), nullable=False)
    # Points at the payment, customer or coverage area the alert is about.
    resource_type = Column(String(50), nullable=True)
    resource_id = Column(UUIDType, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
