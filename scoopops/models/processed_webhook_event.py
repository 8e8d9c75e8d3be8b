"""ProcessedWebhookEvent model for de-duplicating provider webhook deliveries."""

from sqlalchemy import Column, DateTime, String, UniqueConstraint, func

from scoopops.core.database import Base
from scoopops.models.shared import UUIDType, generate_uuid


class ProcessedWebhookEvent(Base):
    """Records provider event ids that have already been applied."""

    __tablename__ = "processed_webhook_events"
    __table_args__ = (
        UniqueConstraint("provider", "event_id", name="uq_provider_event_id"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    provider = Column(String(50), nullable=False)
    event_id = Column(String(255), nullable=False, index=True)
    event_type = Column(String(100), nullable=False)
    processed_at = Column(DateTime(timezone=True), server_default=func.now())
