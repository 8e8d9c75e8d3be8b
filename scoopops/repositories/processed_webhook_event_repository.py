from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scoopops.core.database import commit
from scoopops.models.processed_webhook_event import ProcessedWebhookEvent


class ProcessedWebhookEventRepository:
    def __init__(self, db: Session):
        self.db = db

    def exists(self, provider: str, event_id: str) -> bool:
        return (
            self.db.query(ProcessedWebhookEvent)
            .filter(
                ProcessedWebhookEvent.provider == provider,
                ProcessedWebhookEvent.event_id == event_id,
            )
            .first()
            is not None
        )

    def record(self, provider: str, event_id: str, event_type: str) -> bool:
        """Record an event id; returns False if another delivery recorded it first."""
        self.db.add(
            ProcessedWebhookEvent(provider=provider, event_id=event_id, event_type=event_type)
        )
        try:
            commit(self.db)
        except IntegrityError:
            self.db.rollback()
            return False
        return True

