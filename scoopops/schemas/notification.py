from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from scoopops.models.notification import NotificationCategory


class NotificationResponse(BaseModel):
    id: UUID
    category: NotificationCategory
    title: str
    message: str
    resource_type: str | None = None
    resource_id: UUID | None = None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationCountResponse(BaseModel):
    unread_count: int
    by_category: dict[str, int] = Field(default_factory=dict)


class NotificationReadAllResponse(BaseModel):
    marked: int
