"""Persistence for admin notifications."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from scoopops.core.database import commit
from scoopops.models.notification import Notification, NotificationCategory


class NotificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(
        self,
        category: NotificationCategory,
        title: str,
        message: str,
        resource: tuple[str, UUID | None] | None = None,
    ) -> Notification:
        resource_type, resource_id = resource if resource else (None, None)
        notification = Notification(
            category=category.value,
            title=title,
            message=message,
            resource_type=resource_type,
            resource_id=resource_id,
        )
        self.db.add(notification)
        commit(self.db)
        self.db.refresh(notification)
        return notification

    def get(self, notification_id: UUID) -> Notification | None:
        return self.db.get(Notification, notification_id)

    def _filtered(
        self,
        category: NotificationCategory | None = None,
        is_read: bool | None = None,
        resource_type: str | None = None,
        resource_id: UUID | None = None,
    ) -> Query[Any]:
        query = self.db.query(Notification)
        if category is not None:
            query = query.filter(Notification.category == category.value)
        if is_read is not None:
            query = query.filter(Notification.is_read.is_(is_read))
        if resource_type is not None:
            query = query.filter(Notification.resource_type == resource_type)
        if resource_id is not None:
            query = query.filter(Notification.resource_id == resource_id)
        return query

    def find(
        self,
        skip: int = 0,
        limit: int = 50,
        **filters: Any,
    ) -> list[Notification]:
        """Newest first. ``filters`` are category, is_read, resource_type and resource_id."""
        return (
            self._filtered(**filters)
            .order_by(Notification.created_at.desc(), Notification.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def unread_by_category(self) -> dict[str, int]:
        rows = (
            self.db.query(Notification.category, func.count(Notification.id))
            .filter(Notification.is_read.is_(False))
            .group_by(Notification.category)
            .all()
        )
        return {category: count for category, count in rows}

    def mark_read(self, notification: Notification) -> Notification:
        if not notification.is_read:
            notification.is_read = True  # type: ignore[assignment]
            commit(self.db)
            self.db.refresh(notification)
        return notification

    def mark_all_read(self, category: NotificationCategory | None = None) -> int:
        marked = self._filtered(category=category, is_read=False).update(
            {Notification.is_read: True}, synchronize_session=False
        )
        commit(self.db)
        return marked
