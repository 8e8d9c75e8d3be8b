"""Admin notification inbox."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from scoopops.core.auth import require_roles
from scoopops.core.database import get_db
from scoopops.models.notification import NotificationCategory
from scoopops.models.user import UserRole
from scoopops.repositories.notification_repository import NotificationRepository
from scoopops.schemas.notification import (
    NotificationCountResponse,
    NotificationReadAllResponse,
    NotificationResponse,
)

router = APIRouter(dependencies=[Depends(require_roles(UserRole.ADMIN))])


@router.get(
    "/",
    response_model=list[NotificationResponse],
    summary="List notifications",
    responses={401: {"description": "Not authenticated"}, 403: {"description": "Admins only"}},
)
async def list_notifications(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    category: NotificationCategory | None = None,
    is_read: bool | None = None,
    resource_type: str | None = None,
    resource_id: UUID | None = None,
    db: Session = Depends(get_db),
) -> list[NotificationResponse]:
    """Newest first. Filter by ``resource_id`` to see every alert about one payment."""
    notifications = NotificationRepository(db).find(
        skip=skip,
        limit=limit,
        category=category,
        is_read=is_read,
        resource_type=resource_type,
        resource_id=resource_id,
    )
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.get(
    "/unread_count",
    response_model=NotificationCountResponse,
    summary="Count unread notifications",
)
async def get_unread_count(db: Session = Depends(get_db)) -> NotificationCountResponse:
    by_category = NotificationRepository(db).unread_by_category()
    return NotificationCountResponse(
        unread_count=sum(by_category.values()), by_category=by_category
    )


@router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification as read",
    responses={404: {"description": "Notification not found"}},
)
async def mark_as_read(
    notification_id: UUID,
    db: Session = Depends(get_db),
) -> NotificationResponse:
    repo = NotificationRepository(db)
    notification = repo.get(notification_id)
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return NotificationResponse.model_validate(repo.mark_read(notification))


@router.post(
    "/read_all",
    response_model=NotificationReadAllResponse,
    summary="Mark unread notifications as read",
)
async def mark_all_as_read(
    category: NotificationCategory | None = None,
    db: Session = Depends(get_db),
) -> NotificationReadAllResponse:
    """Mark every unread notification, or only one category's, as read."""
    return NotificationReadAllResponse(marked=NotificationRepository(db).mark_all_read(category))
