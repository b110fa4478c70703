# Notifications Controller

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.common.database.database import get_db_session
from src.models.models import Notification, NotificationType, User

from . import notifications_service as service
from .schemas import (
    MarkReadResponse,
    NotificationCreate,
    NotificationEnvelope,
    NotificationResponse,
    NotificationsListResponse,
)


router = APIRouter(prefix="/notifications", tags=["Notifications"])


def to_response(n: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=n.id,
        user_id=n.user_id,
        type=n.type.value,
        title=n.title,
        message=n.message,
        link=n.link,
        read=n.read,
        created_at=n.created_at,
    )


@router.get("", response_model=NotificationsListResponse)
async def get_notifications(
    limit: int = Query(default=50, ge=1, le=200),
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    """Get the caller's notifications."""
    notifications, unread_count = await service.list_notifications(db, current_user, limit, unread_only)
    return NotificationsListResponse(
        notifications=[to_response(n) for n in notifications],
        unread_count=unread_count,
    )


@router.post("", response_model=NotificationEnvelope, status_code=status.HTTP_201_CREATED)
async def create_notification(
    request: NotificationCreate,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    """Create a notification for yourself, or for anyone as an admin."""
    notification = await service.create_notification(
        db,
        current_user,
        request.user_id,
        NotificationType(request.type.value),
        request.title,
        request.message,
        request.link,
    )
    return NotificationEnvelope(notification=to_response(notification))


@router.patch("/read-all", response_model=MarkReadResponse)
async def mark_all_read(
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    """Mark all notifications as read. Safe to repeat."""
    count = await service.mark_all_read(db, current_user)
    return MarkReadResponse(marked_count=count, unread_count=await service.count_unread(db, current_user.id))


@router.patch("/{notification_id}/read", response_model=NotificationEnvelope)
async def mark_read(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    """Mark one notification as read."""
    notification = await service.mark_read(db, current_user, notification_id)
    return NotificationEnvelope(notification=to_response(notification))
