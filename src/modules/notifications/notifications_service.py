# Notifications Service

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.common.access import Action, authorize
from src.common.exceptions import NotFound
from src.common.utils.global_messages import GlobalMessages
from src.common.utils.logger import get_logger
from src.models.models import Notification, NotificationType, User

logger = get_logger(__name__)


async def count_unread(db: AsyncSession, user_id: UUID) -> int:
    count = await db.scalar(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.read.is_(False),
        )
    )
    return count or 0


async def list_notifications(
    db: AsyncSession,
    actor: User,
    limit: int = 50,
    unread_only: bool = False,
) -> Tuple[List[Notification], int]:
    """The caller's notifications, newest first, with their unread count."""
    authorize(actor, Action.READ_NOTIFICATIONS, actor.id)

    query = select(Notification).where(Notification.user_id == actor.id)
    if unread_only:
        query = query.where(Notification.read.is_(False))
    query = query.order_by(desc(Notification.created_at)).limit(limit)

    result = await db.execute(query)
    notifications = list(result.scalars().all())
    return notifications, await count_unread(db, actor.id)


async def create_notification(
    db: AsyncSession,
    actor: User,
    user_id: UUID,
    notification_type: NotificationType,
    title: str,
    message: str,
    link: Optional[str] = None,
) -> Notification:
    """Create a notification. Anyone may notify themselves; only admins may notify others."""
    authorize(actor, Action.CREATE_NOTIFICATION, user_id, message=GlobalMessages.NOTIFY_OTHERS_FORBIDDEN)

    exists = await db.scalar(select(User.id).where(User.id == user_id))
    if exists is None:
        raise NotFound(GlobalMessages.USER_NOT_FOUND)

    notification = Notification(
        user_id=user_id,
        type=notification_type,
        title=title,
        message=message,
        link=link,
    )
    db.add(notification)
    await db.commit()
    await db.refresh(notification)

    logger.info("notification_created", notification_id=str(notification.id), user_id=str(user_id), by=str(actor.id))
    return notification


async def mark_read(db: AsyncSession, actor: User, notification_id: UUID) -> Notification:
    """Mark one notification as read. Marking an already-read notification is a no-op."""
    result = await db.execute(select(Notification).where(Notification.id == notification_id))
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFound(GlobalMessages.NOTIFICATION_NOT_FOUND)

    authorize(actor, Action.MARK_NOTIFICATION_READ, notification.user_id)

    if not notification.read:
        notification.read = True
        await db.commit()
        await db.refresh(notification)
    return notification


async def mark_all_read(db: AsyncSession, actor: User) -> int:
    """Mark all of the caller's notifications as read. Returns how many changed."""
    authorize(actor, Action.MARK_NOTIFICATION_READ, actor.id)

    stmt = (
        update(Notification)
        .where(
            Notification.user_id == actor.id,
            Notification.read.is_(False),
        )
        .values(read=True)
        .execution_options(synchronize_session=False)
    )

    result = await db.execute(stmt)
    await db.commit()

    return result.rowcount
