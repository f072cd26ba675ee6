from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookmyslot.models.notification import Notification


async def create_notification(session: AsyncSession, user_id: int, message: str) -> Notification:
    notification = Notification(user_id=user_id, message=message, read=False)
    session.add(notification)
    await session.flush()
    await session.refresh(notification)
    return notification


async def list_notifications(session: AsyncSession, user_id: int) -> list[Notification]:
    result = await session.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return list(result.scalars().all())


async def mark_notification_read(session: AsyncSession, notification_id: int, user_id: int) -> Notification | None:
    result = await session.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        return None
    notification.read = True
    session.add(notification)
    await session.flush()
    return notification
