from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookmyslot.api.deps import get_current_user
from bookmyslot.api.presenters import notification_to_public
from bookmyslot.api.schemas.notification import NotificationPublic
from bookmyslot.core.db import get_session
from bookmyslot.models.user import User
from bookmyslot.services.notification_service import list_notifications, mark_notification_read

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationPublic])
async def my_notifications(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> list[NotificationPublic]:
    return [notification_to_public(n) for n in await list_notifications(session, current_user.id)]


@router.patch("/{notification_id}/read", response_model=NotificationPublic)
async def mark_read(
    notification_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> NotificationPublic:
    notification = await mark_notification_read(session, notification_id, current_user.id)
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification_to_public(notification)
