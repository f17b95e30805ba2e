from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.params import Path
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.errors import NotFoundError, ValidationError
from core.security import get_current_user
from models.notification import Notification, NOTIFICATION_TYPES
from models.user import User
from schemas.message import UnreadCountResponse
from schemas.notification import NotificationListResponse, NotificationRead

router = APIRouter(prefix="/notifications", tags=["notifications"])

NOTIFICATIONS_PAGE_SIZE = 20


def to_notification_read(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id,
        type=notification.type,
        title=notification.title,
        body=notification.body,
        related_id=notification.related_id,
        is_read=notification.is_read,
        created_at=notification.created_at,
    )


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="Ваши уведомления, новые первыми"
)
async def list_notifications(
    page: int = Query(1, ge=1),
    type: Optional[str] = Query(None, description="Фильтр по типу"),
    unread_only: bool = Query(False, alias="unreadOnly"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    stmt = select(Notification).where(Notification.user_id == current_user.id)
    if type is not None:
        if type not in NOTIFICATION_TYPES:
            raise ValidationError(f"Unknown notification type '{type}'", field="type")
        stmt = stmt.where(Notification.type == type)
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))

    stmt = (
        stmt.order_by(Notification.created_at.desc())
        .offset((page - 1) * NOTIFICATIONS_PAGE_SIZE)
        .limit(NOTIFICATIONS_PAGE_SIZE + 1)
    )
    notifications = (await db.execute(stmt)).scalars().all()
    return NotificationListResponse(
        notifications=[to_notification_read(n) for n in notifications[:NOTIFICATIONS_PAGE_SIZE]],
        page=page,
        has_more=len(notifications) > NOTIFICATIONS_PAGE_SIZE,
    )


@router.put(
    "/mark-all-read",
    response_model=UnreadCountResponse,
    summary="Отметить все уведомления прочитанными"
)
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await db.execute(
        update(Notification)
        .where(Notification.user_id == current_user.id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    await db.commit()
    return UnreadCountResponse(count=0)


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Число непрочитанных уведомлений"
)
async def unread_count(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    count = (await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == current_user.id,
            Notification.is_read.is_(False),
        )
    )).scalar_one()
    return UnreadCountResponse(count=count)


@router.put(
    "/{notification_id}/read",
    response_model=NotificationRead,
    summary="Отметить уведомление прочитанным"
)
async def mark_read(
    notification_id: int = Path(..., description="ID уведомления"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    notification = await db.get(Notification, notification_id)
    if not notification or notification.user_id != current_user.id:
        raise NotFoundError("Notification", notification_id)
    if not notification.is_read:
        notification.is_read = True
        await db.commit()
    return to_notification_read(notification)
