import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from models.notification import Notification

logger = logging.getLogger(__name__)


async def send_notification(
    db: AsyncSession,
    user_id: int,
    type_: str,
    title: str,
    body: str = "",
    related_id: Optional[int] = None,
) -> Notification:
    """Сохраняет in-app уведомление. Доставка push-ом выполняется вне сервиса."""
    notification = Notification(
        user_id=user_id,
        type=type_,
        title=title,
        body=body,
        related_id=related_id,
    )
    db.add(notification)
    await db.commit()
    logger.debug(f"Notification {type_} → user {user_id}")
    return notification


async def notify_match(db: AsyncSession, user_id: int, match_id: int) -> None:
    await send_notification(
        db, user_id, "match",
        "It's a match! 🔥",
        "You both liked each other. Start the conversation",
        related_id=match_id,
    )


async def notify_superlike(db: AsyncSession, user_id: int) -> None:
    await send_notification(db, user_id, "superlike", "Someone super liked you ⭐")


async def notify_message(db: AsyncSession, user_id: int, sender_name: str, message_id: int) -> None:
    await send_notification(
        db, user_id, "message",
        f"New message from {sender_name}",
        related_id=message_id,
    )


async def notify_comment(db: AsyncSession, user_id: int, confession_id: int) -> None:
    # Автор комментария не раскрывается
    await send_notification(
        db, user_id, "comment",
        "Someone commented on your confession",
        related_id=confession_id,
    )


async def notify_reply(db: AsyncSession, user_id: int, confession_id: int) -> None:
    await send_notification(
        db, user_id, "reply",
        "Someone replied to your comment",
        related_id=confession_id,
    )
