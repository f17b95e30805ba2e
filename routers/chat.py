from fastapi import APIRouter, Depends, Query, status
from fastapi.params import Path
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.errors import NotFoundError, PermissionDeniedError, ValidationError
from core.security import get_current_user
from models.base import utcnow
from models.match import Match as MatchModel
from models.message import Message
from models.user import User
from schemas.message import MessageCreate, MessageListResponse, MessageRead, UnreadCountResponse
from services.notifications import notify_message

router = APIRouter(prefix="/chat", tags=["chat"])

MESSAGES_PAGE_SIZE = 50
MAX_MESSAGE_LENGTH = 1000
DELETED_PLACEHOLDER = "This message was deleted"


def to_message_read(message: Message, viewer_id: int) -> MessageRead:
    return MessageRead(
        id=message.id,
        match_id=message.match_id,
        sender_id=message.sender_id,
        content=DELETED_PLACEHOLDER if message.is_deleted else message.content,
        reply_to=message.reply_to_id,
        is_read=message.is_read,
        is_deleted=message.is_deleted,
        is_mine=message.sender_id == viewer_id,
        created_at=message.created_at,
    )


async def _get_member_match(db: AsyncSession, match_id: int, user_id: int) -> MatchModel:
    match = await db.get(MatchModel, match_id)
    # Чужой матч неотличим от несуществующего
    if not match or not match.has_member(user_id):
        raise NotFoundError("Match", match_id)
    return match


@router.get(
    "/matches/{match_id}/messages",
    response_model=MessageListResponse,
    summary="Сообщения матча, новые первыми"
)
async def list_messages(
    match_id: int = Path(..., description="ID матча"),
    page: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await _get_member_match(db, match_id, current_user.id)
    messages = (await db.execute(
        select(Message)
        .where(Message.match_id == match_id)
        .order_by(Message.created_at.desc())
        .offset((page - 1) * MESSAGES_PAGE_SIZE)
        .limit(MESSAGES_PAGE_SIZE + 1)
    )).scalars().all()
    has_more = len(messages) > MESSAGES_PAGE_SIZE
    return MessageListResponse(
        messages=[to_message_read(m, current_user.id) for m in messages[:MESSAGES_PAGE_SIZE]],
        page=page,
        has_more=has_more,
    )


@router.post(
    "/matches/{match_id}/messages",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Отправить сообщение в матч"
)
async def send_message(
    payload: MessageCreate,
    match_id: int = Path(..., description="ID матча"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_id, user_name = current_user.id, current_user.name
    match = await _get_member_match(db, match_id, user_id)

    content = payload.content.strip()
    if not content:
        raise ValidationError("Message content is required", field="content")
    if len(content) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"Message too long (max {MAX_MESSAGE_LENGTH} characters)", field="content")

    if payload.reply_to is not None:
        original = await db.get(Message, payload.reply_to)
        if not original or original.match_id != match_id:
            raise NotFoundError("Message", payload.reply_to)

    message = Message(
        match_id=match_id,
        sender_id=user_id,
        recipient_id=match.other_user_id(user_id),
        content=content,
        reply_to_id=payload.reply_to,
    )
    db.add(message)
    await db.commit()

    response = to_message_read(message, user_id)
    await notify_message(db, message.recipient_id, user_name, message.id)
    return response


@router.put(
    "/messages/{message_id}/read",
    response_model=MessageRead,
    summary="Отметить сообщение прочитанным"
)
async def mark_message_read(
    message_id: int = Path(..., description="ID сообщения"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    message = await db.get(Message, message_id)
    if not message or current_user.id not in (message.sender_id, message.recipient_id):
        raise NotFoundError("Message", message_id)
    if message.recipient_id != current_user.id:
        raise PermissionDeniedError("Only the recipient can mark a message as read")

    if not message.is_read:
        message.is_read = True
        message.read_at = utcnow()
        await db.commit()
    return to_message_read(message, current_user.id)


@router.delete(
    "/messages/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удалить своё сообщение"
)
async def delete_message(
    message_id: int = Path(..., description="ID сообщения"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    message = await db.get(Message, message_id)
    if not message or current_user.id not in (message.sender_id, message.recipient_id):
        raise NotFoundError("Message", message_id)
    if message.sender_id != current_user.id:
        raise PermissionDeniedError("Only the sender can delete a message")

    message.is_deleted = True
    await db.commit()
    return


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Число непрочитанных сообщений"
)
async def unread_count(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    count = (await db.execute(
        select(func.count(Message.id)).where(
            Message.recipient_id == current_user.id,
            Message.is_read.is_(False),
            Message.is_deleted.is_(False),
        )
    )).scalar_one()
    return UnreadCountResponse(count=count)
