from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, Field


class MessageCreate(BaseModel):
    content: str = Field(..., description="Текст сообщения (до 1000 символов)")
    reply_to: Optional[int] = Field(None, alias="replyTo", description="ID сообщения, на которое отвечаем")

    class Config:
        validate_by_name = True


class MessageRead(BaseModel):
    id: int
    match_id: int = Field(..., alias="matchId")
    sender_id: int = Field(..., alias="senderId")
    content: str
    reply_to: Optional[int] = Field(None, alias="replyTo")
    is_read: bool = Field(..., alias="isRead")
    is_deleted: bool = Field(False, alias="isDeleted")
    is_mine: bool = Field(..., alias="isMine")
    created_at: datetime = Field(..., alias="createdAt")

    class Config:
        validate_by_name = True


class MessageListResponse(BaseModel):
    messages: List[MessageRead]
    page: int
    has_more: bool = Field(..., alias="hasMore")

    class Config:
        validate_by_name = True


class UnreadCountResponse(BaseModel):
    count: int
