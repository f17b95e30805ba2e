from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, Field

from schemas.user import PublicUserRead


class SwipeRequest(BaseModel):
    target_user_id: int = Field(..., alias="targetUserId", description="ID пользователя")
    action: str = Field(..., description="like | pass | superlike")

    class Config:
        validate_by_name = True


class SwipeResponse(BaseModel):
    is_match: bool = Field(..., alias="isMatch")
    is_new_match: bool = Field(False, alias="isNewMatch")
    match_id: Optional[int] = Field(None, alias="matchId")
    matched_user: Optional[PublicUserRead] = Field(None, alias="matchedUser")

    class Config:
        validate_by_name = True


class MatchRead(BaseModel):
    id: int
    user: PublicUserRead
    created_at: datetime = Field(..., alias="createdAt")
    last_message: Optional[str] = Field(None, alias="lastMessage")
    unread_count: int = Field(0, alias="unreadCount")

    class Config:
        validate_by_name = True


class MatchListResponse(BaseModel):
    matches: List[MatchRead]
    page: int
    has_more: bool = Field(..., alias="hasMore")

    class Config:
        validate_by_name = True
