from typing import List, Literal, Optional
from datetime import datetime

from pydantic import BaseModel, Field

CategoryLiteral = Literal["love", "breakup", "secret", "funny", "crush"]


class ConfessionCreate(BaseModel):
    content: str = Field(..., description="Текст признания (до 1000 символов)")
    category: CategoryLiteral = Field("secret", description="Категория признания")


class ReactionCounts(BaseModel):
    heart: int = 0
    laugh: int = 0
    fire: int = 0
    sad: int = 0


class UserReactions(BaseModel):
    heart: bool = False
    laugh: bool = False
    fire: bool = False
    sad: bool = False


class CommentRead(BaseModel):
    id: int
    content: str
    is_anonymous: bool = Field(..., alias="isAnonymous")
    # Заполняется только для неанонимных комментариев
    author_name: Optional[str] = Field(None, alias="authorName")
    time_ago: str = Field(..., alias="timeAgo")
    created_at: datetime = Field(..., alias="createdAt")
    replies: List["CommentRead"] = Field([], description="Ответы (один уровень вложенности)")

    class Config:
        validate_by_name = True


class ConfessionRead(BaseModel):
    """
    Признание в том виде, в каком его видят читатели.
    Автор признания в схеме отсутствует намеренно.
    """
    id: int
    content: str
    category: str
    reactions: ReactionCounts
    comments: int = Field(..., description="Число комментариев верхнего уровня")
    time_ago: str = Field(..., alias="timeAgo")
    is_anonymous: bool = Field(True, alias="isAnonymous")
    user_reactions: UserReactions = Field(..., alias="userReactions")
    created_at: datetime = Field(..., alias="createdAt")

    class Config:
        validate_by_name = True


class ConfessionDetail(ConfessionRead):
    comment_list: List[CommentRead] = Field([], alias="commentList")


class ConfessionListResponse(BaseModel):
    confessions: List[ConfessionRead]
    page: int
    has_more: bool = Field(..., alias="hasMore")

    class Config:
        validate_by_name = True


class ReactionRequest(BaseModel):
    type: str = Field(..., description="heart | laugh | fire | sad")


class ReactionResponse(BaseModel):
    reaction_counts: ReactionCounts = Field(..., alias="reactionCounts")
    user_reacted: bool = Field(..., alias="userReacted")

    class Config:
        validate_by_name = True


class CommentCreate(BaseModel):
    content: str = Field(..., description="Текст комментария (до 500 символов)")
    is_anonymous: bool = Field(True, alias="isAnonymous")

    class Config:
        validate_by_name = True


class ReportRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500, description="Причина жалобы")


class ReportResponse(BaseModel):
    reported: bool
