from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, Field


class NotificationRead(BaseModel):
    id: int
    type: str
    title: str
    body: str
    related_id: Optional[int] = Field(None, alias="relatedId")
    is_read: bool = Field(..., alias="isRead")
    created_at: datetime = Field(..., alias="createdAt")

    class Config:
        from_attributes = True
        validate_by_name = True


class NotificationListResponse(BaseModel):
    notifications: List[NotificationRead]
    page: int
    has_more: bool = Field(..., alias="hasMore")

    class Config:
        validate_by_name = True
