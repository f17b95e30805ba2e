from typing import Optional

from pydantic import BaseModel, Field
from datetime import datetime


class PhotoCreate(BaseModel):
    url: str = Field(..., min_length=1, max_length=1024, description="URL изображения в CDN")
    storage_key: str = Field(..., alias="storageKey", min_length=1, max_length=255,
                             description="Ключ хранилища для удаления")

    class Config:
        validate_by_name = True


class PhotoRead(BaseModel):
    url: str = Field(..., description="URL изображения")
    storage_key: str = Field(..., alias="storageKey", description="Ключ хранилища")
    is_main: bool = Field(..., alias="isMain", description="Признак главной фотографии")
    like_count: int = Field(0, alias="likeCount", description="Число лайков")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Config:
        from_attributes = True
        validate_by_name = True


class PhotoLikeRequest(BaseModel):
    photo_url: str = Field(..., alias="photoUrl", description="URL фотографии")
    # Принимается для совместимости с клиентом, операция всегда переключает лайк
    is_like: Optional[bool] = Field(None, alias="isLike")

    class Config:
        validate_by_name = True


class PhotoLikeResponse(BaseModel):
    is_liked: bool = Field(..., alias="isLiked")
    like_count: int = Field(..., alias="likeCount")

    class Config:
        validate_by_name = True
