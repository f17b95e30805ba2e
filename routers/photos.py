import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.errors import NotFoundError
from core.security import get_current_user
from models.photo import Photo
from models.user import User
from schemas.photo import PhotoLikeRequest, PhotoLikeResponse
from services.reactions import PHOTO_LEDGER, toggle_reaction

router = APIRouter(prefix="/photos", tags=["photos"])
logger = logging.getLogger("uvicorn.error")


@router.post(
    "/like",
    response_model=PhotoLikeResponse,
    status_code=status.HTTP_200_OK,
    summary="Поставить или убрать лайк фотографии",
)
async def like_photo(
    payload: PhotoLikeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PhotoLikeResponse:
    user_id = current_user.id

    photo_id = (await db.execute(
        select(Photo.id).where(Photo.url == payload.photo_url).order_by(Photo.created_at.asc()).limit(1)
    )).scalar_one_or_none()
    if photo_id is None:
        raise NotFoundError("Photo")

    # isLike не задаёт итоговое состояние: операция всегда переключает лайк
    result = await toggle_reaction(db, PHOTO_LEDGER, photo_id, user_id, "like")
    if payload.is_like is not None and payload.is_like != result.active:
        logger.debug(f"Photo {photo_id}: isLike={payload.is_like} ignored, toggled to {result.active}")

    return PhotoLikeResponse(is_liked=result.active, like_count=result.count)
