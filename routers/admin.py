import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db
from schemas.admin import RecountRequest, RecountResponse
from services.reactions import CONFESSION_LEDGER, PHOTO_LEDGER, recount_all

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger("uvicorn.error")


@router.post(
    "/recount",
    response_model=RecountResponse,
    summary="Пересчитать счётчики реакций и лайков по журналам голосов",
)
async def recount_reactions(
    payload: RecountRequest,
    db: AsyncSession = Depends(get_db),
) -> RecountResponse:
    if not settings.ADMIN_PASSWORD:
        logger.warning("Попытка пересчёта при не настроенном ADMIN_PASSWORD")
        raise HTTPException(status_code=503, detail="Пароль для админ-операций не настроен")

    if payload.password != settings.ADMIN_PASSWORD:
        raise HTTPException(status_code=403, detail="Неверный пароль")

    confessions = await recount_all(db, CONFESSION_LEDGER)
    photos = await recount_all(db, PHOTO_LEDGER)
    logger.info(f"Recount finished: {confessions} confessions, {photos} photos repaired")
    return RecountResponse(confessions=confessions, photos=photos)
