# routers/auth.py
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from core.database import get_db
from core.errors import ValidationError
from core.security import create_access_token
from models.user import User
from schemas.auth import RegisterRequest, TokenResponse

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger("uvicorn.error")


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Зарегистрировать пользователя → выдаёт JWT"
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    email = payload.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise ValidationError("User with this email already exists", field="email")

    user = User(
        email=email,
        name=payload.name.strip(),
        college=payload.college.strip(),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Тот же email успели зарегистрировать между проверкой и вставкой
        await db.rollback()
        raise ValidationError("User with this email already exists", field="email")
    logger.info(f"Registered user {user.id} in {user.college}")

    access_token, expires = create_access_token(user.id)
    expires_ms = int(expires.timestamp() * 1000)

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        expires_in_ms=expires_ms,
        has_profile=bool(user.bio),
        college=user.college,
    )
