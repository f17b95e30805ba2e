"""Утилиты для преобразования моделей пользователей в схемы Pydantic."""
from collections import defaultdict
from collections.abc import Iterable
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.photo import Photo
from models.user import User
from schemas.photo import PhotoRead
from schemas.user import ProfileRead, PublicUserRead


def to_photo_read(photo: Photo) -> PhotoRead:
    return PhotoRead(
        url=photo.url,
        storage_key=photo.storage_key,
        is_main=photo.is_main,
        like_count=photo.like_count,
        created_at=photo.created_at,
    )


async def load_photos(user_ids: Iterable[int], db: AsyncSession) -> dict[int, List[Photo]]:
    """Фото нескольких пользователей одним запросом: главное фото первым."""
    user_ids = list(user_ids)
    if not user_ids:
        return {}
    result = await db.execute(
        select(Photo)
        .where(Photo.user_id.in_(user_ids))
        .order_by(Photo.user_id, Photo.is_main.desc(), Photo.created_at.asc())
    )
    photos: dict[int, List[Photo]] = defaultdict(list)
    for photo in result.scalars().all():
        photos[photo.user_id].append(photo)
    return photos


def _public_fields(user: User, photos: List[Photo]) -> dict:
    return dict(
        id=user.id,
        name=user.name,
        college=user.college,
        photos=[to_photo_read(p) for p in photos],
        bio=user.bio or "",
        age=user.age,
        year=user.year,
        branch=user.branch,
        gender=user.gender,
        interests=list(user.interests or []),
        looking_for=user.looking_for or "Not sure",
    )


async def to_public_user(user: User, db: AsyncSession) -> PublicUserRead:
    """Сконвертировать модель пользователя в PublicUserRead со списком фото."""
    photos = await load_photos([user.id], db)
    return PublicUserRead(**_public_fields(user, photos.get(user.id, [])))


async def to_public_users(users: Iterable[User], db: AsyncSession) -> List[PublicUserRead]:
    """Сконвертировать список моделей пользователей в PublicUserRead."""
    users = list(users)
    photos = await load_photos([u.id for u in users], db)
    return [PublicUserRead(**_public_fields(u, photos.get(u.id, []))) for u in users]


async def to_profile_read(user: User, db: AsyncSession) -> ProfileRead:
    """Собственный профиль: публичные поля плюс email и дата регистрации."""
    photos = await load_photos([user.id], db)
    return ProfileRead(
        **_public_fields(user, photos.get(user.id, [])),
        email=user.email,
        created_at=user.created_at,
    )
