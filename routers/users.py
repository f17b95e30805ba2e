from typing import List

from fastapi import APIRouter, Depends, Query, status
from fastapi.params import Path
from sqlalchemy import select, delete, not_
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db
from core.errors import NotFoundError, ValidationError
from core.security import get_current_user
from models.match import Swipe
from models.photo import Photo, PhotoLike
from models.user import User, AGE_RANGE, BRANCHES, GENDERS, LOOKING_FOR, YEARS
from schemas.photo import PhotoCreate, PhotoRead
from schemas.user import (
    BranchOption,
    DiscoverResponse,
    ProfileOptions,
    ProfileRead,
    ProfileUpdate,
    PublicUserRead,
)
from services.transactions import run_serialized
from utils.user_helpers import to_photo_read, to_profile_read, to_public_user, to_public_users

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "/profile",
    response_model=ProfileRead,
    summary="Получить свой профиль"
)
async def read_my_profile(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await to_profile_read(current_user, db)


@router.put(
    "/profile",
    response_model=ProfileRead,
    summary="Обновить свой профиль"
)
async def update_my_profile(
    payload: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    updates = payload.model_dump(exclude_unset=True)

    if "name" in updates:
        if not (updates["name"] or "").strip():
            raise ValidationError("Name cannot be empty", field="name")
        current_user.name = updates["name"].strip()
    if "bio" in updates:
        current_user.bio = (updates["bio"] or "").strip()
    if "age" in updates:
        current_user.age = updates["age"]
    if "year" in updates:
        current_user.year = updates["year"]
    if "branch" in updates:
        current_user.branch = updates["branch"]
    if "gender" in updates:
        current_user.gender = updates["gender"]
    if "interests" in updates:
        current_user.interests = updates["interests"] or []
    if "looking_for" in updates:
        current_user.looking_for = updates["looking_for"] or "Not sure"

    db.add(current_user)
    await db.commit()
    await db.refresh(current_user)
    return await to_profile_read(current_user, db)


@router.get(
    "/profile-options",
    response_model=ProfileOptions,
    summary="Значения для выпадающих списков профиля"
)
async def profile_options():
    return ProfileOptions(
        years=list(YEARS),
        branches=[BranchOption(code=code, name=name) for code, name in BRANCHES.items()],
        genders=list(GENDERS),
        looking_for=list(LOOKING_FOR),
        age_range={"min": AGE_RANGE[0], "max": AGE_RANGE[1]},
    )


@router.get(
    "/discover",
    response_model=DiscoverResponse,
    summary="Кандидаты из того же колледжа, которых вы ещё не свайпали"
)
async def discover_users(
    limit: int = Query(settings.DISCOVER_LIMIT, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    sub_swiped = select(Swipe.target_id).where(Swipe.actor_id == current_user.id)
    stmt = (
        select(User)
        .where(
            User.id != current_user.id,
            User.college == current_user.college,
            not_(User.id.in_(sub_swiped)),
        )
        .order_by(User.created_at.desc())
        .limit(limit)
    )
    users = (await db.execute(stmt)).scalars().all()
    return DiscoverResponse(users=await to_public_users(users, db))


async def _lock_owner_photos(db: AsyncSession, user_id: int) -> List[Photo]:
    """Блокирует строку владельца и перечитывает его фото (старые первыми)."""
    await db.execute(select(User.id).where(User.id == user_id).with_for_update())
    result = await db.execute(
        select(Photo)
        .where(Photo.user_id == user_id)
        .order_by(Photo.created_at.asc())
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


def _find_own_photo(photos: List[Photo], storage_key: str) -> Photo:
    for photo in photos:
        if photo.storage_key == storage_key:
            return photo
    raise NotFoundError("Photo", storage_key)


@router.post(
    "/photos",
    response_model=PhotoRead,
    status_code=status.HTTP_201_CREATED,
    summary="Добавить фото (файл уже загружен в CDN)",
)
async def add_photo(
    payload: PhotoCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_id = current_user.id

    async def _add() -> Photo:
        photos = await _lock_owner_photos(db, user_id)
        # Проверяем лимит по числу фото
        if len(photos) >= settings.MAX_PHOTOS:
            raise ValidationError(f"Maximum {settings.MAX_PHOTOS} photos allowed", field="photo")

        exists = (await db.execute(
            select(Photo.id).where(Photo.storage_key == payload.storage_key)
        )).scalar_one_or_none()
        if exists:
            raise ValidationError("Photo with this storage key already exists", field="storageKey")

        # Первое фото становится главным
        photo = Photo(
            user_id=user_id,
            url=payload.url,
            storage_key=payload.storage_key,
            is_main=not photos,
        )
        db.add(photo)
        await db.flush()
        return photo

    photo = await run_serialized(db, _add, name="Add photo")
    return to_photo_read(photo)


@router.put(
    "/photos/{storage_key:path}/main",
    response_model=List[PhotoRead],
    summary="Сделать фото главным",
)
async def set_main_photo(
    storage_key: str = Path(..., description="Ключ хранилища фото"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_id = current_user.id

    async def _set_main() -> List[Photo]:
        photos = await _lock_owner_photos(db, user_id)
        target = _find_own_photo(photos, storage_key)
        for photo in photos:
            photo.is_main = photo.id == target.id
        await db.flush()
        return photos

    photos = await run_serialized(db, _set_main, name="Set main photo")
    return [to_photo_read(p) for p in photos]


@router.delete(
    "/photos/{storage_key:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удалить фото по ключу хранилища",
)
async def delete_photo(
    storage_key: str = Path(..., description="Ключ хранилища фото"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_id = current_user.id

    async def _delete() -> None:
        photos = await _lock_owner_photos(db, user_id)
        photo = _find_own_photo(photos, storage_key)

        # Вместе с фото удаляется и его журнал лайков
        await db.execute(delete(PhotoLike).where(PhotoLike.photo_id == photo.id))
        await db.delete(photo)
        remaining = [p for p in photos if p.id != photo.id]
        if photo.is_main and remaining:
            remaining[0].is_main = True
        await db.flush()

    await run_serialized(db, _delete, name="Delete photo")
    return


@router.get(
    "/{user_id}",
    response_model=PublicUserRead,
    summary="Получить публичный профиль другого пользователя по user_id"
)
async def read_user_profile(
    user_id: int = Path(..., description="ID пользователя"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return await to_public_user(user, db)
