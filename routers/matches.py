from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.params import Path
from sqlalchemy import select, or_, func, not_
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.errors import NotFoundError
from core.security import get_current_user
from models.match import Match as MatchModel, Swipe, POSITIVE_ACTIONS
from models.message import Message
from models.user import User
from schemas.match import MatchListResponse, MatchRead, SwipeRequest, SwipeResponse
from schemas.user import PublicUserRead
from services.matching import record_swipe
from services.notifications import notify_match, notify_superlike
from utils.user_helpers import to_public_user, to_public_users

router = APIRouter(prefix="/matches", tags=["matches"])

MATCHES_PAGE_SIZE = 20


@router.post(
    "/swipe",
    response_model=SwipeResponse,
    summary="Свайп: like, pass или superlike; сообщает, образовался ли матч"
)
async def swipe_user(
    payload: SwipeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SwipeResponse:
    user_id = current_user.id
    target_id = payload.target_user_id

    outcome = await record_swipe(db, user_id, target_id, payload.action)

    if outcome.is_new_match:
        await notify_match(db, user_id, outcome.match_id)
        await notify_match(db, target_id, outcome.match_id)
    elif payload.action == "superlike" and not outcome.is_match:
        await notify_superlike(db, target_id)

    matched_user = None
    if outcome.is_match:
        target = await db.get(User, target_id)
        matched_user = await to_public_user(target, db)

    return SwipeResponse(
        is_match=outcome.is_match,
        is_new_match=outcome.is_new_match,
        match_id=outcome.match_id,
        matched_user=matched_user,
    )


async def _to_match_reads(db: AsyncSession, matches: List[MatchModel], user_id: int) -> List[MatchRead]:
    other_ids = [m.other_user_id(user_id) for m in matches]
    users = (await db.execute(select(User).where(User.id.in_(other_ids)))).scalars().all()
    reads = {u.id: u for u in await to_public_users(users, db)}

    out: List[MatchRead] = []
    for match in matches:
        other = reads.get(match.other_user_id(user_id))
        if other is None:
            continue
        last_message = (await db.execute(
            select(Message)
            .where(Message.match_id == match.id)
            .order_by(Message.created_at.desc())
            .limit(1)
        )).scalar_one_or_none()
        unread = (await db.execute(
            select(func.count(Message.id)).where(
                Message.match_id == match.id,
                Message.recipient_id == user_id,
                Message.is_read.is_(False),
                Message.is_deleted.is_(False),
            )
        )).scalar_one()
        out.append(MatchRead(
            id=match.id,
            user=other,
            created_at=match.created_at,
            last_message=None if last_message is None or last_message.is_deleted else last_message.content,
            unread_count=unread,
        ))
    return out


@router.get(
    "",
    response_model=MatchListResponse,
    summary="Список ваших матчей"
)
async def get_my_matches(
    page: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MatchListResponse:
    # Ищем все матчи, где участвует текущий пользователь
    stmt = (
        select(MatchModel)
        .where(
            or_(
                MatchModel.user1_id == current_user.id,
                MatchModel.user2_id == current_user.id,
            )
        )
        .order_by(MatchModel.created_at.desc())
        .offset((page - 1) * MATCHES_PAGE_SIZE)
        .limit(MATCHES_PAGE_SIZE + 1)
    )
    matches = (await db.execute(stmt)).scalars().all()
    has_more = len(matches) > MATCHES_PAGE_SIZE
    matches = list(matches[:MATCHES_PAGE_SIZE])

    return MatchListResponse(
        matches=await _to_match_reads(db, matches, current_user.id),
        page=page,
        has_more=has_more,
    )


@router.get(
    "/likes",
    response_model=List[PublicUserRead],
    summary="Кто лайкнул вас: без ответа с вашей стороны и без матча"
)
async def incoming_likes(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[PublicUserRead]:
    answered = select(Swipe.target_id).where(Swipe.actor_id == current_user.id)
    stmt = (
        select(User)
        .join(Swipe, Swipe.actor_id == User.id)
        .where(
            Swipe.target_id == current_user.id,
            Swipe.action.in_(POSITIVE_ACTIONS),
            not_(User.id.in_(answered)),
        )
        .order_by(Swipe.updated_at.desc())
    )
    users = (await db.execute(stmt)).scalars().all()
    return await to_public_users(users, db)


@router.get(
    "/{match_id}",
    response_model=MatchRead,
    summary="Получить матч по ID"
)
async def get_match(
    match_id: int = Path(..., description="ID матча"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MatchRead:
    match = await db.get(MatchModel, match_id)
    if not match or not match.has_member(current_user.id):
        raise NotFoundError("Match", match_id)
    reads = await _to_match_reads(db, [match], current_user.id)
    if not reads:
        raise NotFoundError("Match", match_id)
    return reads[0]
