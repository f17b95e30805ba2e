"""Движок матчей: направленные свайпы → симметричный матч, создаваемый ровно один раз.

Все свайпы внутри неупорядоченной пары сериализуются блокировкой строки
SwipePair; проверка встречного лайка и создание матча идут в той же
транзакции, а уникальный ключ matches(user1_id, user2_id) не даёт
появиться второму матчу даже при гонке.
"""
import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import InvalidActionError, NotFoundError, SelfSwipeError
from models.base import utcnow
from models.match import Match, Swipe, SwipePair, SWIPE_ACTIONS, POSITIVE_ACTIONS, canonical_pair
from models.user import User
from services.transactions import run_serialized

logger = logging.getLogger(__name__)


@dataclass
class SwipeOutcome:
    action: str
    is_match: bool = False
    is_new_match: bool = False
    match: Match | None = None

    @property
    def match_id(self) -> int | None:
        return self.match.id if self.match is not None else None


async def _find_pair(db: AsyncSession, user1_id: int, user2_id: int) -> SwipePair | None:
    stmt = (
        select(SwipePair)
        .where(SwipePair.user1_id == user1_id, SwipePair.user2_id == user2_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def _lock_pair(db: AsyncSession, user1_id: int, user2_id: int) -> SwipePair:
    pair = await _find_pair(db, user1_id, user2_id)
    if pair is None:
        # Параллельная вставка той же пары упадёт на uq_swipe_pair и будет повторена
        pair = SwipePair(user1_id=user1_id, user2_id=user2_id)
        db.add(pair)
    pair.last_swipe_at = utcnow()
    await db.flush()
    return pair


async def _upsert_swipe(db: AsyncSession, actor_id: int, target_id: int, action: str) -> Swipe:
    swipe = (await db.execute(
        select(Swipe).where(Swipe.actor_id == actor_id, Swipe.target_id == target_id)
    )).scalar_one_or_none()
    if swipe is None:
        swipe = Swipe(actor_id=actor_id, target_id=target_id, action=action)
        db.add(swipe)
    else:
        swipe.action = action
        swipe.updated_at = utcnow()
    await db.flush()
    return swipe


async def get_match_for_pair(db: AsyncSession, a: int, b: int) -> Match | None:
    user1_id, user2_id = canonical_pair(a, b)
    result = await db.execute(
        select(Match).where(Match.user1_id == user1_id, Match.user2_id == user2_id)
    )
    return result.scalar_one_or_none()


async def record_swipe(db: AsyncSession, actor_id: int, target_id: int, action: str) -> SwipeOutcome:
    """
    Записывает решение actor → target (последнее решение перезаписывает
    предыдущее) и создаёт матч, если встречное решение равно like или superlike.

    Уже существующий матч возвращается повторно с is_new_match=False.
    """
    if actor_id == target_id:
        raise SelfSwipeError()
    if action not in SWIPE_ACTIONS:
        raise InvalidActionError(action, SWIPE_ACTIONS)

    async def _record() -> SwipeOutcome:
        for user_id in (actor_id, target_id):
            if await db.get(User, user_id) is None:
                raise NotFoundError("User", user_id)

        user1_id, user2_id = canonical_pair(actor_id, target_id)
        await _lock_pair(db, user1_id, user2_id)
        await _upsert_swipe(db, actor_id, target_id, action)

        if action not in POSITIVE_ACTIONS:
            # pass никогда не сообщает о матче, даже если пара уже совпала:
            # существующий матч не расторгается и остаётся в /matches
            return SwipeOutcome(action=action)

        reciprocal = (await db.execute(
            select(Swipe.action).where(Swipe.actor_id == target_id, Swipe.target_id == actor_id)
        )).scalar_one_or_none()
        if reciprocal not in POSITIVE_ACTIONS:
            return SwipeOutcome(action=action)

        match = await get_match_for_pair(db, actor_id, target_id)
        if match is not None:
            return SwipeOutcome(action=action, is_match=True, is_new_match=False, match=match)

        match = Match(user1_id=user1_id, user2_id=user2_id)
        db.add(match)
        await db.flush()
        return SwipeOutcome(action=action, is_match=True, is_new_match=True, match=match)

    outcome = await run_serialized(db, _record, name="Record swipe")
    if outcome.is_new_match:
        logger.info(f"New match {outcome.match.id}: {actor_id} ↔ {target_id}")
    return outcome
