"""Движок переключаемых реакций.

Реакция хранится как строка голоса (subject, user, kind) плюс
денормализованный счётчик на строке субъекта. Переключение меняет оба
в одной транзакции под блокировкой строки субъекта, поэтому
счётчик всегда равен числу голосов данного вида.

Один и тот же код обслуживает реакции на признания (heart/laugh/fire/sad)
и лайки фотографий (единственный вид like).
"""
import logging
from dataclasses import dataclass

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import InvalidKindError, NotFoundError
from models.confession import Confession, ConfessionReaction, REACTION_KINDS
from models.photo import Photo, PhotoLike
from models.user import User
from services.transactions import run_serialized

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReactionLedger:
    """Описание субъекта реакций: модели, внешний ключ и допустимые виды."""

    name: str
    subject_model: type
    vote_model: type
    subject_fk: str
    kinds: tuple[str, ...]
    # Колонка вида в таблице голосов; None, если вид у субъекта один
    kind_column: str | None = None

    def validate_kind(self, kind: str) -> None:
        if kind not in self.kinds:
            raise InvalidKindError(kind, self.kinds)

    @staticmethod
    def counter_attr(kind: str) -> str:
        return f"{kind}_count"

    def counts(self, subject) -> dict[str, int]:
        return {kind: getattr(subject, self.counter_attr(kind)) or 0 for kind in self.kinds}

    def vote_clauses(self, subject_id: int, user_id: int, kind: str) -> list:
        clauses = [
            getattr(self.vote_model, self.subject_fk) == subject_id,
            self.vote_model.user_id == user_id,
        ]
        if self.kind_column:
            clauses.append(getattr(self.vote_model, self.kind_column) == kind)
        return clauses

    def new_vote(self, subject_id: int, user_id: int, kind: str):
        values = {self.subject_fk: subject_id, "user_id": user_id}
        if self.kind_column:
            values[self.kind_column] = kind
        return self.vote_model(**values)


CONFESSION_LEDGER = ReactionLedger(
    name="Confession",
    subject_model=Confession,
    vote_model=ConfessionReaction,
    subject_fk="confession_id",
    kinds=REACTION_KINDS,
    kind_column="kind",
)

PHOTO_LEDGER = ReactionLedger(
    name="Photo",
    subject_model=Photo,
    vote_model=PhotoLike,
    subject_fk="photo_id",
    kinds=("like",),
)


@dataclass
class ToggleResult:
    kind: str
    count: int
    active: bool
    counts: dict[str, int]


async def _lock_subject(db: AsyncSession, ledger: ReactionLedger, subject_id: int):
    model = ledger.subject_model
    result = await db.execute(
        select(model)
        .where(model.id == subject_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    subject = result.scalar_one_or_none()
    if subject is None:
        raise NotFoundError(ledger.name, subject_id)
    return subject


async def toggle_reaction(
    db: AsyncSession,
    ledger: ReactionLedger,
    subject_id: int,
    actor_id: int,
    kind: str,
) -> ToggleResult:
    """
    Переключает членство actor_id в множестве голосующих вида kind.

    Если голос уже есть, он удаляется, а счётчик уменьшается (не ниже 0);
    иначе голос добавляется и счётчик растёт. Повторный вызов возвращает
    субъект в исходное состояние.
    """
    ledger.validate_kind(kind)
    attr = ledger.counter_attr(kind)

    async def _toggle() -> ToggleResult:
        subject = await _lock_subject(db, ledger, subject_id)
        if await db.get(User, actor_id) is None:
            raise NotFoundError("User", actor_id)

        vote = (await db.execute(
            select(ledger.vote_model).where(*ledger.vote_clauses(subject_id, actor_id, kind))
        )).scalar_one_or_none()

        current = getattr(subject, attr) or 0
        if vote is not None:
            await db.delete(vote)
            setattr(subject, attr, max(0, current - 1))
        else:
            db.add(ledger.new_vote(subject_id, actor_id, kind))
            setattr(subject, attr, current + 1)
        await db.flush()

        return ToggleResult(
            kind=kind,
            count=getattr(subject, attr),
            active=vote is None,
            counts=ledger.counts(subject),
        )

    return await run_serialized(db, _toggle, name=f"Toggle {ledger.name.lower()} {kind}")


async def voter_counts(db: AsyncSession, ledger: ReactionLedger, subject_id: int) -> dict[str, int]:
    """Пересчитать размеры множеств голосующих прямо по таблице голосов."""
    vote = ledger.vote_model
    if ledger.kind_column:
        kind_col = getattr(vote, ledger.kind_column)
        rows = (await db.execute(
            select(kind_col, func.count(vote.id))
            .where(getattr(vote, ledger.subject_fk) == subject_id)
            .group_by(kind_col)
        )).all()
        counted = {kind: total for kind, total in rows}
    else:
        total = (await db.execute(
            select(func.count(vote.id)).where(getattr(vote, ledger.subject_fk) == subject_id)
        )).scalar_one()
        counted = {ledger.kinds[0]: total}
    return {kind: counted.get(kind, 0) for kind in ledger.kinds}


async def recount_subject(db: AsyncSession, ledger: ReactionLedger, subject_id: int) -> bool:
    """Привести счётчики субъекта к числу голосов. True, если что-то исправлено."""

    async def _recount() -> bool:
        subject = await _lock_subject(db, ledger, subject_id)
        actual = await voter_counts(db, ledger, subject_id)
        if actual == ledger.counts(subject):
            return False
        logger.warning(
            "%s %s: counters %s diverged from voters %s, repairing",
            ledger.name, subject_id, ledger.counts(subject), actual,
        )
        for kind, total in actual.items():
            setattr(subject, ledger.counter_attr(kind), total)
        await db.flush()
        return True

    return await run_serialized(db, _recount, name=f"Recount {ledger.name.lower()}")


async def recount_all(db: AsyncSession, ledger: ReactionLedger) -> int:
    subject_ids = (await db.execute(select(ledger.subject_model.id))).scalars().all()
    await db.commit()
    repaired = 0
    for subject_id in subject_ids:
        if await recount_subject(db, ledger, subject_id):
            repaired += 1
    return repaired
