import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from fastapi.params import Path
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db
from core.errors import NotFoundError, ValidationError
from core.security import get_current_user
from models.confession import Confession, ConfessionComment, ConfessionReport, CATEGORIES
from models.user import User
from schemas.confession import (
    CommentCreate,
    CommentRead,
    ConfessionCreate,
    ConfessionDetail,
    ConfessionListResponse,
    ConfessionRead,
    ReactionCounts,
    ReactionRequest,
    ReactionResponse,
    ReportRequest,
    ReportResponse,
)
from services.comments import add_comment, add_reply
from services.notifications import notify_comment, notify_reply
from services.reactions import CONFESSION_LEDGER, toggle_reaction
from services.transactions import run_serialized
from utils.confession_helpers import (
    to_comment_read,
    to_confession_detail,
    to_confession_read,
    to_confession_reads,
)

router = APIRouter(prefix="/confessions", tags=["confessions"])
logger = logging.getLogger("uvicorn.error")

MAX_CONFESSION_LENGTH = 1000


async def _get_visible_confession(db: AsyncSession, confession_id: int, college: str) -> Confession:
    confession = await db.get(Confession, confession_id)
    # Признания другого колледжа для читателя не существуют
    if not confession or confession.college != college:
        raise NotFoundError("Confession", confession_id)
    return confession


@router.get(
    "",
    response_model=ConfessionListResponse,
    summary="Лента признаний вашего колледжа"
)
async def list_confessions(
    category: str = Query("all", description="all или одна из категорий"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.CONFESSIONS_PAGE_SIZE, ge=1, le=50),
    sort: Literal["recent", "popular"] = Query("recent"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    stmt = select(Confession).where(
        Confession.college == current_user.college,
        Confession.is_reported.is_(False),
    )
    if category != "all":
        if category not in CATEGORIES:
            raise ValidationError(f"Unknown category '{category}'", field="category")
        stmt = stmt.where(Confession.category == category)

    if sort == "popular":
        total_reactions = (
            Confession.heart_count + Confession.laugh_count + Confession.fire_count + Confession.sad_count
        )
        stmt = stmt.order_by(total_reactions.desc(), Confession.created_at.desc())
    else:
        stmt = stmt.order_by(Confession.created_at.desc())

    # Берём на одну запись больше, чтобы узнать, есть ли следующая страница
    stmt = stmt.offset((page - 1) * limit).limit(limit + 1)
    confessions = (await db.execute(stmt)).scalars().all()
    has_more = len(confessions) > limit
    confessions = list(confessions[:limit])

    return ConfessionListResponse(
        confessions=await to_confession_reads(db, confessions, current_user.id),
        page=page,
        has_more=has_more,
    )


@router.post(
    "",
    response_model=ConfessionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Опубликовать анонимное признание"
)
async def create_confession(
    payload: ConfessionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    content = payload.content.strip()
    if not content:
        raise ValidationError("Content is required", field="content")
    if len(content) > MAX_CONFESSION_LENGTH:
        raise ValidationError(
            f"Content too long (max {MAX_CONFESSION_LENGTH} characters)", field="content"
        )

    confession = Confession(
        content=content,
        category=payload.category,
        author_id=current_user.id,
        college=current_user.college,
        is_anonymous=True,
    )
    db.add(confession)
    await db.commit()
    logger.info(f"New confession {confession.id} in {confession.college}")
    return to_confession_read(confession, set())


@router.get(
    "/{confession_id}",
    response_model=ConfessionDetail,
    summary="Признание вместе с комментариями"
)
async def get_confession(
    confession_id: int = Path(..., description="ID признания"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    confession = await _get_visible_confession(db, confession_id, current_user.college)
    return await to_confession_detail(db, confession, current_user.id)


@router.post(
    "/{confession_id}/react",
    response_model=ReactionResponse,
    summary="Поставить или снять реакцию"
)
async def react_to_confession(
    payload: ReactionRequest,
    confession_id: int = Path(..., description="ID признания"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_id, college = current_user.id, current_user.college
    await _get_visible_confession(db, confession_id, college)

    result = await toggle_reaction(db, CONFESSION_LEDGER, confession_id, user_id, payload.type)
    return ReactionResponse(
        reaction_counts=ReactionCounts(**result.counts),
        user_reacted=result.active,
    )


@router.post(
    "/{confession_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Прокомментировать признание"
)
async def comment_confession(
    payload: CommentCreate,
    confession_id: int = Path(..., description="ID признания"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_id, user_name = current_user.id, current_user.name
    confession = await _get_visible_confession(db, confession_id, current_user.college)
    author_id = confession.author_id

    comment = await add_comment(db, confession_id, user_id, payload.content, payload.is_anonymous)
    response = to_comment_read(comment, user_name)

    if author_id != user_id:
        await notify_comment(db, author_id, confession_id)
    return response


@router.post(
    "/{confession_id}/comments/{comment_id}/replies",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Ответить на комментарий"
)
async def reply_to_comment(
    payload: CommentCreate,
    confession_id: int = Path(..., description="ID признания"),
    comment_id: int = Path(..., description="ID комментария"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_id, user_name = current_user.id, current_user.name
    await _get_visible_confession(db, confession_id, current_user.college)

    reply = await add_reply(db, confession_id, comment_id, user_id, payload.content, payload.is_anonymous)
    response = to_comment_read(reply, user_name)

    parent = await db.get(ConfessionComment, comment_id)
    if parent is not None and parent.author_id != user_id:
        await notify_reply(db, parent.author_id, confession_id)
    return response


@router.post(
    "/{confession_id}/report",
    response_model=ReportResponse,
    summary="Пожаловаться на признание"
)
async def report_confession(
    payload: ReportRequest,
    confession_id: int = Path(..., description="ID признания"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_id = current_user.id
    await _get_visible_confession(db, confession_id, current_user.college)

    async def _report() -> bool:
        confession = (await db.execute(
            select(Confession)
            .where(Confession.id == confession_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )).scalar_one()
        existing = (await db.execute(
            select(ConfessionReport.id).where(
                ConfessionReport.confession_id == confession_id,
                ConfessionReport.user_id == user_id,
            )
        )).scalar_one_or_none()
        if existing is None:
            db.add(ConfessionReport(confession_id=confession_id, user_id=user_id, reason=payload.reason))
        confession.is_reported = True
        await db.flush()
        return existing is None

    created = await run_serialized(db, _report, name="Report confession")
    if created:
        logger.info(f"Confession {confession_id} reported by {user_id}")
    return ReportResponse(reported=True)
