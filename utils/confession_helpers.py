"""Сборка ответов о признаниях. Автор признания сюда не передаётся никогда."""
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.confession import Confession, ConfessionComment, ConfessionReaction, REACTION_KINDS
from models.user import User
from schemas.confession import (
    CommentRead,
    ConfessionDetail,
    ConfessionRead,
    ReactionCounts,
    UserReactions,
)


def time_ago(moment: datetime, now: datetime | None = None) -> str:
    """Короткая относительная метка: now, 5m, 3h, 2d, 1w."""
    now = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        # SQLite отдаёт наивные даты, храним всегда UTC
        moment = moment.replace(tzinfo=timezone.utc)
    seconds = int((now - moment).total_seconds())
    if seconds < 60:
        return "now"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    if seconds < 604800:
        return f"{seconds // 86400}d"
    return f"{seconds // 604800}w"


async def load_user_reactions(
    db: AsyncSession, user_id: int, confession_ids: Iterable[int]
) -> dict[int, set[str]]:
    confession_ids = list(confession_ids)
    if not confession_ids:
        return {}
    result = await db.execute(
        select(ConfessionReaction.confession_id, ConfessionReaction.kind).where(
            ConfessionReaction.user_id == user_id,
            ConfessionReaction.confession_id.in_(confession_ids),
        )
    )
    reacted: dict[int, set[str]] = defaultdict(set)
    for confession_id, kind in result.all():
        reacted[confession_id].add(kind)
    return reacted


def to_confession_read(confession: Confession, reacted: set[str]) -> ConfessionRead:
    return ConfessionRead(
        id=confession.id,
        content=confession.content,
        category=confession.category,
        reactions=ReactionCounts(**confession.reaction_counts),
        comments=confession.comment_count,
        time_ago=time_ago(confession.created_at),
        is_anonymous=True,
        user_reactions=UserReactions(**{kind: kind in reacted for kind in REACTION_KINDS}),
        created_at=confession.created_at,
    )


async def to_confession_reads(
    db: AsyncSession, confessions: List[Confession], viewer_id: int
) -> List[ConfessionRead]:
    reacted = await load_user_reactions(db, viewer_id, [c.id for c in confessions])
    return [to_confession_read(c, reacted.get(c.id, set())) for c in confessions]


def to_comment_read(comment: ConfessionComment, author_name: str | None) -> CommentRead:
    return CommentRead(
        id=comment.id,
        content=comment.content,
        is_anonymous=comment.is_anonymous,
        author_name=None if comment.is_anonymous else author_name,
        time_ago=time_ago(comment.created_at),
        created_at=comment.created_at,
        replies=[],
    )


async def build_comment_tree(db: AsyncSession, confession_id: int) -> List[CommentRead]:
    """Комментарии в порядке добавления, ответы вложены в родителя."""
    result = await db.execute(
        select(ConfessionComment, User.name)
        .join(User, User.id == ConfessionComment.author_id)
        .where(ConfessionComment.confession_id == confession_id)
        .order_by(ConfessionComment.created_at.asc())
    )
    top_level: List[CommentRead] = []
    by_id: dict[int, CommentRead] = {}
    replies: list[tuple[int, CommentRead]] = []
    for comment, author_name in result.all():
        read = to_comment_read(comment, author_name)
        if comment.parent_id is None:
            top_level.append(read)
            by_id[comment.id] = read
        else:
            replies.append((comment.parent_id, read))
    for parent_id, read in replies:
        parent = by_id.get(parent_id)
        if parent is not None:
            parent.replies.append(read)
    return top_level


async def to_confession_detail(
    db: AsyncSession, confession: Confession, viewer_id: int
) -> ConfessionDetail:
    reacted = await load_user_reactions(db, viewer_id, [confession.id])
    base = to_confession_read(confession, reacted.get(confession.id, set()))
    comments = await build_comment_tree(db, confession.id)
    return ConfessionDetail(**base.model_dump(), comment_list=comments)
