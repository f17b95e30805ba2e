"""Комментарии к признаниям: двухуровневое дерево (комментарий → ответы)."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import NotFoundError, ValidationError
from models.confession import Confession, ConfessionComment
from models.user import User
from services.transactions import run_serialized

MAX_COMMENT_LENGTH = 500


def validate_comment_content(content: str | None) -> str:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Comment content is required", field="content")
    if len(content) > MAX_COMMENT_LENGTH:
        raise ValidationError(
            f"Comment too long (max {MAX_COMMENT_LENGTH} characters)", field="content"
        )
    return content


async def _lock_confession(db: AsyncSession, confession_id: int) -> Confession:
    result = await db.execute(
        select(Confession)
        .where(Confession.id == confession_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    confession = result.scalar_one_or_none()
    if confession is None:
        raise NotFoundError("Confession", confession_id)
    return confession


async def _ensure_author(db: AsyncSession, author_id: int) -> None:
    if await db.get(User, author_id) is None:
        raise NotFoundError("User", author_id)


async def add_comment(
    db: AsyncSession,
    confession_id: int,
    author_id: int,
    content: str,
    is_anonymous: bool = True,
) -> ConfessionComment:
    """Добавляет комментарий верхнего уровня и увеличивает comment_count на 1."""
    content = validate_comment_content(content)

    async def _add() -> ConfessionComment:
        confession = await _lock_confession(db, confession_id)
        await _ensure_author(db, author_id)
        comment = ConfessionComment(
            confession_id=confession_id,
            author_id=author_id,
            content=content,
            is_anonymous=is_anonymous,
        )
        db.add(comment)
        confession.comment_count = (confession.comment_count or 0) + 1
        await db.flush()
        return comment

    return await run_serialized(db, _add, name="Add comment")


async def add_reply(
    db: AsyncSession,
    confession_id: int,
    comment_id: int,
    author_id: int,
    content: str,
    is_anonymous: bool = True,
) -> ConfessionComment:
    """
    Добавляет ответ к комментарию верхнего уровня.
    Ответы не учитываются в comment_count и не могут иметь своих ответов.
    """
    content = validate_comment_content(content)

    async def _add() -> ConfessionComment:
        await _lock_confession(db, confession_id)
        await _ensure_author(db, author_id)
        parent = await db.get(ConfessionComment, comment_id)
        if parent is None or parent.confession_id != confession_id:
            raise NotFoundError("Comment", comment_id)
        if parent.parent_id is not None:
            raise ValidationError("Replies can only be added to top-level comments", field="commentId")
        reply = ConfessionComment(
            confession_id=confession_id,
            parent_id=parent.id,
            author_id=author_id,
            content=content,
            is_anonymous=is_anonymous,
        )
        db.add(reply)
        await db.flush()
        return reply

    return await run_serialized(db, _add, name="Add reply")
