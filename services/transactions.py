"""Выполнение операции одной транзакцией с повтором при конфликте записи.

Операция целиком (чтение, изменение, коммит) повторяется, если
параллельная транзакция нарушила уникальный ключ или обновила строку с
тем же version_id. Любая другая ошибка откатывает транзакцию и
пробрасывается вызывающему.
"""
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from core.config import settings
from core.errors import ConcurrencyConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONFLICT_ERRORS = (IntegrityError, StaleDataError)


async def run_serialized(
    db: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    *,
    name: str,
    attempts: int | None = None,
) -> T:
    attempts = attempts or settings.CONFLICT_RETRIES
    for attempt in range(1, attempts + 1):
        try:
            result = await operation()
            await db.commit()
            return result
        except CONFLICT_ERRORS as exc:
            await db.rollback()
            logger.warning(
                "%s: write conflict on attempt %d/%d (%s)",
                name, attempt, attempts, exc.__class__.__name__,
            )
        except Exception:
            await db.rollback()
            raise
    raise ConcurrencyConflictError(name, attempts)
