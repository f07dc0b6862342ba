"""Insert-if-absent keyed by a natural identifier."""
import logging
from typing import Any, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


async def find_one(session: AsyncSession, model: type[ModelT], **lookup: Any) -> Optional[ModelT]:
    """Fetch the row matching every ``column=value`` pair, if any."""
    result = await session.execute(select(model).filter_by(**lookup).limit(1))
    return result.scalar_one_or_none()


async def get_or_create(
    session: AsyncSession,
    model: type[ModelT],
    lookup: dict[str, Any],
    defaults: Optional[dict[str, Any]] = None,
) -> tuple[ModelT, bool]:
    """Return ``(row, created)`` for the row identified by ``lookup``.

    ``lookup`` must be covered by a unique constraint. The insert runs in a
    SAVEPOINT; when a concurrent writer wins the constraint, the savepoint
    is rolled back and the winner's row is returned instead.
    """
    existing = await find_one(session, model, **lookup)
    if existing is not None:
        return existing, False

    instance = model(**lookup, **(defaults or {}))
    try:
        async with session.begin_nested():
            session.add(instance)
    except IntegrityError:
        logger.info(f"Concurrent insert on {model.__name__} {lookup}, using existing row")
        existing = await find_one(session, model, **lookup)
        if existing is None:
            raise
        return existing, False

    return instance, True
