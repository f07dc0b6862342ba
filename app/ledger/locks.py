"""Per-shop serialization for balance-dependent writes."""
import asyncio
import uuid
import weakref
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

# Held locks stay referenced by their holders and waiters
_local_locks: "weakref.WeakValueDictionary[uuid.UUID, asyncio.Lock]" = weakref.WeakValueDictionary()


def advisory_key(shop_id: uuid.UUID) -> int:
    """Stable signed 64-bit key for pg_advisory_xact_lock."""
    return int.from_bytes(shop_id.bytes[:8], "big", signed=True)


def _local_lock(shop_id: uuid.UUID) -> asyncio.Lock:
    lock = _local_locks.get(shop_id)
    if lock is None:
        lock = asyncio.Lock()
        _local_locks[shop_id] = lock
    return lock


@asynccontextmanager
async def shop_lock(session: AsyncSession, shop_id: uuid.UUID):
    """Serialize a read-check-write sequence for one shop.

    Takes an in-process lock, then on PostgreSQL a transaction-scoped
    advisory lock so that other server instances queue as well. The
    advisory lock is released when the session's transaction ends, so the
    caller must commit inside the block. Any exception rolls back first.
    """
    async with _local_lock(shop_id):
        try:
            if session.get_bind().dialect.name == "postgresql":
                await session.execute(
                    text("SELECT pg_advisory_xact_lock(:k)"), {"k": advisory_key(shop_id)}
                )
            yield
        except BaseException:
            await session.rollback()
            raise
