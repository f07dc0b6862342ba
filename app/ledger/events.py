"""Idempotency gate for inbound provider events."""
import logging
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import WebhookEvent
from app.models.types import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordedEvent:
    is_new: bool
    event_record_id: uuid.UUID


async def record_event(
    session: AsyncSession,
    provider: str,
    event_id: str,
    event_type: str,
    payload: dict[str, Any],
) -> RecordedEvent:
    """Record an event once per external ``event_id``.

    The row is committed immediately so it survives a failure of the
    downstream handling. Of concurrent deliveries of the same id only one
    sees ``is_new=True``; the unique constraint on event_id decides.
    """
    existing = await session.execute(
        select(WebhookEvent.id).where(WebhookEvent.event_id == event_id)
    )
    existing_id = existing.scalar_one_or_none()
    if existing_id is not None:
        logger.info(f"Event {event_id} already recorded ({existing_id}), skipping")
        return RecordedEvent(is_new=False, event_record_id=existing_id)

    event = WebhookEvent(
        provider=provider,
        event_id=event_id,
        type=event_type,
        payload=payload,
    )
    session.add(event)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        result = await session.execute(
            select(WebhookEvent.id).where(WebhookEvent.event_id == event_id)
        )
        winner_id = result.scalar_one()
        logger.info(f"Event {event_id} recorded concurrently ({winner_id}), skipping")
        return RecordedEvent(is_new=False, event_record_id=winner_id)

    logger.info(f"Recorded event {event_id} from {provider} ({event_type})")
    return RecordedEvent(is_new=True, event_record_id=event.id)


async def mark_processed(session: AsyncSession, event_record_id: uuid.UUID) -> None:
    """Stamp processed_at. Committed by the caller with the domain changes."""
    await session.execute(
        update(WebhookEvent)
        .where(WebhookEvent.id == event_record_id)
        .values(processed_at=utcnow())
    )
