"""Pilot data reset."""
import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models import AffiliateUser, Commission, Invoice, WebhookEvent

logger = logging.getLogger(__name__)
settings = get_settings()


async def purge_pilot_data(session: AsyncSession) -> dict[str, int]:
    """Delete pilot commissions, invoices, affiliates and webhook events.

    Shops, wallet providers and withdrawals are kept. Returns deleted row
    counts per table.
    """
    logger.info("Purging pilot data")
    pilot = settings.pilot_event_type

    counts = {}
    try:
        counts["commissions"] = (
            await session.execute(delete(Commission).where(Commission.event_type == pilot))
        ).rowcount
        counts["invoices"] = (
            await session.execute(delete(Invoice).where(Invoice.event_type == pilot))
        ).rowcount
        counts["affiliate_users"] = (await session.execute(delete(AffiliateUser))).rowcount
        counts["webhook_events"] = (await session.execute(delete(WebhookEvent))).rowcount
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(f"Pilot data purged: {counts}")
    return counts
