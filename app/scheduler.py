"""Background task scheduler for ledger jobs."""
import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.config import get_settings
from app.database import async_session_maker
from app.jobs import CommissionDerivationJob

logger = logging.getLogger(__name__)
settings = get_settings()

scheduler = AsyncIOScheduler()


async def derive_commissions() -> dict:
    """Scheduled job: Derive commissions for newly paid invoices."""
    logger.info("Starting scheduled commission derivation")
    async with async_session_maker() as session:
        async with CommissionDerivationJob(session) as job:
            return await job.run()


def start_scheduler():
    """Start the background scheduler with all jobs."""
    if settings.derivation_enabled:
        scheduler.add_job(
            derive_commissions,
            trigger=IntervalTrigger(minutes=settings.derivation_interval_minutes),
            id="commission_derivation",
            name="Derive Commissions",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc),  # Run immediately on startup
        )

    scheduler.start()
    logger.info(
        "Scheduler started" + (" with jobs: commission_derivation" if settings.derivation_enabled else "")
    )


def stop_scheduler():
    """Stop the scheduler."""
    scheduler.shutdown()
    logger.info("Scheduler stopped")
