"""Base job class."""
import logging
from abc import ABC, abstractmethod

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import JobRun
from app.models.types import utcnow

logger = logging.getLogger(__name__)


class BaseJob(ABC):
    """Base class for background ledger jobs."""

    name: str = "base"

    def __init__(self, session: AsyncSession):
        self.db = session
        self.run_id = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.db.close()

    async def start_run(self) -> JobRun:
        """Record the start of a job run."""
        run = JobRun(
            job_name=self.name,
            started_at=utcnow(),
            status="running",
        )
        self.db.add(run)
        await self.db.commit()
        self.run_id = run.id
        logger.info(f"Started job run: {self.name} ({self.run_id})")
        return run

    async def complete_run(self, records: int, error: str | None = None):
        """Record the completion of a job run."""
        status = "failed" if error else "completed"
        await self.db.execute(
            update(JobRun)
            .where(JobRun.id == self.run_id)
            .values(
                completed_at=utcnow(),
                status=status,
                records_processed=records,
                error_message=error,
            )
        )
        await self.db.commit()
        logger.info(f"Completed job run: {self.name} - {status} ({records} records)")

    @abstractmethod
    async def run(self) -> dict:
        """Run the job. Returns a summary of the run."""
        pass
