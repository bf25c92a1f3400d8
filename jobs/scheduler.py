"""
Distribution scheduler.

Explicit scheduler object owning the cron triggers of every pass. Nothing
is registered at import time; the process entry point constructs it with
a runner and starts it.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from app.models.enums import TriggerSource
from app.services.runner import DistributionRunner


class DistributionScheduler:
    """Fires distribution passes on their cron schedules (UTC)."""

    def __init__(
        self,
        runner: DistributionRunner,
        schedules: dict[str, str],
        scheduler: AsyncIOScheduler | None = None,
    ) -> None:
        """
        Initialize scheduler.

        Args:
            runner: Pass runner invoked by every trigger
            schedules: Job name -> cron expression
            scheduler: APScheduler instance (created in UTC if None)

        Raises:
            ValueError: If a schedule names an unknown pass or is malformed
        """
        self.runner = runner
        self.scheduler = scheduler or AsyncIOScheduler(timezone="UTC")

        for job_name, expression in schedules.items():
            if not runner.has_job(job_name):
                raise ValueError(f"Schedule for unknown pass: {job_name}")
            trigger = CronTrigger.from_crontab(expression, timezone="UTC")
            self.scheduler.add_job(
                self.fire,
                trigger=trigger,
                args=[job_name],
                id=job_name,
                name=job_name,
                max_instances=1,
                coalesce=True,
                misfire_grace_time=3600,
                replace_existing=True,
            )
            logger.info(f"Scheduled pass {job_name}: {expression} UTC")

    async def fire(self, job_name: str) -> None:
        """
        Run a pass for a scheduler trigger.

        Failures are already recorded on the CronExecution; the exception
        is logged and not propagated into APScheduler.
        """
        try:
            summary = await self.runner.run(job_name, TriggerSource.AUTOMATIC)
        except Exception:
            logger.exception(f"Scheduled pass {job_name} crashed")
            return
        logger.info(
            f"Scheduled pass {job_name} finished: {summary.status.value}",
            extra={
                "execution_id": summary.execution_id,
                "processed_count": summary.processed_count,
                "error_count": summary.error_count,
            },
        )

    def start(self) -> None:
        """Start firing triggers."""
        self.scheduler.start()
        logger.info(f"Distribution scheduler started with {len(self.scheduler.get_jobs())} jobs")

    def shutdown(self, wait: bool = False) -> None:
        """Stop the scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
            logger.info("Distribution scheduler stopped")
