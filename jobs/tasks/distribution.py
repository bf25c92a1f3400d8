"""
Distribution pass tasks.

Queue path for passes: backup runs when the in-process scheduler missed
a trigger, and recovery runs that settle failed activations.
"""

from datetime import date

import dramatiq
from loguru import logger

from app.models.enums import TriggerSource
from app.services.runner import DistributionRunner
from jobs.async_runner import local_session_maker, run_async


async def _run_pass(job_name: str, triggered_by: TriggerSource, day: date | None) -> dict:
    async with local_session_maker() as session_maker:
        runner = DistributionRunner(session_maker)
        summary = await runner.run(job_name, triggered_by, day)
    return summary.to_response(error_limit=10)


@dramatiq.actor(max_retries=3, time_limit=3_900_000)  # run deadline + 5 min
def run_distribution_pass(
    job_name: str,
    day: str | None = None,
    triggered_by: str = TriggerSource.BACKUP.value,
) -> dict:
    """
    Run a distribution pass from the queue.

    Args:
        job_name: Registered pass name
        day: Business day as YYYY-MM-DD (pass default if None)
        triggered_by: Trigger source value

    Returns:
        Run summary dict
    """
    logger.info(f"Queued pass starting: {job_name}", extra={"day": day})
    business_day = date.fromisoformat(day) if day else None
    result = run_async(_run_pass(job_name, TriggerSource(triggered_by), business_day))
    logger.info(
        f"Queued pass finished: {job_name} -> {result['status']}",
        extra={"execution_id": result["executionId"]},
    )
    return result


@dramatiq.actor(max_retries=3, time_limit=3_900_000)
def retry_failed_activations(day: str | None = None) -> dict:
    """
    Re-run the daily ROI pass so failed activations settle.

    Args:
        day: Settlement day as YYYY-MM-DD (previous day if None)

    Returns:
        Run summary dict
    """
    business_day = date.fromisoformat(day) if day else None
    return run_async(_run_pass("daily_roi", TriggerSource.RECOVERY, business_day))
