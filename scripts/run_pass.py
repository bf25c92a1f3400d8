#!/usr/bin/env python3
"""
Run a distribution pass from the command line.

Examples:
    python scripts/run_pass.py daily_roi
    python scripts/run_pass.py daily_roi --day 2026-10-01
    python scripts/run_pass.py level_commission --enqueue
    python scripts/run_pass.py daily_roi --retry-failed
"""

import argparse
import asyncio
import json
import sys
from datetime import date
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger
from sqlalchemy.pool import NullPool

from app.config.database import create_engine, create_session_maker
from app.config.settings import settings
from app.models.enums import TriggerSource
from app.services.runner import DistributionRunner

# Configure logger
logger.remove()
logger.add(sys.stderr, level="INFO", format="{time:HH:mm:ss} | {level} | {message}")


async def run_pass(job_name: str, day: date | None, retry_failed: bool) -> dict:
    """Run a pass in-process and return its summary."""
    engine = create_engine(echo=False, poolclass=NullPool)
    try:
        runner = DistributionRunner(create_session_maker(engine))
        if retry_failed:
            summary = await runner.retry_failed_activations(day)
        else:
            summary = await runner.run(job_name, TriggerSource.MANUAL, day)
    finally:
        await engine.dispose()
    return summary.to_response(settings.manual_trigger_error_limit)


def enqueue_pass(job_name: str, day: date | None, retry_failed: bool) -> None:
    """Send the pass to the dramatiq workers."""
    import jobs.broker  # noqa: F401
    from jobs.tasks.distribution import retry_failed_activations, run_distribution_pass

    day_value = day.isoformat() if day else None
    if retry_failed:
        message = retry_failed_activations.send(day_value)
    else:
        message = run_distribution_pass.send(
            job_name, day_value, TriggerSource.MANUAL.value
        )
    logger.info(f"Enqueued {message.actor_name} (message {message.message_id})")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a distribution pass")
    parser.add_argument("job_name", help="Pass name, e.g. daily_roi")
    parser.add_argument("--day", help="Business day as YYYY-MM-DD")
    parser.add_argument(
        "--enqueue",
        action="store_true",
        help="Send to the worker queue instead of running in-process",
    )
    parser.add_argument(
        "--retry-failed",
        action="store_true",
        help="Re-settle failed activations (daily_roi only)",
    )
    args = parser.parse_args()

    if args.retry_failed and args.job_name != "daily_roi":
        parser.error("--retry-failed only applies to daily_roi")

    try:
        day = date.fromisoformat(args.day) if args.day else None
    except ValueError:
        parser.error("--day must be YYYY-MM-DD")

    if args.enqueue:
        enqueue_pass(args.job_name, day, args.retry_failed)
        return

    try:
        result = asyncio.run(run_pass(args.job_name, day, args.retry_failed))
    except ValueError as e:
        logger.error(str(e))
        sys.exit(2)

    print(json.dumps(result, indent=2))
    if result["status"] == "failed":
        sys.exit(1)


if __name__ == "__main__":
    main()
