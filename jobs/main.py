"""
Scheduler process entry point.

Starts the distribution scheduler and the HTTP server (manual triggers
and health checks), then waits for SIGINT/SIGTERM.

Usage:
    python -m jobs.main
"""

import asyncio
import signal

from loguru import logger

from app.config.database import async_engine, async_session_maker
from app.config.settings import settings
from app.services.runner import DistributionRunner
from jobs.log_config import setup_logging
from jobs.scheduler import DistributionScheduler
from jobs.trigger_api import create_app, start_server, stop_server


async def main() -> None:
    """Run until a shutdown signal arrives."""
    setup_logging()

    runner = DistributionRunner(async_session_maker)
    scheduler = DistributionScheduler(runner, settings.get_cron_schedules())
    scheduler.start()

    app = create_app(
        runner,
        api_key=settings.cron_api_key,
        error_limit=settings.manual_trigger_error_limit,
        scheduler=scheduler,
        session_maker=async_session_maker,
    )
    app_runner = await start_server(
        app, settings.trigger_server_host, settings.trigger_server_port
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutdown signal received")
        scheduler.shutdown()
        await stop_server(app_runner)
        await async_engine.dispose()
        logger.info("Distribution engine stopped")


if __name__ == "__main__":
    asyncio.run(main())
