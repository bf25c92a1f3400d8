"""
Health check endpoints for scheduler monitoring.

Reports the distribution scheduler's state and database reachability.
"""

from aiohttp import web
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jobs.scheduler import DistributionScheduler

SCHEDULER_KEY = web.AppKey("scheduler", DistributionScheduler)
SESSION_MAKER_KEY = web.AppKey("session_maker", async_sessionmaker)


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with scheduler status and scheduled passes
    """
    scheduler = request.app.get(SCHEDULER_KEY)
    if scheduler is None:
        return web.json_response(
            {"status": "unhealthy", "error": "Scheduler not initialized"},
            status=503,
        )

    is_running = scheduler.scheduler.running
    jobs = scheduler.scheduler.get_jobs()
    job_info = [
        {
            "id": job.id,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
        }
        for job in jobs
    ]
    return web.json_response(
        {
            "status": "healthy" if is_running else "stopped",
            "scheduler_running": is_running,
            "jobs_count": len(jobs),
            "jobs": job_info,
        },
        status=200 if is_running else 503,
    )


async def readiness_handler(request: web.Request) -> web.Response:
    """
    Readiness check endpoint.

    Ready when the scheduler runs and the database answers.
    """
    scheduler = request.app.get(SCHEDULER_KEY)
    if scheduler is None or not scheduler.scheduler.running:
        return web.json_response({"status": "not_ready", "ready": False}, status=503)

    session_maker: async_sessionmaker[AsyncSession] | None = request.app.get(SESSION_MAKER_KEY)
    if session_maker is not None:
        try:
            async with session_maker() as session:
                await session.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Readiness check: database unreachable: {e}")
            return web.json_response(
                {"status": "not_ready", "ready": False, "error": "database"},
                status=503,
            )

    return web.json_response({"status": "ready", "ready": True})


async def liveness_handler(request: web.Request) -> web.Response:
    """Liveness check endpoint."""
    return web.json_response({"status": "alive", "alive": True})


def add_health_routes(
    app: web.Application,
    scheduler: DistributionScheduler | None,
    session_maker: async_sessionmaker[AsyncSession] | None = None,
) -> None:
    """
    Register health endpoints on app.

    Args:
        app: aiohttp application
        scheduler: Scheduler to report on
        session_maker: Session factory used by the readiness probe
    """
    if scheduler is not None:
        app[SCHEDULER_KEY] = scheduler
    if session_maker is not None:
        app[SESSION_MAKER_KEY] = session_maker
    app.router.add_get("/health", health_handler)
    app.router.add_get("/readiness", readiness_handler)
    app.router.add_get("/liveness", liveness_handler)
