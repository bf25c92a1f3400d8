"""
Manual trigger endpoint.

POST /cron/{job_name} runs a distribution pass on demand through the same
runner the scheduler uses. Requests must carry the shared CRON_API_KEY.
"""

import asyncio
import secrets
from datetime import date

from aiohttp import web
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.enums import TriggerSource
from app.services.runner import DistributionRunner
from jobs.health import add_health_routes
from jobs.scheduler import DistributionScheduler

RUNNER_KEY = web.AppKey("runner", DistributionRunner)
API_KEY_KEY = web.AppKey("cron_api_key", str)
ERROR_LIMIT_KEY = web.AppKey("error_limit", int)


def _key_matches(provided: object, expected: str) -> bool:
    if not expected or not isinstance(provided, str) or not provided:
        return False
    return secrets.compare_digest(provided.encode(), expected.encode())


async def trigger_handler(request: web.Request) -> web.Response:
    """
    Run a pass manually.

    Body: {"key": <shared secret>, "day": "YYYY-MM-DD" (optional)}

    Returns:
        JSON summary of the execution
    """
    try:
        body = await request.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    if not _key_matches(body.get("key"), request.app[API_KEY_KEY]):
        logger.warning(
            "Manual trigger rejected: invalid key",
            extra={"remote": request.remote, "path": request.path},
        )
        return web.json_response({"error": "unauthorized"}, status=401)

    runner = request.app[RUNNER_KEY]
    job_name = request.match_info["job_name"]
    if not runner.has_job(job_name):
        return web.json_response(
            {"error": f"unknown job: {job_name}", "jobs": runner.job_names},
            status=404,
        )

    day = None
    if body.get("day"):
        try:
            day = date.fromisoformat(str(body["day"]))
        except ValueError:
            return web.json_response(
                {"error": "day must be YYYY-MM-DD"}, status=400
            )

    logger.info(
        f"Manual trigger: {job_name}",
        extra={"day": day.isoformat() if day else None, "remote": request.remote},
    )
    summary = await runner.run(job_name, TriggerSource.MANUAL, day)
    return web.json_response(summary.to_response(request.app[ERROR_LIMIT_KEY]))


def create_app(
    runner: DistributionRunner,
    api_key: str,
    error_limit: int = 10,
    scheduler: DistributionScheduler | None = None,
    session_maker: async_sessionmaker[AsyncSession] | None = None,
) -> web.Application:
    """
    Build the HTTP application (trigger and health endpoints).

    Args:
        runner: Pass runner
        api_key: Shared secret for manual triggers
        error_limit: Errors echoed back per response
        scheduler: Scheduler reported by health endpoints
        session_maker: Session factory for the readiness probe

    Returns:
        aiohttp Application
    """
    app = web.Application()
    app[RUNNER_KEY] = runner
    app[API_KEY_KEY] = api_key
    app[ERROR_LIMIT_KEY] = error_limit
    app.router.add_post("/cron/{job_name}", trigger_handler)
    add_health_routes(app, scheduler, session_maker)
    return app


async def start_server(
    app: web.Application,
    host: str = "0.0.0.0",
    port: int = 8082,
) -> web.AppRunner:
    """
    Start the HTTP server.

    Returns:
        AppRunner for cleanup
    """
    app_runner = web.AppRunner(app)
    await app_runner.setup()
    site = web.TCPSite(app_runner, host, port)
    await site.start()

    logger.info(f"HTTP server started on {host}:{port}")
    logger.info(f"  - Trigger: POST http://{host}:{port}/cron/{{job_name}}")
    logger.info(f"  - Health: http://{host}:{port}/health")
    return app_runner


async def stop_server(app_runner: web.AppRunner, timeout: int = 5) -> None:
    """
    Stop the HTTP server gracefully.

    Args:
        app_runner: AppRunner to cleanup
        timeout: Maximum time to wait for cleanup in seconds
    """
    logger.info("Stopping HTTP server...")
    try:
        await asyncio.wait_for(app_runner.cleanup(), timeout=timeout)
        logger.info("HTTP server stopped successfully")
    except TimeoutError:
        logger.warning(f"HTTP server cleanup timed out after {timeout}s")
