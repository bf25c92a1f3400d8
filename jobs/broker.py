"""
Redis broker for the backup and recovery pass actors.

Import this module before jobs.tasks so the actors bind to it.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import Retries, ShutdownNotifications, TimeLimit
from loguru import logger

from app.config.settings import Settings, settings

# A failed pass is retried after 5 seconds, then up to 5 minutes apart
PASS_MIN_BACKOFF_MS = 5_000
PASS_MAX_BACKOFF_MS = 300_000


def build_broker(config: Settings) -> RedisBroker:
    """Create the pass broker with only the middleware the actors use."""
    return RedisBroker(
        host=config.redis_host,
        port=config.redis_port,
        password=config.redis_password or None,
        db=config.redis_db,
        middleware=[
            TimeLimit(),
            ShutdownNotifications(),
            Retries(min_backoff=PASS_MIN_BACKOFF_MS, max_backoff=PASS_MAX_BACKOFF_MS),
        ],
    )


broker = build_broker(settings)
dramatiq.set_broker(broker)

logger.info(
    "Pass broker ready",
    extra={"redis_host": settings.redis_host, "redis_db": settings.redis_db},
)
