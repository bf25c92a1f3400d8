#!/usr/bin/env python3
"""
Audit settled trade activations.

Every settled activation must carry profit_processed_at equal to
activation_date + 1 day at the recognition hour, whatever time the batch
actually ran. Read-only: prints offenders and exits non-zero if any.
"""

import argparse
import asyncio
import sys
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger
from sqlalchemy import select
from sqlalchemy.pool import NullPool

from app.config.database import create_engine, create_session_maker
from app.config.settings import settings
from app.models.enums import TERMINAL_PROFIT_STATUSES
from app.models.trade_activation import TradeActivation
from app.utils.datetime_utils import profit_recognition_time, utc_today

logger.remove()
logger.add(sys.stderr, level="INFO", format="{time:HH:mm:ss} | {level} | {message}")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


async def check_offsets(since: date) -> int:
    """
    Find settled activations with a wrong recognition timestamp.

    Args:
        since: First activation_date to inspect

    Returns:
        Number of offending records
    """
    engine = create_engine(echo=False, poolclass=NullPool)
    session_maker = create_session_maker(engine)
    hour = settings.profit_recognition_hour
    offenders = 0

    try:
        async with session_maker() as session:
            stmt = (
                select(TradeActivation)
                .where(
                    TradeActivation.activation_date >= since,
                    TradeActivation.profit_status.in_(
                        [s.value for s in TERMINAL_PROFIT_STATUSES]
                    ),
                )
                .order_by(TradeActivation.activation_date, TradeActivation.id)
            )
            result = await session.execute(stmt)
            activations = result.scalars().all()

            for activation in activations:
                expected = profit_recognition_time(activation.activation_date, hour)
                actual = activation.profit_processed_at
                if actual is None or _as_utc(actual) != expected:
                    offenders += 1
                    logger.warning(
                        f"Activation {activation.id} (user {activation.user_id}, "
                        f"{activation.activation_date}): "
                        f"profit_processed_at={actual}, expected {expected}"
                    )

            logger.info(f"Checked {len(activations)} settled activations since {since}")
    finally:
        await engine.dispose()

    return offenders


def main() -> None:
    parser = argparse.ArgumentParser(description="Audit profit recognition timestamps")
    parser.add_argument(
        "--days",
        type=int,
        default=30,
        help="How many days back to inspect (default: 30)",
    )
    args = parser.parse_args()

    offenders = asyncio.run(check_offsets(utc_today() - timedelta(days=args.days)))
    if offenders:
        logger.error(f"{offenders} activations have a wrong recognition timestamp")
        sys.exit(1)
    logger.success("All settled activations carry the expected timestamp")


if __name__ == "__main__":
    main()
