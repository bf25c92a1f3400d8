"""
Level commission rate table.

Parses LEVEL_ROI_RATES into a level -> percent mapping.
"""

from decimal import Decimal, InvalidOperation

from app.config.business_constants import MAX_COMMISSION_LEVELS
from app.config.settings import settings
from app.utils.exceptions import ConfigurationError


def parse_level_rates(raw: str) -> dict[int, Decimal]:
    """
    Parse comma-separated rate table.

    Args:
        raw: Rates in percent, level 1 first (e.g. "25,10,5")

    Returns:
        Mapping of level (1-based) to percent

    Raises:
        ConfigurationError: If the table is empty, malformed, negative
            or longer than MAX_COMMISSION_LEVELS
    """
    if raw is None or not raw.strip():
        raise ConfigurationError("Level ROI rate table is empty")

    parts = [p.strip() for p in raw.split(",")]
    if len(parts) > MAX_COMMISSION_LEVELS:
        raise ConfigurationError(
            f"Level ROI rate table has {len(parts)} levels, "
            f"max is {MAX_COMMISSION_LEVELS}"
        )

    rates: dict[int, Decimal] = {}
    for level, part in enumerate(parts, start=1):
        try:
            rate = Decimal(part)
        except InvalidOperation as e:
            raise ConfigurationError(
                f"Invalid rate {part!r} for level {level}"
            ) from e
        if not rate.is_finite() or rate < 0:
            raise ConfigurationError(
                f"Invalid rate {part!r} for level {level}"
            )
        rates[level] = rate

    return rates


def load_level_roi_rates(raw: str | None = None) -> dict[int, Decimal]:
    """Load the configured rate table (settings.level_roi_rates by default)."""
    return parse_level_rates(settings.level_roi_rates if raw is None else raw)
