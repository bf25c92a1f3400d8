"""
Unit tests for application settings.
"""

import pytest
from pydantic import ValidationError

from app.config.settings import Settings


class TestSettings:
    """Test settings validation."""

    def test_defaults(self):
        """Defaults match the documented schedule and rates."""
        s = Settings(database_url="sqlite+aiosqlite:///:memory:", environment="test")

        assert s.level_roi_rates == "25,10,5,4,3,2,1,1,1,1"
        assert s.profit_recognition_hour == 1
        assert s.capping_multiplier is None
        assert s.matrix_income_percent == 10.0

    def test_cron_schedules(self):
        """Every pass has a schedule."""
        s = Settings(database_url="sqlite+aiosqlite:///:memory:", environment="test")
        schedules = s.get_cron_schedules()

        assert schedules["daily_roi"] == "0 1 * * *"
        assert schedules["provision"] == "15 1 * * *"
        assert schedules["level_commission"] == "30 1 * * *"
        assert schedules["active_member_rewards"] == "0 0 * * 0"
        assert set(schedules) == {
            "daily_roi",
            "provision",
            "level_commission",
            "team_rewards",
            "rank_update",
            "activation_reset",
            "active_member_rewards",
        }

    def test_empty_rate_table_rejected(self):
        """Empty LEVEL_ROI_RATES fails at startup."""
        with pytest.raises(ValidationError):
            Settings(
                database_url="sqlite+aiosqlite:///:memory:",
                environment="test",
                level_roi_rates="  ",
            )

    def test_debug_rejected_in_production(self):
        """DEBUG is not allowed in production."""
        with pytest.raises(ValidationError, match="DEBUG"):
            Settings(
                database_url="sqlite+aiosqlite:///:memory:",
                environment="production",
                debug=True,
                cron_api_key="x" * 32,
            )

    def test_recognition_hour_bounds(self):
        """Recognition hour must be a valid UTC hour."""
        with pytest.raises(ValidationError):
            Settings(
                database_url="sqlite+aiosqlite:///:memory:",
                environment="test",
                profit_recognition_hour=24,
            )
