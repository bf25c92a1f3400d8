"""
Unit tests for money calculations.

Tests cover:
- Daily profit from plan rate
- Level commission per rate
- Rounding down to ledger precision
- Idempotency key format
"""

from datetime import date
from decimal import Decimal

import pytest

from app.models.income import build_idempotency_key
from app.services.distribution.daily_roi import (
    DailyRoiProcessor,
    investment_reference,
)
from app.services.distribution.income_ledger import quantize_money
from app.services.distribution.level_commission import LevelCommissionCascader


class TestDailyProfit:
    """Test daily profit calculation."""

    def test_example_investment(self):
        """$1,000 at 0.8%/day yields $8.00."""
        profit = DailyRoiProcessor.calculate_daily_profit(
            Decimal("1000"), Decimal("0.8")
        )

        assert profit == Decimal("8.00")

    def test_rounds_down_to_eight_places(self):
        """Yield is truncated, never rounded up."""
        profit = DailyRoiProcessor.calculate_daily_profit(
            Decimal("0.00000333"), Decimal("50")
        )

        assert profit == Decimal("0.00000166")

    @pytest.mark.parametrize(
        "amount,rate",
        [
            (Decimal("0"), Decimal("0.8")),
            (Decimal("1000"), Decimal("0")),
            (Decimal("-5"), Decimal("1")),
        ],
    )
    def test_non_positive_inputs_yield_zero(self, amount, rate):
        """Zero or negative principal/rate yields nothing."""
        assert DailyRoiProcessor.calculate_daily_profit(amount, rate) == Decimal("0")

    def test_accepts_float_rates(self):
        """Float rates from the database are converted exactly via str."""
        profit = DailyRoiProcessor.calculate_daily_profit(Decimal("250"), 1.2)

        assert profit == Decimal("3.0")


class TestLevelCommission:
    """Test level commission calculation."""

    def test_level_one_of_example(self):
        """25% of $8.00 is $2.00."""
        commission = LevelCommissionCascader.calculate_commission(
            Decimal("8.00"), Decimal("25")
        )

        assert commission == Decimal("2.00")

    def test_full_table_on_hundred(self):
        """Rates apply as plain percentages of the base amount."""
        base = Decimal("100")
        rates = [25, 10, 5, 4, 3, 2, 1, 1, 1, 1]

        commissions = [
            LevelCommissionCascader.calculate_commission(base, Decimal(r))
            for r in rates
        ]

        assert commissions == [Decimal(r) for r in rates]
        assert sum(commissions) == Decimal("53")

    def test_zero_rate_yields_zero(self):
        """Zero rate credits nothing."""
        assert LevelCommissionCascader.calculate_commission(
            Decimal("8"), Decimal("0")
        ) == Decimal("0")

    def test_tiny_commission_truncated(self):
        """Sub-precision commissions truncate to zero."""
        assert LevelCommissionCascader.calculate_commission(
            Decimal("0.00000003"), Decimal("1")
        ) == Decimal("0")


class TestQuantizeMoney:
    """Test ledger rounding."""

    def test_round_down(self):
        """Extra digits are dropped."""
        assert quantize_money(Decimal("1.123456789")) == Decimal("1.12345678")

    def test_exact_value_unchanged(self):
        """Values at precision are unchanged."""
        assert quantize_money(Decimal("2.5")) == Decimal("2.50000000")


class TestIdempotencyKey:
    """Test ledger key format."""

    def test_user_sourced_key(self):
        """Level commission key carries type, source, level and reference."""
        key = build_idempotency_key(
            "level_roi_income", 42, 3, investment_reference(7, date(2026, 3, 10))
        )

        assert key == "level_roi_income:42:3:investment:7:2026-03-10"

    def test_system_key(self):
        """Credits without a source user use 'system'."""
        key = build_idempotency_key("team_reward", None, 0, "team_reward:5")

        assert key == "team_reward:system:0:team_reward:5"

    def test_levels_produce_distinct_keys(self):
        """Same reference at different levels never collides."""
        keys = {
            build_idempotency_key("level_roi_income", 1, level, "investment:1:2026-03-10")
            for level in range(1, 11)
        }

        assert len(keys) == 10
