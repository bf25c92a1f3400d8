"""
Unit tests for rank evaluation.

Tests cover:
- Highest matching rank wins
- Both thresholds must be met
- Fallback to the lowest rank
"""

from decimal import Decimal

import pytest

from app.config.business_constants import DEFAULT_RANK, RANKS
from app.services.rewards.rank_engine import evaluate_rank


class TestEvaluateRank:
    """Test rank table lookup."""

    @pytest.mark.parametrize(
        "investment,team,expected",
        [
            (Decimal("20000"), 60, "SUPREME"),
            (Decimal("50000"), 100, "SUPREME"),
            (Decimal("5000"), 22, "ROYAL"),
            (Decimal("2000"), 11, "VETERAN"),
            (Decimal("500"), 5, "PRIME"),
            (Decimal("50"), 0, "ACTIVE"),
        ],
    )
    def test_thresholds(self, investment, team, expected):
        """Each rank is reached exactly at its thresholds."""
        assert evaluate_rank(investment, team).name == expected

    def test_investment_without_team(self):
        """Large investment without active team stays at ACTIVE."""
        assert evaluate_rank(Decimal("100000"), 0).name == "ACTIVE"

    def test_team_without_investment(self):
        """Large team with small investment is capped by investment."""
        assert evaluate_rank(Decimal("600"), 100).name == "PRIME"

    def test_just_below_threshold(self):
        """One short of ROYAL team size falls to VETERAN."""
        assert evaluate_rank(Decimal("5000"), 21).name == "VETERAN"

    def test_no_match_falls_back_to_lowest(self):
        """Users below every threshold get the lowest rank."""
        rank = evaluate_rank(Decimal("0"), 0)

        assert rank is DEFAULT_RANK
        assert rank.name == "ACTIVE"

    def test_rank_attributes(self):
        """Rank carries booster, view limit and level depth."""
        prime = evaluate_rank(Decimal("500"), 5)

        assert prime.trade_booster == Decimal("3.0")
        assert prime.daily_limit_view == 2
        assert prime.level_roi_income == 1

    def test_table_ordered_highest_first(self):
        """Rank table is ordered by descending investment threshold."""
        thresholds = [r.min_investment for r in RANKS]

        assert thresholds == sorted(thresholds, reverse=True)
