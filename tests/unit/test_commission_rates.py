"""
Unit tests for the level commission rate table.

Tests cover:
- Canonical table parsing
- Malformed, negative and oversized tables
"""

from decimal import Decimal

import pytest

from app.config.commission_rates import load_level_roi_rates, parse_level_rates
from app.utils.exceptions import ConfigurationError


class TestParseLevelRates:
    """Test LEVEL_ROI_RATES parsing."""

    def test_canonical_table(self):
        """Canonical table maps levels 1..10 to 25..1 percent."""
        rates = parse_level_rates("25,10,5,4,3,2,1,1,1,1")

        assert len(rates) == 10
        assert rates[1] == Decimal("25")
        assert rates[2] == Decimal("10")
        assert rates[7] == Decimal("1")
        assert rates[10] == Decimal("1")
        assert sum(rates.values()) == Decimal("53")

    def test_whitespace_is_ignored(self):
        """Spaces around values are accepted."""
        rates = parse_level_rates(" 25 , 10 ,5")

        assert rates == {1: Decimal("25"), 2: Decimal("10"), 3: Decimal("5")}

    def test_fractional_rates(self):
        """Fractional percentages are kept exactly."""
        rates = parse_level_rates("12.5,0.25")

        assert rates[1] == Decimal("12.5")
        assert rates[2] == Decimal("0.25")

    @pytest.mark.parametrize("raw", ["", "   "])
    def test_empty_table_rejected(self, raw):
        """Empty table is a configuration error."""
        with pytest.raises(ConfigurationError):
            parse_level_rates(raw)

    def test_too_many_levels_rejected(self):
        """More than ten levels is a configuration error."""
        with pytest.raises(ConfigurationError, match="max is 10"):
            parse_level_rates(",".join(["1"] * 11))

    @pytest.mark.parametrize("raw", ["25,abc", "25,,5", "25,NaN"])
    def test_malformed_rate_rejected(self, raw):
        """Non-numeric entries are configuration errors."""
        with pytest.raises(ConfigurationError):
            parse_level_rates(raw)

    def test_negative_rate_rejected(self):
        """Negative percentages are configuration errors."""
        with pytest.raises(ConfigurationError, match="level 2"):
            parse_level_rates("25,-1")

    def test_load_uses_explicit_override(self):
        """load_level_roi_rates parses the given table instead of settings."""
        assert load_level_roi_rates("7") == {1: Decimal("7")}

    def test_load_defaults_to_settings(self):
        """Without override the configured table is loaded."""
        rates = load_level_roi_rates()

        assert rates[1] == Decimal("25")
