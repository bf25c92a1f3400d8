"""
Unit tests for exception categories.
"""

from sqlalchemy.exc import IntegrityError, OperationalError

from app.utils.exceptions import (
    ConfigurationError,
    DataIntegrityError,
    DistributionError,
    ReferralCycleError,
    is_per_entity,
    must_abort,
)


class TestExceptionHierarchy:
    """Test hierarchy and categorization."""

    def test_cycle_is_configuration_error(self):
        """A referral cycle aborts like any configuration error."""
        error = ReferralCycleError(3, [1, 2, 3, 1])

        assert isinstance(error, ConfigurationError)
        assert isinstance(error, DistributionError)
        assert error.user_id == 3
        assert error.chain == [1, 2, 3, 1]
        assert "1 -> 2 -> 3 -> 1" in str(error)

    def test_must_abort(self):
        """Only configuration errors abort a run."""
        assert must_abort(ConfigurationError("no rates"))
        assert must_abort(ReferralCycleError(1, [1, 1]))
        assert not must_abort(DataIntegrityError("missing user"))
        assert not must_abort(ValueError("other"))

    def test_per_entity(self):
        """Database and integrity errors are isolated to one entity."""
        assert is_per_entity(DataIntegrityError("missing user"))
        assert is_per_entity(OperationalError("stmt", {}, Exception("locked")))
        assert is_per_entity(IntegrityError("stmt", {}, Exception("check")))
        assert not is_per_entity(ConfigurationError("no rates"))
