"""
Unit tests for the manual trigger response body.
"""

from datetime import date
from decimal import Decimal

from app.models.enums import ExecutionStatus
from app.services.runner import (
    CURRENT_DAY_JOBS,
    SETTLEMENT_DAY_JOBS,
    DistributionRunner,
    RunSummary,
)
from app.utils.datetime_utils import previous_settlement_day, utc_today


class TestRunSummary:
    """Test RunSummary serialization."""

    def test_to_response(self):
        """Response uses camelCase keys and string amounts."""
        summary = RunSummary(
            execution_id=12,
            job_name="daily_roi",
            status=ExecutionStatus.PARTIAL_SUCCESS,
            business_date=date(2026, 3, 10),
            processed_count=4,
            total_amount=Decimal("10.50000000"),
            error_count=1,
            errors=[{"entity": "user", "id": 3, "error": "boom"}],
        )

        body = summary.to_response(error_limit=10)

        assert body == {
            "executionId": 12,
            "jobName": "daily_roi",
            "status": "partial_success",
            "businessDate": "2026-03-10",
            "processedCount": 4,
            "totalAmount": "10.50000000",
            "errorCount": 1,
            "errors": [{"entity": "user", "id": 3, "error": "boom"}],
        }

    def test_errors_truncated(self):
        """Only the first error_limit errors are echoed back."""
        summary = RunSummary(
            execution_id=1,
            job_name="rank_update",
            status=ExecutionStatus.PARTIAL_SUCCESS,
            business_date=None,
            error_count=25,
            errors=[{"id": i} for i in range(25)],
        )

        body = summary.to_response(error_limit=10)

        assert body["errorCount"] == 25
        assert len(body["errors"]) == 10
        assert body["errors"][0] == {"id": 0}
        assert body["businessDate"] is None


class TestDefaultDay:
    """Test default business day per pass."""

    def test_settlement_passes_use_previous_day(self):
        """Settlement passes default to the previous UTC day."""
        for job_name in SETTLEMENT_DAY_JOBS:
            assert DistributionRunner.default_day(job_name) == previous_settlement_day()

    def test_current_day_passes(self):
        """Reward maturity and reset default to today."""
        for job_name in CURRENT_DAY_JOBS:
            assert DistributionRunner.default_day(job_name) == utc_today()

    def test_dayless_passes(self):
        """Rank and active member passes have no business day."""
        assert DistributionRunner.default_day("rank_update") is None
        assert DistributionRunner.default_day("active_member_rewards") is None
