"""
Unit tests for run context and execution status.

Tests cover:
- Status resolution
- Error detail capping
- Deadline latching
"""

import time
from decimal import Decimal

from app.models.enums import ExecutionStatus, TriggerSource
from app.services.distribution.execution_ledger import (
    BatchExecutionLedger,
    RunContext,
)


def make_ctx(**overrides) -> RunContext:
    values = dict(
        execution_id=1,
        job_name="daily_roi",
        triggered_by=TriggerSource.AUTOMATIC,
        business_date=None,
        deadline_at=time.monotonic() + 3600,
        max_error_details=3,
    )
    values.update(overrides)
    return RunContext(**values)


class TestResolveStatus:
    """Test final status derivation."""

    def test_clean_run_completed(self):
        """No errors and no deadline: completed."""
        assert BatchExecutionLedger.resolve_status(make_ctx()) == ExecutionStatus.COMPLETED

    def test_errors_partial_success(self):
        """Per-entity errors: partial_success."""
        ctx = make_ctx()
        ctx.record_error("user", 5, "boom")

        assert BatchExecutionLedger.resolve_status(ctx) == ExecutionStatus.PARTIAL_SUCCESS

    def test_deadline_partial_success(self):
        """Deadline hit without errors: partial_success."""
        ctx = make_ctx(deadline_at=0)
        ctx.deadline_exceeded()

        assert BatchExecutionLedger.resolve_status(ctx) == ExecutionStatus.PARTIAL_SUCCESS

    def test_aborted_failed(self):
        """Aborted run: failed, whatever else happened."""
        ctx = make_ctx()
        ctx.add_processed(Decimal("10"))
        ctx.aborted = "invalid rate table"

        assert BatchExecutionLedger.resolve_status(ctx) == ExecutionStatus.FAILED


class TestRunContext:
    """Test in-memory counters."""

    def test_add_processed(self):
        """Amounts and counts accumulate."""
        ctx = make_ctx()
        ctx.add_processed(Decimal("8"))
        ctx.add_processed(Decimal("2.5"), count=3)

        assert ctx.processed_count == 4
        assert ctx.total_amount == Decimal("10.5")

    def test_error_details_capped(self):
        """error_count keeps counting past the stored detail cap."""
        ctx = make_ctx(max_error_details=3)
        for i in range(5):
            ctx.record_error("user", i, ValueError(f"bad {i}"))

        assert ctx.error_count == 5
        assert len(ctx.errors) == 3
        assert ctx.errors[0]["entity"] == "user"
        assert ctx.errors[0]["id"] == 0
        assert ctx.errors[0]["error_type"] == "ValueError"

    def test_string_error_type(self):
        """Plain messages are recorded with a generic type."""
        ctx = make_ctx()
        ctx.record_error("activation", 9, "not settled by run")

        assert ctx.errors[0]["error_type"] == "error"
        assert ctx.errors[0]["error"] == "not settled by run"

    def test_deadline_not_exceeded(self):
        """Future deadline is not exceeded."""
        ctx = make_ctx()

        assert ctx.deadline_exceeded() is False
        assert ctx.deadline_hit is False

    def test_deadline_latches(self):
        """Once exceeded, the deadline stays exceeded."""
        ctx = make_ctx(deadline_at=0)

        assert ctx.deadline_exceeded() is True
        ctx.deadline_at = time.monotonic() + 3600
        assert ctx.deadline_exceeded() is True


class TestLedgerDefaults:
    """Test ledger configuration defaults."""

    def test_settings_defaults(self):
        """Deadline and error cap default to settings."""
        ledger = BatchExecutionLedger(session_maker=None)

        assert ledger.deadline_seconds == 3600
        assert ledger.max_error_details == 500

    def test_overrides(self):
        """Explicit values override settings."""
        ledger = BatchExecutionLedger(
            session_maker=None, deadline_seconds=60, max_error_details=5
        )

        assert ledger.deadline_seconds == 60
        assert ledger.max_error_details == 5
