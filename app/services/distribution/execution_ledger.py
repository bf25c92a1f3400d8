"""
Batch execution ledger.

Creates one CronExecution per pass run and finalizes it with counters,
error details and the resulting status. Records are written in their
own sessions so a pass rolling back its work never loses the audit row.
"""

import time
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.settings import settings
from app.models.cron_execution import CronExecution
from app.models.enums import ExecutionStatus, TriggerSource
from app.utils.datetime_utils import utc_now


@dataclass
class RunContext:
    """In-memory state of a running pass."""

    execution_id: int
    job_name: str
    triggered_by: TriggerSource
    business_date: date | None
    deadline_at: float
    max_error_details: int
    processed_count: int = 0
    total_amount: Decimal = Decimal("0")
    error_count: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)
    deadline_hit: bool = False
    aborted: str | None = None
    status: ExecutionStatus = ExecutionStatus.RUNNING

    def add_processed(self, amount: Decimal = Decimal("0"), count: int = 1) -> None:
        """Count a processed entity and its credited amount."""
        self.processed_count += count
        self.total_amount += Decimal(str(amount))

    def record_error(self, entity: str, entity_id: Any, error: Exception | str) -> None:
        """
        Record a per-entity failure.

        Args:
            entity: Entity kind (user, investment, activation, ...)
            entity_id: Entity identifier
            error: Exception or message
        """
        self.error_count += 1
        if len(self.errors) < self.max_error_details:
            self.errors.append({
                "entity": entity,
                "id": entity_id,
                "error": str(error),
                "error_type": type(error).__name__ if isinstance(error, Exception) else "error",
                "at": utc_now().isoformat(),
            })

    def deadline_exceeded(self) -> bool:
        """Check the run deadline, latching deadline_hit once passed."""
        if not self.deadline_hit and time.monotonic() >= self.deadline_at:
            self.deadline_hit = True
            logger.warning(
                "Run deadline exceeded",
                extra={"job_name": self.job_name, "execution_id": self.execution_id},
            )
        return self.deadline_hit


class BatchExecutionLedger:
    """Writes CronExecution audit records."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        deadline_seconds: int | None = None,
        max_error_details: int | None = None,
    ) -> None:
        """
        Initialize execution ledger.

        Args:
            session_maker: Session factory for audit writes
            deadline_seconds: Run budget (settings default)
            max_error_details: Stored error cap (settings default)
        """
        self.session_maker = session_maker
        self.deadline_seconds = deadline_seconds or settings.run_deadline_seconds
        self.max_error_details = max_error_details or settings.max_error_details

    async def start(
        self,
        job_name: str,
        triggered_by: TriggerSource,
        business_date: date | None = None,
    ) -> RunContext:
        """
        Create the running execution record.

        Args:
            job_name: Pass name
            triggered_by: Trigger source
            business_date: Settlement day, when the pass has one

        Returns:
            RunContext bound to the new execution
        """
        async with self.session_maker() as session:
            execution = CronExecution(
                job_name=job_name,
                triggered_by=triggered_by.value,
                business_date=business_date,
                status=ExecutionStatus.RUNNING.value,
                start_time=utc_now(),
            )
            session.add(execution)
            await session.commit()
            execution_id = execution.id

        logger.info(
            f"Execution started: {job_name}",
            extra={
                "execution_id": execution_id,
                "triggered_by": triggered_by.value,
                "business_date": business_date.isoformat() if business_date else None,
            },
        )
        return RunContext(
            execution_id=execution_id,
            job_name=job_name,
            triggered_by=triggered_by,
            business_date=business_date,
            deadline_at=time.monotonic() + self.deadline_seconds,
            max_error_details=self.max_error_details,
        )

    @staticmethod
    def resolve_status(ctx: RunContext) -> ExecutionStatus:
        """
        Derive the final status of a run.

        failed when aborted, partial_success when any entity failed or
        the deadline was hit, completed otherwise.
        """
        if ctx.aborted:
            return ExecutionStatus.FAILED
        if ctx.error_count or ctx.deadline_hit:
            return ExecutionStatus.PARTIAL_SUCCESS
        return ExecutionStatus.COMPLETED

    async def finish(self, ctx: RunContext) -> ExecutionStatus:
        """
        Finalize the execution record.

        Args:
            ctx: Run context

        Returns:
            Final status
        """
        status = self.resolve_status(ctx)
        ctx.status = status

        errors = list(ctx.errors)
        if ctx.aborted:
            errors.append({"entity": "run", "id": None, "error": ctx.aborted})

        async with self.session_maker() as session:
            await session.execute(
                update(CronExecution)
                .where(CronExecution.id == ctx.execution_id)
                .values(
                    status=status.value,
                    end_time=utc_now(),
                    processed_count=ctx.processed_count,
                    total_amount=ctx.total_amount,
                    error_count=ctx.error_count,
                    error_details=errors or None,
                )
            )
            await session.commit()

        log = logger.info if status == ExecutionStatus.COMPLETED else logger.warning
        log(
            f"Execution finished: {ctx.job_name} -> {status.value}",
            extra={
                "execution_id": ctx.execution_id,
                "processed_count": ctx.processed_count,
                "total_amount": str(ctx.total_amount),
                "error_count": ctx.error_count,
                "deadline_hit": ctx.deadline_hit,
            },
        )
        return status
