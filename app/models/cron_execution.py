"""
CronExecution model.

Audit record of a single pass run.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Date, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import ExecutionStatus, TriggerSource
from app.models.types import JSONType, MoneyType


class CronExecution(Base):
    """Batch execution audit record."""

    __tablename__ = "cron_executions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_name: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    business_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    end_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ExecutionStatus.RUNNING.value
    )
    triggered_by: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TriggerSource.AUTOMATIC.value
    )

    processed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    error_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_details: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSONType, nullable=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CronExecution(id={self.id}, job_name={self.job_name}, "
            f"status={self.status})>"
        )
