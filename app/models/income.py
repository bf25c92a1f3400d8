"""
Income model.

Append-only ledger of every credit made by the distribution passes.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import IncomeStatus
from app.models.types import JSONType, MoneyType


def build_idempotency_key(
    income_type: str,
    user_id_from: int | None,
    level: int,
    reference: str,
) -> str:
    """
    Build the ledger idempotency key.

    Args:
        income_type: IncomeType value
        user_id_from: Source user (None for system rewards)
        level: Commission level (0 when not applicable)
        reference: Activation / investment / reward reference

    Returns:
        Key unique per logical credit
    """
    source = user_id_from if user_id_from is not None else "system"
    return f"{income_type}:{source}:{level}:{reference}"


class Income(Base):
    """Income ledger entry."""

    __tablename__ = "incomes"
    __table_args__ = (
        CheckConstraint('amount > 0', name='check_income_amount_positive'),
        CheckConstraint('level >= 0', name='check_income_level_non_negative'),
        Index('idx_income_type_business_date', 'type', 'business_date'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )  # recipient
    user_id_from: Mapped[int | None] = mapped_column(
        ForeignKey("users.id"), nullable=True, index=True
    )

    type: Mapped[str] = mapped_column(String(32), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=IncomeStatus.CREDITED.value
    )

    reference: Mapped[str] = mapped_column(String(128), nullable=False)
    business_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    idempotency_key: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True
    )
    cron_execution_id: Mapped[int | None] = mapped_column(
        ForeignKey("cron_executions.id"), nullable=True, index=True
    )
    extra: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Income(id={self.id}, user_id={self.user_id}, type={self.type}, "
            f"amount={self.amount}, level={self.level})>"
        )
