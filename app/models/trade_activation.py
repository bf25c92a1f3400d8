"""
TradeActivation model.

One record per user per calendar day the user activated trading,
carrying the profit settlement outcome for that day.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import ActivationStatus, ProfitStatus
from app.models.types import JSONType, MoneyType

if TYPE_CHECKING:
    from app.models.user import User


class TradeActivation(Base):
    """Trade activation - per (user, day) profit settlement record."""

    __tablename__ = "trade_activations"
    __table_args__ = (
        UniqueConstraint(
            'user_id', 'activation_date', name='uq_trade_activation_user_day'
        ),
        Index('idx_trade_activation_day_profit_status', 'activation_date', 'profit_status'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    activation_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ActivationStatus.ACTIVE.value
    )
    profit_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ProfitStatus.PENDING.value
    )
    # activation_date + 1 day @ 01:00 UTC once settled
    profit_processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    profit_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    profit_details: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType, nullable=True
    )
    profit_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    cron_execution_id: Mapped[int | None] = mapped_column(
        ForeignKey("cron_executions.id"), nullable=True, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    user: Mapped["User"] = relationship(
        "User", back_populates="trade_activations", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<TradeActivation(id={self.id}, user_id={self.user_id}, "
            f"date={self.activation_date}, profit_status={self.profit_status})>"
        )
