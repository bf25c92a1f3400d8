"""
Investment model.

Represents principal placed into a trading package.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import InvestmentStatus
from app.models.types import JSONType, MoneyType

if TYPE_CHECKING:
    from app.models.investment_plan import InvestmentPlan
    from app.models.user import User


class Investment(Base):
    """Investment model - active or closed package holding."""

    __tablename__ = "investments"
    __table_args__ = (
        CheckConstraint(
            'amount > 0', name='check_investment_amount_positive'
        ),
        CheckConstraint(
            "status IN ('active', 'completed', 'cancelled')",
            name='check_investment_status_valid'
        ),
        Index('idx_investment_status_last_profit', 'status', 'last_profit_date'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    plan_id: Mapped[int] = mapped_column(
        ForeignKey("investment_plans.id"), nullable=False, index=True
    )

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=InvestmentStatus.ACTIVE.value, index=True
    )

    start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    # Last settled calendar day; advanced at most once per day
    last_profit_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    extra: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)

    # Relationships
    user: Mapped["User"] = relationship(
        "User", back_populates="investments", lazy="raise"
    )
    plan: Mapped["InvestmentPlan"] = relationship("InvestmentPlan", lazy="raise")

    @property
    def is_active(self) -> bool:
        """Check if investment still earns yield."""
        return self.status == InvestmentStatus.ACTIVE.value

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Investment(id={self.id}, user_id={self.user_id}, "
            f"amount={self.amount}, status={self.status})>"
        )
