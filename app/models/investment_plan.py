"""
InvestmentPlan model.

Trading package definition: tier and daily yield rate.
"""

from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType, RatePercentType


class InvestmentPlan(Base):
    """Investment plan - purchasable trading package."""

    __tablename__ = "investment_plans"
    __table_args__ = (
        CheckConstraint(
            'daily_rate_percent >= 0',
            name='check_plan_daily_rate_non_negative'
        ),
        CheckConstraint(
            'tier >= 0', name='check_plan_tier_non_negative'
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    tier: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    daily_rate_percent: Mapped[Decimal] = mapped_column(
        RatePercentType, nullable=False
    )  # 0.8 = 0.8% per day
    amount_from: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    amount_to: Mapped[Decimal | None] = mapped_column(MoneyType, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<InvestmentPlan(id={self.id}, title={self.title}, "
            f"tier={self.tier}, rate={self.daily_rate_percent})>"
        )
