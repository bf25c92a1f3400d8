"""
TeamReward model.

Time-delayed reward for reaching a team deposit milestone.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import TeamRewardStatus
from app.models.types import MoneyType


class TeamReward(Base):
    """Team reward - one per (user, milestone)."""

    __tablename__ = "team_rewards"
    __table_args__ = (
        UniqueConstraint('user_id', 'team_deposit', name='uq_team_reward_user_tier'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    team_deposit: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    time_period: Mapped[int] = mapped_column(Integer, nullable=False)  # days
    reward_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    matures_on: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TeamRewardStatus.PENDING.value
    )
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    income_id: Mapped[int | None] = mapped_column(
        ForeignKey("incomes.id"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<TeamReward(id={self.id}, user_id={self.user_id}, "
            f"tier={self.team_deposit}, status={self.status})>"
        )
