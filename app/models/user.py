"""
User model.

Represents a platform member: wallet balances, sponsorship and placement
links, rank attributes and the daily activation flag.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.types import MoneyType, RatePercentType

if TYPE_CHECKING:
    from app.models.investment import Investment
    from app.models.trade_activation import TradeActivation


class User(Base):
    """User model - platform members."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            'wallet >= 0', name='check_user_wallet_non_negative'
        ),
        CheckConstraint(
            'wallet_topup >= 0', name='check_user_wallet_topup_non_negative'
        ),
        CheckConstraint(
            'total_investment >= 0',
            name='check_user_total_investment_non_negative'
        ),
        CheckConstraint(
            'total_earned >= 0',
            name='check_user_total_earned_non_negative'
        ),
        CheckConstraint(
            'capping_limit IS NULL OR capping_limit >= 0',
            name='check_user_capping_limit_non_negative'
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Identity
    username: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )
    email: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )

    # Balances
    wallet: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    wallet_topup: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    total_investment: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )  # cached sum of active principal
    total_earned: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    capping_limit: Mapped[Decimal | None] = mapped_column(
        MoneyType, nullable=True
    )  # remaining payout ceiling, NULL = unlimited

    # Trees
    referrer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True, index=True
    )  # direct sponsor, NULL only for the root account
    placement_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True, index=True
    )

    # Daily activation
    daily_profit_activated: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    last_activation_date: Mapped[date | None] = mapped_column(
        Date, nullable=True
    )

    # Rank attributes
    rank: Mapped[str] = mapped_column(
        String(32), nullable=False, default="ACTIVE"
    )
    trade_booster: Mapped[Decimal] = mapped_column(
        RatePercentType, nullable=False, default=Decimal("2.5")
    )
    daily_limit_view: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1
    )
    rank_level_roi_depth: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    referrer: Mapped[Optional["User"]] = relationship(
        "User",
        remote_side="User.id",
        foreign_keys=[referrer_id],
        lazy="raise",
    )
    investments: Mapped[list["Investment"]] = relationship(
        "Investment", back_populates="user", lazy="raise"
    )
    trade_activations: Mapped[list["TradeActivation"]] = relationship(
        "TradeActivation", back_populates="user", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(id={self.id}, username={self.username}, "
            f"referrer_id={self.referrer_id})>"
        )
