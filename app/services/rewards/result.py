"""
Reward pass result.
"""

from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class RewardResult:
    """Counters collected by a reward engine."""

    total: Decimal = Decimal("0")
    credited_count: int = 0
    skipped: Counter = field(default_factory=Counter)

    def add(self, amount: Decimal) -> None:
        """Count one credit."""
        self.total += amount
        self.credited_count += 1

    def skip(self, reason: str) -> None:
        """Count one skipped recipient."""
        self.skipped[reason] += 1

    def merge(self, other: "RewardResult") -> None:
        """Fold another result into this one."""
        self.total += other.total
        self.credited_count += other.credited_count
        self.skipped.update(other.skipped)
