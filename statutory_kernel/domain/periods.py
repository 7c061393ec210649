"""
Reporting windows (``statutory_kernel.domain.periods``).

Balance queries take either a ``DateRange`` (activity within inclusive
bounds, used for the profit and loss) or a bare ``date`` (cumulative
balance as of that day, used for the balance sheet and inventory
snapshots).  ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta


@dataclass(frozen=True)
class DateRange:
    """Inclusive date window ``[start, end]``."""

    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"DateRange start {self.start} is after end {self.end}")

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def day_before_start(self) -> date:
        """Snapshot date for opening balances."""
        return self.start - timedelta(days=1)


BalanceWindow = DateRange | date
