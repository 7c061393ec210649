"""Domain models for the statutory kernel."""

from statutory_kernel.models.account import (
    DEFAULT_NORMAL_BALANCE,
    Account,
    AccountType,
    NormalBalance,
)
from statutory_kernel.models.company import Company
from statutory_kernel.models.journal import (
    JournalEntry,
    JournalEntryStatus,
    JournalLine,
    LineSide,
)

__all__ = [
    "Account",
    "AccountType",
    "NormalBalance",
    "DEFAULT_NORMAL_BALANCE",
    "Company",
    "JournalEntry",
    "JournalEntryStatus",
    "JournalLine",
    "LineSide",
]
