"""
Module: statutory_kernel.models.journal
Responsibility: ORM persistence for journal entries and journal lines -- the
    single source of financial truth read by statutory reporting.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Amounts are non-negative; the side column determines debit/credit.
    - Only POSTED entries participate in any balance query.
    - Posted entries and their lines are immutable (ORM listeners in
      db/immutability.py).

Audit relevance:
    Every statutory figure is derived from posted JournalLine rows at query
    time.  There are no stored balances.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, Date, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from statutory_kernel.db.base import TrackedBase, UUIDString
from statutory_kernel.db.types import Money

if TYPE_CHECKING:
    from statutory_kernel.models.account import Account


class JournalEntryStatus(str, Enum):
    """Lifecycle status of a journal entry.

    Contract: DRAFT -> POSTED is one-way.  Draft entries never reach reports.
    """

    DRAFT = "draft"
    POSTED = "posted"


class LineSide(str, Enum):
    """Which side of the entry this line is on."""

    DEBIT = "debit"
    CREDIT = "credit"


class JournalEntry(TrackedBase):
    """
    Journal entry header.

    Contract:
        Each entry belongs to one company and carries an effective_date that
        places it in reporting periods.  Once POSTED, the row and all child
        lines are immutable.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        Index("idx_journal_company_date", "company_id", "effective_date"),
        Index("idx_journal_status", "status"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=False,
    )

    # Accounting date (drives period membership)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[JournalEntryStatus] = mapped_column(
        String(10),
        default=JournalEntryStatus.DRAFT,
        nullable=False,
    )

    posted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<JournalEntry {self.id} status={JournalEntryStatus(self.status).value}>"

    @property
    def is_posted(self) -> bool:
        """True iff status is POSTED."""
        return JournalEntryStatus(self.status) == JournalEntryStatus.POSTED

    @property
    def total_debits(self) -> Decimal:
        """Sum of all debit line amounts."""
        return sum(
            (line.amount for line in self.lines if line.is_debit),
            Decimal("0"),
        )

    @property
    def total_credits(self) -> Decimal:
        """Sum of all credit line amounts."""
        return sum(
            (line.amount for line in self.lines if line.is_credit),
            Decimal("0"),
        )

    @property
    def is_balanced(self) -> bool:
        """Read-side check that debits equal credits."""
        return self.total_debits == self.total_credits


class JournalLine(TrackedBase):
    """
    Individual debit or credit line within a journal entry.

    Guarantees:
        - amount is non-negative; side determines sign.
        - line_seq gives deterministic ordering within the entry.
    """

    __tablename__ = "journal_lines"

    __table_args__ = (
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    side: Mapped[LineSide] = mapped_column(String(10), nullable=False)

    # Always non-negative; side determines debit/credit
    amount: Mapped[Money] = mapped_column(nullable=False)

    line_memo: Mapped[str | None] = mapped_column(String(500), nullable=True)

    line_seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")

    account: Mapped["Account"] = relationship(back_populates="journal_lines")

    def __repr__(self) -> str:
        return f"<JournalLine {LineSide(self.side).value} {self.amount}>"

    @property
    def is_debit(self) -> bool:
        """True iff side is DEBIT."""
        return LineSide(self.side) == LineSide.DEBIT

    @property
    def is_credit(self) -> bool:
        """True iff side is CREDIT."""
        return LineSide(self.side) == LineSide.CREDIT

    @property
    def debit_amount(self) -> Decimal:
        """Amount when on the debit side, else zero."""
        return self.amount if self.is_debit else Decimal("0")

    @property
    def credit_amount(self) -> Decimal:
        """Amount when on the credit side, else zero."""
        return self.amount if self.is_credit else Decimal("0")
