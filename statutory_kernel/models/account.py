"""
Module: statutory_kernel.models.account
Responsibility: ORM persistence for the per-company Chart of Accounts -- the
    target of every journal line.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - code is unique per company (uq_account_company_code).
    - normal_balance is consistent with account_type for the standard
      types (asset/expense debit-normal; liability/equity/revenue
      credit-normal), but is stored explicitly and read as-is.

Audit relevance:
    Accounts are immutable reference data within a reporting run.  Deleted
    accounts (is_deleted) never appear in statutory reports; inactive
    accounts are excluded from the balance sheet.
"""

from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from statutory_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from statutory_kernel.models.company import Company
    from statutory_kernel.models.journal import JournalLine


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class NormalBalance(str, Enum):
    """Normal balance side for an account."""

    DEBIT = "debit"
    CREDIT = "credit"


DEFAULT_NORMAL_BALANCE: dict[AccountType, NormalBalance] = {
    AccountType.ASSET: NormalBalance.DEBIT,
    AccountType.EXPENSE: NormalBalance.DEBIT,
    AccountType.LIABILITY: NormalBalance.CREDIT,
    AccountType.EQUITY: NormalBalance.CREDIT,
    AccountType.REVENUE: NormalBalance.CREDIT,
}


class Account(TrackedBase):
    """
    Chart of Accounts entry for one company.

    Guarantees:
        - code is unique within the company and non-null.
        - account_type is one of ASSET, LIABILITY, EQUITY, REVENUE, EXPENSE.
        - normal_balance is DEBIT or CREDIT.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_account_company_code"),
        Index("idx_account_company", "company_id"),
        Index("idx_account_type", "account_type"),
        Index("idx_account_active", "company_id", "is_active", "is_deleted"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=False,
    )

    # Numeric account code (string to keep leading zeros)
    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    account_type: Mapped[AccountType] = mapped_column(String(20), nullable=False)

    normal_balance: Mapped[NormalBalance] = mapped_column(String(10), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Soft delete flag
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    company: Mapped["Company"] = relationship(back_populates="accounts")

    journal_lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="account",
        lazy="dynamic",
    )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"

    @property
    def is_debit_normal(self) -> bool:
        """True iff normal_balance is DEBIT."""
        return NormalBalance(self.normal_balance) == NormalBalance.DEBIT

    @property
    def is_credit_normal(self) -> bool:
        """True iff normal_balance is CREDIT."""
        return NormalBalance(self.normal_balance) == NormalBalance.CREDIT
