"""
Module: statutory_kernel.selectors.ledger_selector
Responsibility: Read-only ledger queries for statutory reporting: signed
    posted balances per company/account over a date range or as of a date,
    and the company's chart of accounts.
Architecture position: Kernel > Selectors.  May import from models/ and
    selectors/base.py.  MUST NOT import from outer layers.

Invariants enforced:
    - Only lines of POSTED journal entries participate.  Draft entries are
      excluded unconditionally.
    - No stored balances.  All balances derive from JournalLine rows at
      query time.
    - Range mode signs revenue accounts credit-debit and expense accounts
      debit-credit; as-of mode signs every account by its normal-balance
      side.

Failure modes:
    - Unknown account, or an account of another company -> Decimal("0").
    - Database errors propagate unchanged.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from statutory_kernel.domain.periods import BalanceWindow, DateRange
from statutory_kernel.logging_config import get_logger
from statutory_kernel.models.account import Account, AccountType, NormalBalance
from statutory_kernel.models.journal import (
    JournalEntry,
    JournalEntryStatus,
    JournalLine,
    LineSide,
)
from statutory_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.ledger")

ZERO = Decimal("0")


@dataclass(frozen=True)
class AccountInfo:
    """
    Snapshot of account metadata handed to pure reporting code.

    The bridge between the ORM Account model and pure functions; the
    selector converts Account rows before returning them.
    """

    account_id: UUID
    code: str
    name: str
    account_type: AccountType
    normal_balance: NormalBalance
    is_active: bool = True
    company_id: UUID | None = None


def signed_balance(
    debit_total: Decimal,
    credit_total: Decimal,
    account_type: AccountType,
    normal_balance: NormalBalance,
    range_mode: bool,
) -> Decimal:
    """
    Sign a debit/credit pair for one account.

    Range mode: revenue -> credit - debit, expense -> debit - credit,
    other types fall back to their normal side.  As-of mode: normal side.
    """
    if range_mode and account_type == AccountType.REVENUE:
        return credit_total - debit_total
    if range_mode and account_type == AccountType.EXPENSE:
        return debit_total - credit_total
    if normal_balance == NormalBalance.DEBIT:
        return debit_total - credit_total
    return credit_total - debit_total


def _to_info(account: Account) -> AccountInfo:
    return AccountInfo(
        account_id=account.id,
        code=account.code,
        name=account.name,
        account_type=AccountType(account.account_type),
        normal_balance=NormalBalance(account.normal_balance),
        is_active=account.is_active,
        company_id=account.company_id,
    )


class LedgerSelector(BaseSelector[JournalLine]):
    """
    Selector for statutory balance queries.

    Guarantees:
        - All balance methods return Decimal (never float, never None).
        - Queries filter by company, account, status=POSTED and the date
          window; aggregation happens in SQL.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def _debit_credit_totals(
        self,
        company_id: UUID,
        account_id: UUID,
        start: date | None,
        end: date,
    ) -> tuple[Decimal, Decimal]:
        debit_sum = func.sum(
            case(
                (JournalLine.side == LineSide.DEBIT.value, JournalLine.amount),
                else_=ZERO,
            )
        ).label("debit_total")

        credit_sum = func.sum(
            case(
                (JournalLine.side == LineSide.CREDIT.value, JournalLine.amount),
                else_=ZERO,
            )
        ).label("credit_total")

        query = (
            select(debit_sum, credit_sum)
            .select_from(JournalLine)
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalEntry.status == JournalEntryStatus.POSTED.value,
                JournalEntry.company_id == company_id,
                JournalLine.account_id == account_id,
                JournalEntry.effective_date <= end,
            )
        )

        if start is not None:
            query = query.where(JournalEntry.effective_date >= start)

        row = self.session.execute(query).one()
        return (
            Decimal(str(row.debit_total)) if row.debit_total is not None else ZERO,
            Decimal(str(row.credit_total)) if row.credit_total is not None else ZERO,
        )

    def posted_balance(
        self,
        company_id: UUID,
        account_id: UUID,
        window: BalanceWindow,
    ) -> Decimal:
        """
        Net signed balance of posted postings for one account.

        Args:
            company_id: Owning company.
            account_id: Account to query.
            window: ``DateRange`` for period activity, or a ``date`` for the
                cumulative balance as of that day.

        Returns:
            Signed Decimal balance; ``Decimal("0")`` for an unknown account.
        """
        account = self.session.get(Account, account_id)
        if account is None or account.company_id != company_id:
            logger.debug(
                "posted_balance_unknown_account",
                extra={"company_id": str(company_id), "account_id": str(account_id)},
            )
            return ZERO

        if isinstance(window, DateRange):
            start, end, range_mode = window.start, window.end, True
        else:
            start, end, range_mode = None, window, False

        debit_total, credit_total = self._debit_credit_totals(
            company_id, account_id, start, end,
        )
        return signed_balance(
            debit_total,
            credit_total,
            AccountType(account.account_type),
            NormalBalance(account.normal_balance),
            range_mode,
        )

    def list_accounts(
        self,
        company_id: UUID,
        active_only: bool = False,
    ) -> list[AccountInfo]:
        """
        Chart of accounts for a company, ordered by code.

        Deleted accounts are never returned; ``active_only`` also drops
        inactive accounts.
        """
        query = (
            select(Account)
            .where(Account.company_id == company_id, Account.is_deleted.is_(False))
            .order_by(Account.code)
        )
        if active_only:
            query = query.where(Account.is_active.is_(True))

        accounts = [_to_info(a) for a in self.session.execute(query).scalars()]
        logger.debug(
            "accounts_listed",
            extra={
                "company_id": str(company_id),
                "active_only": active_only,
                "account_count": len(accounts),
            },
        )
        return accounts
