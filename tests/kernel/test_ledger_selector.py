"""
Ledger selector tests.

Posted-only balances in range and as-of mode, unknown accounts, and the
chart-of-accounts listing.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from statutory_kernel.domain.periods import DateRange
from statutory_kernel.models.account import AccountType, NormalBalance
from statutory_kernel.models.journal import JournalEntryStatus
from statutory_kernel.selectors.ledger_selector import signed_balance

YEAR_2024 = DateRange(date(2024, 1, 1), date(2024, 12, 31))


class TestSignedBalance:
    def test_range_mode_revenue_is_credit_minus_debit(self):
        assert signed_balance(
            Decimal("100"), Decimal("250"), AccountType.REVENUE, NormalBalance.CREDIT, True,
        ) == Decimal("150")

    def test_range_mode_expense_is_debit_minus_credit(self):
        assert signed_balance(
            Decimal("300"), Decimal("50"), AccountType.EXPENSE, NormalBalance.DEBIT, True,
        ) == Decimal("250")

    def test_range_mode_asset_uses_normal_side(self):
        assert signed_balance(
            Decimal("10"), Decimal("40"), AccountType.ASSET, NormalBalance.DEBIT, True,
        ) == Decimal("-30")

    def test_as_of_mode_uses_normal_side(self):
        # A debit-normal revenue account (unusual but possible) signs debit-positive
        assert signed_balance(
            Decimal("80"), Decimal("20"), AccountType.REVENUE, NormalBalance.DEBIT, False,
        ) == Decimal("60")
        assert signed_balance(
            Decimal("80"), Decimal("20"), AccountType.LIABILITY, NormalBalance.CREDIT, False,
        ) == Decimal("-60")


class TestPostedBalance:
    def test_range_balance_counts_only_postings_in_window(
        self, ledger_selector, company, standard_accounts, transfer,
    ):
        cash, sales = standard_accounts["cash"], standard_accounts["sales"]
        transfer(cash, sales, "1000", effective_date=date(2023, 12, 31))
        transfer(cash, sales, "2500", effective_date=date(2024, 1, 1))
        transfer(cash, sales, "500", effective_date=date(2024, 12, 31))
        transfer(cash, sales, "7000", effective_date=date(2025, 1, 1))

        balance = ledger_selector.posted_balance(company.id, sales.id, YEAR_2024)

        assert balance == Decimal("3000")
        assert isinstance(balance, Decimal)

    def test_as_of_balance_is_cumulative(
        self, ledger_selector, company, standard_accounts, transfer,
    ):
        cash, capital = standard_accounts["cash"], standard_accounts["capital"]
        transfer(cash, capital, "40000", effective_date=date(2020, 3, 1))
        transfer(cash, capital, "10000", effective_date=date(2024, 6, 1))
        transfer(cash, capital, "999", effective_date=date(2025, 1, 1))

        assert ledger_selector.posted_balance(company.id, cash.id, date(2024, 12, 31)) == Decimal("50000")
        assert ledger_selector.posted_balance(company.id, capital.id, date(2024, 12, 31)) == Decimal("50000")

    def test_draft_entries_are_excluded(
        self, ledger_selector, company, standard_accounts, transfer,
    ):
        cash, sales = standard_accounts["cash"], standard_accounts["sales"]
        transfer(cash, sales, "1200")
        transfer(cash, sales, "8800", status=JournalEntryStatus.DRAFT)

        assert ledger_selector.posted_balance(company.id, sales.id, YEAR_2024) == Decimal("1200")
        assert ledger_selector.posted_balance(company.id, cash.id, date(2024, 12, 31)) == Decimal("1200")

    def test_no_postings_is_zero(self, ledger_selector, company, standard_accounts):
        balance = ledger_selector.posted_balance(
            company.id, standard_accounts["rent"].id, YEAR_2024,
        )
        assert balance == Decimal("0")

    def test_unknown_account_is_zero(self, ledger_selector, company):
        assert ledger_selector.posted_balance(company.id, uuid4(), YEAR_2024) == Decimal("0")

    def test_account_of_another_company_is_zero(
        self, ledger_selector, company, create_company, create_account, post_entry,
    ):
        other = create_company(name="Negev Ltd", tax_id="514000002")
        foreign_cash = create_account("1000", "Cash", AccountType.ASSET, owner=other)
        foreign_sales = create_account("4000", "Sales", AccountType.REVENUE, owner=other)
        post_entry(
            date(2024, 5, 5),
            [(foreign_cash, "debit", "300"), (foreign_sales, "credit", "300")],
            owner=other,
        )

        assert ledger_selector.posted_balance(other.id, foreign_sales.id, YEAR_2024) == Decimal("300")
        assert ledger_selector.posted_balance(company.id, foreign_sales.id, YEAR_2024) == Decimal("0")


class TestListAccounts:
    def test_ordered_by_code(self, ledger_selector, company, create_account):
        create_account("5000", "Cost of goods sold", AccountType.EXPENSE)
        create_account("1000", "Cash", AccountType.ASSET)
        create_account("4000", "Sales", AccountType.REVENUE)

        codes = [a.code for a in ledger_selector.list_accounts(company.id)]

        assert codes == ["1000", "4000", "5000"]

    def test_deleted_accounts_never_listed(self, ledger_selector, company, create_account):
        create_account("1000", "Cash", AccountType.ASSET)
        create_account("1001", "Old cash", AccountType.ASSET, is_deleted=True)

        assert [a.code for a in ledger_selector.list_accounts(company.id)] == ["1000"]

    def test_active_only_drops_inactive(self, ledger_selector, company, create_account):
        create_account("1000", "Cash", AccountType.ASSET)
        create_account("1002", "Dormant cash", AccountType.ASSET, is_active=False)

        all_codes = [a.code for a in ledger_selector.list_accounts(company.id)]
        active_codes = [a.code for a in ledger_selector.list_accounts(company.id, active_only=True)]

        assert all_codes == ["1000", "1002"]
        assert active_codes == ["1000"]

    def test_account_info_carries_typed_metadata(self, ledger_selector, company, create_account):
        account = create_account("2000", "Suppliers Payable", AccountType.LIABILITY)

        [info] = ledger_selector.list_accounts(company.id)

        assert info.account_id == account.id
        assert info.company_id == company.id
        assert info.account_type is AccountType.LIABILITY
        assert info.normal_balance is NormalBalance.CREDIT
        assert info.is_active is True

    def test_other_company_accounts_excluded(
        self, ledger_selector, company, create_company, create_account,
    ):
        other = create_company(name="Negev Ltd", tax_id="514000002")
        create_account("1000", "Cash", AccountType.ASSET)
        create_account("1000", "Cash", AccountType.ASSET, owner=other)

        assert len(ledger_selector.list_accounts(company.id)) == 1
        assert len(ledger_selector.list_accounts(other.id)) == 1


class TestDateRange:
    def test_start_after_end_rejected(self):
        with pytest.raises(ValueError):
            DateRange(date(2024, 12, 31), date(2024, 1, 1))

    def test_day_before_start(self):
        assert YEAR_2024.day_before_start == date(2023, 12, 31)

    def test_contains_is_inclusive(self):
        assert YEAR_2024.contains(date(2024, 1, 1))
        assert YEAR_2024.contains(date(2024, 12, 31))
        assert not YEAR_2024.contains(date(2025, 1, 1))
