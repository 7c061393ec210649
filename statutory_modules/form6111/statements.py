"""
Pure Form 6111 statement builders.

These functions turn account metadata and ledger balances into the Part A
(profit and loss) and Part C (balance sheet) DTOs.  ZERO I/O.  ZERO side
effects.

All monetary values are Decimal.  All inputs/outputs are frozen dataclasses.

Functions in this module follow the kernel domain purity convention:
- No database access
- No clock access
- No file I/O
- Deterministic: same inputs always produce same outputs
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from statutory_kernel.db.types import REPORT_QUANTUM, round_money
from statutory_kernel.models.account import AccountType, NormalBalance
from statutory_kernel.selectors.ledger_selector import AccountInfo
from statutory_modules.form6111.classifier import ClassificationRuleSet, classify
from statutory_modules.form6111.models import (
    BalanceSheetReport,
    ProfitLossReport,
    StatementLine,
    StatutoryBucket,
)

ZERO = Decimal("0")

PROFIT_LOSS_FIELDS: dict[StatutoryBucket, str] = {
    StatutoryBucket.SALES_REVENUE: "sales_revenue",
    StatutoryBucket.SERVICE_REVENUE: "service_revenue",
    StatutoryBucket.OTHER_REVENUE: "other_revenue",
    StatutoryBucket.FINANCE_INCOME: "finance_income",
    StatutoryBucket.OTHER_INCOME: "other_income",
    StatutoryBucket.COST_OF_SALES: "cost_of_sales",
    StatutoryBucket.MANUFACTURING_COSTS: "manufacturing_costs",
    StatutoryBucket.RND_EXPENSE: "rnd_expenses",
    StatutoryBucket.SALES_EXPENSE: "sales_expenses",
    StatutoryBucket.ADMINISTRATIVE_EXPENSE: "administrative_expenses",
    StatutoryBucket.FINANCE_EXPENSE: "finance_expenses",
    StatutoryBucket.OTHER_EXPENSE: "other_expenses",
    StatutoryBucket.CURRENT_TAX_EXPENSE: "current_tax_expense",
    StatutoryBucket.DEFERRED_TAX_EXPENSE: "deferred_tax_expense",
}

BALANCE_SHEET_FIELDS: dict[StatutoryBucket, str] = {
    StatutoryBucket.CASH_AND_EQUIVALENTS: "cash_and_equivalents",
    StatutoryBucket.SECURITIES: "securities",
    StatutoryBucket.RECEIVABLES: "receivables",
    StatutoryBucket.OTHER_RECEIVABLES: "other_receivables",
    StatutoryBucket.INVENTORY: "inventory",
    StatutoryBucket.FIXED_ASSETS: "fixed_assets",
    StatutoryBucket.SHORT_TERM_LOANS: "short_term_loans",
    StatutoryBucket.PAYABLES: "payables",
    StatutoryBucket.OTHER_PAYABLES: "other_payables",
    StatutoryBucket.LONG_TERM_LIABILITIES: "long_term_liabilities",
    StatutoryBucket.SHARE_CAPITAL: "share_capital",
    StatutoryBucket.RETAINED_EARNINGS: "retained_earnings",
}

PROFIT_LOSS_TYPES = frozenset({AccountType.REVENUE, AccountType.EXPENSE})
BALANCE_SHEET_TYPES = frozenset({AccountType.ASSET, AccountType.LIABILITY, AccountType.EQUITY})

UNCLOSED_EARNINGS_NAME = "Current earnings (unclosed)"


# =========================================================================
# Helpers
# =========================================================================


def statement_side_amount(account: AccountInfo, balance: Decimal) -> Decimal:
    """
    Re-sign an as-of balance to the statement side of its section.

    As-of balances are signed by the account's own normal side.  Assets are
    presented debit-positive, liabilities and equity credit-positive, so a
    contra account (e.g. accumulated depreciation, credit-normal asset)
    reduces its section.
    """
    statement_debit = account.account_type == AccountType.ASSET
    account_debit = account.normal_balance == NormalBalance.DEBIT
    return balance if statement_debit == account_debit else -balance


def inventory_value(
    accounts: Iterable[AccountInfo],
    as_of_balances: Mapping[UUID, Decimal],
) -> Decimal:
    """Total as-of value of the given inventory accounts."""
    return sum(
        (
            statement_side_amount(a, as_of_balances.get(a.account_id, ZERO))
            for a in accounts
        ),
        ZERO,
    )


def compute_unclosed_earnings(
    accounts: Iterable[AccountInfo],
    as_of_balances: Mapping[UUID, Decimal],
) -> Decimal:
    """
    Cumulative revenue minus expense as of a date.

    Earnings not yet closed to retained earnings still sit on the revenue
    and expense accounts; the balance sheet carries them in equity.
    """
    net_credit = ZERO
    for account in accounts:
        if account.account_type not in PROFIT_LOSS_TYPES:
            continue
        balance = as_of_balances.get(account.account_id, ZERO)
        if account.normal_balance == NormalBalance.CREDIT:
            net_credit += balance
        else:
            net_credit -= balance
    return net_credit


def compute_total_revenue(report: ProfitLossReport) -> Decimal:
    return report.sales_revenue + report.service_revenue + report.other_revenue


def compute_total_profit_loss(report: ProfitLossReport) -> Decimal:
    """
    Profit before tax from the per-bucket figures.

    Current and deferred tax expense are excluded.
    """
    return (
        compute_total_revenue(report)
        - report.cost_of_sales
        - report.manufacturing_costs
        - report.rnd_expenses
        - report.sales_expenses
        - report.administrative_expenses
        - report.finance_expenses
        + report.finance_income
        + report.other_income
        - report.other_expenses
    )


def compute_balance_sheet_totals(
    buckets: Mapping[str, Decimal],
    epsilon: Decimal,
) -> dict[str, Decimal | bool]:
    """Derived Part C totals from the per-bucket figures."""
    total_current_assets = (
        buckets["cash_and_equivalents"]
        + buckets["securities"]
        + buckets["receivables"]
        + buckets["other_receivables"]
        + buckets["inventory"]
    )
    total_assets = total_current_assets + buckets["fixed_assets"]
    total_current_liabilities = (
        buckets["short_term_loans"] + buckets["payables"] + buckets["other_payables"]
    )
    total_equity = buckets["share_capital"] + buckets["retained_earnings"]
    total_l_and_e = (
        total_current_liabilities + buckets["long_term_liabilities"] + total_equity
    )
    difference = total_assets - total_l_and_e
    return {
        "total_current_assets": total_current_assets,
        "total_assets": total_assets,
        "total_current_liabilities": total_current_liabilities,
        "total_equity": total_equity,
        "total_liabilities_and_equity": total_l_and_e,
        "balance_difference": difference,
        "is_balanced": abs(difference) <= epsilon,
    }


# =========================================================================
# Part A -- Profit and loss
# =========================================================================


def build_profit_loss(
    accounts: Iterable[AccountInfo],
    period_balances: Mapping[UUID, Decimal],
    rule_set: ClassificationRuleSet,
    opening_inventory: Decimal = ZERO,
    closing_inventory: Decimal = ZERO,
    quantum: Decimal = REPORT_QUANTUM,
) -> ProfitLossReport:
    """
    Build Part A from period (range-mode) balances.

    Only revenue and expense accounts participate.  Each account's amount is
    quantized before it is added to its bucket, so every bucket is exactly
    the sum of its reported lines.  Buckets with no accounts are zero.
    """
    totals = dict.fromkeys(PROFIT_LOSS_FIELDS.values(), ZERO)
    lines: list[StatementLine] = []

    for account in accounts:
        if account.account_type not in PROFIT_LOSS_TYPES:
            continue
        amount = round_money(period_balances.get(account.account_id, ZERO), quantum)
        bucket = classify(account, rule_set)
        totals[PROFIT_LOSS_FIELDS[bucket]] += amount
        if amount != ZERO:
            lines.append(
                StatementLine(
                    account_code=account.code,
                    account_name=account.name,
                    account_type=account.account_type,
                    bucket=bucket,
                    amount=amount,
                )
            )

    opening = round_money(opening_inventory, quantum)
    closing = round_money(closing_inventory, quantum)
    partial = ProfitLossReport(
        **totals,
        opening_inventory=opening,
        closing_inventory=closing,
        purchases=totals["cost_of_sales"] + closing - opening,
        lines=tuple(lines),
    )
    return dataclasses.replace(
        partial,
        total_revenue=compute_total_revenue(partial),
        total_profit_loss=compute_total_profit_loss(partial),
    )


# =========================================================================
# Part C -- Balance sheet
# =========================================================================


def build_balance_sheet(
    accounts: Iterable[AccountInfo],
    as_of_balances: Mapping[UUID, Decimal],
    rule_set: ClassificationRuleSet,
    epsilon: Decimal = Decimal("0.01"),
    unclosed_earnings: Decimal = ZERO,
    quantum: Decimal = REPORT_QUANTUM,
) -> BalanceSheetReport:
    """
    Build Part C from as-of balances at the period end.

    Revenue and expense accounts never appear as lines; their cumulative
    net arrives through ``unclosed_earnings`` and lands in retained
    earnings.  An imbalance is reported, never raised.
    """
    buckets = dict.fromkeys(BALANCE_SHEET_FIELDS.values(), ZERO)
    lines: list[StatementLine] = []

    for account in accounts:
        if account.account_type not in BALANCE_SHEET_TYPES:
            continue
        raw = as_of_balances.get(account.account_id, ZERO)
        amount = round_money(statement_side_amount(account, raw), quantum)
        bucket = classify(account, rule_set)
        buckets[BALANCE_SHEET_FIELDS[bucket]] += amount
        if amount != ZERO:
            lines.append(
                StatementLine(
                    account_code=account.code,
                    account_name=account.name,
                    account_type=account.account_type,
                    bucket=bucket,
                    amount=amount,
                )
            )

    earnings = round_money(unclosed_earnings, quantum)
    if earnings != ZERO:
        buckets["retained_earnings"] += earnings
        lines.append(
            StatementLine(
                account_code="",
                account_name=UNCLOSED_EARNINGS_NAME,
                account_type=AccountType.EQUITY,
                bucket=StatutoryBucket.RETAINED_EARNINGS,
                amount=earnings,
            )
        )

    return BalanceSheetReport(
        **buckets,
        **compute_balance_sheet_totals(buckets, epsilon),
        lines=tuple(lines),
    )


# =========================================================================
# Serialization helper
# =========================================================================


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    Convert any report dataclass to a plain dict for JSON serialization.

    Handles:
    - Decimal -> str (preserving precision)
    - UUID -> str
    - date -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
