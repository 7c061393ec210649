"""
Form 6111 Domain Models (``statutory_modules.form6111.models``).

Responsibility
--------------
Frozen dataclass value objects for the three parts of the Form 6111
statutory report (profit and loss, tax adjustments, balance sheet), the
assembled ``StatutoryReport``, validation results and export artifacts.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Sub-reports are
strongly typed everywhere except the storage boundary, where ``orm.py``
keeps them as canonical JSON text and deserializes once via ``from_dict``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields are ``Decimal`` -- NEVER ``float`` -- and default to
  ``Decimal("0")``, so an empty bucket is zero, never None.
* Every ``StatutoryBucket`` belongs to exactly one ``AccountType``.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from statutory_kernel.models.account import AccountType

ZERO = Decimal("0")


def _dec(value: Any) -> Decimal:
    return Decimal(str(value)) if value is not None else ZERO


# =========================================================================
# Enums
# =========================================================================


class StatutoryBucket(str, Enum):
    """Fixed Form 6111 reporting categories."""

    # revenue
    SALES_REVENUE = "sales_revenue"
    SERVICE_REVENUE = "service_revenue"
    OTHER_REVENUE = "other_revenue"
    FINANCE_INCOME = "finance_income"
    OTHER_INCOME = "other_income"
    # expense
    COST_OF_SALES = "cost_of_sales"
    MANUFACTURING_COSTS = "manufacturing_costs"
    RND_EXPENSE = "rnd_expense"
    SALES_EXPENSE = "sales_expense"
    ADMINISTRATIVE_EXPENSE = "administrative_expense"
    FINANCE_EXPENSE = "finance_expense"
    OTHER_EXPENSE = "other_expense"
    CURRENT_TAX_EXPENSE = "current_tax_expense"
    DEFERRED_TAX_EXPENSE = "deferred_tax_expense"
    # asset
    CASH_AND_EQUIVALENTS = "cash_and_equivalents"
    SECURITIES = "securities"
    RECEIVABLES = "receivables"
    OTHER_RECEIVABLES = "other_receivables"
    INVENTORY = "inventory"
    FIXED_ASSETS = "fixed_assets"
    # liability
    SHORT_TERM_LOANS = "short_term_loans"
    PAYABLES = "payables"
    OTHER_PAYABLES = "other_payables"
    LONG_TERM_LIABILITIES = "long_term_liabilities"
    # equity
    SHARE_CAPITAL = "share_capital"
    RETAINED_EARNINGS = "retained_earnings"

    @property
    def account_type(self) -> AccountType:
        """The account type whose accounts may land in this bucket."""
        return BUCKET_ACCOUNT_TYPES[self]


BUCKET_ACCOUNT_TYPES: dict[StatutoryBucket, AccountType] = {
    **dict.fromkeys(
        (
            StatutoryBucket.SALES_REVENUE,
            StatutoryBucket.SERVICE_REVENUE,
            StatutoryBucket.OTHER_REVENUE,
            StatutoryBucket.FINANCE_INCOME,
            StatutoryBucket.OTHER_INCOME,
        ),
        AccountType.REVENUE,
    ),
    **dict.fromkeys(
        (
            StatutoryBucket.COST_OF_SALES,
            StatutoryBucket.MANUFACTURING_COSTS,
            StatutoryBucket.RND_EXPENSE,
            StatutoryBucket.SALES_EXPENSE,
            StatutoryBucket.ADMINISTRATIVE_EXPENSE,
            StatutoryBucket.FINANCE_EXPENSE,
            StatutoryBucket.OTHER_EXPENSE,
            StatutoryBucket.CURRENT_TAX_EXPENSE,
            StatutoryBucket.DEFERRED_TAX_EXPENSE,
        ),
        AccountType.EXPENSE,
    ),
    **dict.fromkeys(
        (
            StatutoryBucket.CASH_AND_EQUIVALENTS,
            StatutoryBucket.SECURITIES,
            StatutoryBucket.RECEIVABLES,
            StatutoryBucket.OTHER_RECEIVABLES,
            StatutoryBucket.INVENTORY,
            StatutoryBucket.FIXED_ASSETS,
        ),
        AccountType.ASSET,
    ),
    **dict.fromkeys(
        (
            StatutoryBucket.SHORT_TERM_LOANS,
            StatutoryBucket.PAYABLES,
            StatutoryBucket.OTHER_PAYABLES,
            StatutoryBucket.LONG_TERM_LIABILITIES,
        ),
        AccountType.LIABILITY,
    ),
    **dict.fromkeys(
        (StatutoryBucket.SHARE_CAPITAL, StatutoryBucket.RETAINED_EARNINGS),
        AccountType.EQUITY,
    ),
}


class ReportStatus(str, Enum):
    """Statutory report lifecycle status."""

    GENERATED = "generated"
    REVIEWED = "reviewed"
    FILED = "filed"


class AdjustmentCategory(str, Enum):
    """Part B adjustment categories."""

    NON_DEDUCTIBLE = "non_deductible"
    TIMING_DIFFERENCE = "timing_difference"
    DEPRECIATION_DIFFERENCE = "depreciation_difference"


class ExportFormat(str, Enum):
    """Supported export formats."""

    JSON = "json"
    XLSX = "xlsx"


# =========================================================================
# Statement lines (audit trail)
# =========================================================================


@dataclass(frozen=True)
class StatementLine:
    """One account's contribution to a bucket."""

    account_code: str
    account_name: str
    account_type: AccountType
    bucket: StatutoryBucket
    amount: Decimal

    @classmethod
    def from_dict(cls, data: dict) -> StatementLine:
        return cls(
            account_code=data["account_code"],
            account_name=data["account_name"],
            account_type=AccountType(data["account_type"]),
            bucket=StatutoryBucket(data["bucket"]),
            amount=_dec(data["amount"]),
        )


def _lines_from(data: dict) -> tuple[StatementLine, ...]:
    return tuple(StatementLine.from_dict(item) for item in data.get("lines") or ())


def _decimal_fields_from(cls, data: dict, skip: tuple[str, ...]) -> dict[str, Decimal]:
    return {
        f.name: _dec(data.get(f.name))
        for f in dataclasses.fields(cls)
        if f.name not in skip
    }


# =========================================================================
# Part A -- Profit and loss
# =========================================================================


@dataclass(frozen=True)
class ProfitLossReport:
    """
    Form 6111 profit and loss (Part A).

    total_profit_loss is profit before tax:
        total_revenue
        - cost_of_sales - manufacturing_costs - rnd_expenses
        - sales_expenses - administrative_expenses - finance_expenses
        + finance_income + other_income - other_expenses
    Current and deferred tax are reported but not deducted.
    """

    sales_revenue: Decimal = ZERO
    service_revenue: Decimal = ZERO
    other_revenue: Decimal = ZERO
    total_revenue: Decimal = ZERO
    cost_of_sales: Decimal = ZERO
    opening_inventory: Decimal = ZERO
    purchases: Decimal = ZERO
    closing_inventory: Decimal = ZERO
    manufacturing_costs: Decimal = ZERO
    rnd_expenses: Decimal = ZERO
    sales_expenses: Decimal = ZERO
    administrative_expenses: Decimal = ZERO
    finance_expenses: Decimal = ZERO
    finance_income: Decimal = ZERO
    other_income: Decimal = ZERO
    other_expenses: Decimal = ZERO
    current_tax_expense: Decimal = ZERO
    deferred_tax_expense: Decimal = ZERO
    total_profit_loss: Decimal = ZERO
    lines: tuple[StatementLine, ...] = ()

    @property
    def gross_profit(self) -> Decimal:
        return self.total_revenue - self.cost_of_sales - self.manufacturing_costs

    @property
    def operating_profit(self) -> Decimal:
        return (
            self.gross_profit
            - self.rnd_expenses
            - self.sales_expenses
            - self.administrative_expenses
        )

    @property
    def net_finance_result(self) -> Decimal:
        return self.finance_income - self.finance_expenses

    @property
    def profit_after_tax(self) -> Decimal:
        return self.total_profit_loss - self.current_tax_expense - self.deferred_tax_expense

    @classmethod
    def from_dict(cls, data: dict) -> ProfitLossReport:
        return cls(**_decimal_fields_from(cls, data, ("lines",)), lines=_lines_from(data))


# =========================================================================
# Part C -- Balance sheet
# =========================================================================


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Form 6111 balance sheet (Part C) as of the period end.

    balance_difference = total_assets - total_liabilities_and_equity;
    is_balanced when |balance_difference| <= epsilon.
    """

    cash_and_equivalents: Decimal = ZERO
    securities: Decimal = ZERO
    receivables: Decimal = ZERO
    other_receivables: Decimal = ZERO
    inventory: Decimal = ZERO
    total_current_assets: Decimal = ZERO
    fixed_assets: Decimal = ZERO
    total_assets: Decimal = ZERO
    short_term_loans: Decimal = ZERO
    payables: Decimal = ZERO
    other_payables: Decimal = ZERO
    total_current_liabilities: Decimal = ZERO
    long_term_liabilities: Decimal = ZERO
    share_capital: Decimal = ZERO
    retained_earnings: Decimal = ZERO
    total_equity: Decimal = ZERO
    total_liabilities_and_equity: Decimal = ZERO
    balance_difference: Decimal = ZERO
    is_balanced: bool = True
    lines: tuple[StatementLine, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> BalanceSheetReport:
        return cls(
            **_decimal_fields_from(cls, data, ("lines", "is_balanced")),
            is_balanced=bool(data.get("is_balanced", True)),
            lines=_lines_from(data),
        )


# =========================================================================
# Part B -- Tax adjustments
# =========================================================================


@dataclass(frozen=True)
class TaxAdjustmentLine:
    """One adjustment rule's signed contribution to taxable income."""

    rule_name: str
    field_code: str
    description: str
    amount: Decimal
    category: AdjustmentCategory
    reason: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> TaxAdjustmentLine:
        return cls(
            rule_name=data["rule_name"],
            field_code=data["field_code"],
            description=data["description"],
            amount=_dec(data["amount"]),
            category=AdjustmentCategory(data["category"]),
            reason=data.get("reason", ""),
        )


@dataclass(frozen=True)
class TaxAdjustmentReport:
    """
    Form 6111 reconciliation from accounting profit to taxable income (Part B).

    taxable_income = profit_loss_before_tax + total_tax_adjustments.
    final_taxable_income equals taxable_income (inflation adjustments are
    not modelled).
    """

    profit_loss_before_tax: Decimal = ZERO
    non_deductible_expenses: Decimal = ZERO
    timing_differences: Decimal = ZERO
    depreciation_differences: Decimal = ZERO
    total_tax_adjustments: Decimal = ZERO
    taxable_income: Decimal = ZERO
    final_taxable_income: Decimal = ZERO
    adjustment_details: tuple[TaxAdjustmentLine, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> TaxAdjustmentReport:
        return cls(
            **_decimal_fields_from(cls, data, ("adjustment_details",)),
            adjustment_details=tuple(
                TaxAdjustmentLine.from_dict(item)
                for item in data.get("adjustment_details") or ()
            ),
        )


# =========================================================================
# Assembled report
# =========================================================================


@dataclass(frozen=True)
class StatutoryReport:
    """A generated Form 6111 report (persisted aggregate, typed view)."""

    id: UUID
    company_id: UUID
    tax_year: int
    period_start: date
    period_end: date
    profit_loss: ProfitLossReport
    tax_adjustments: TaxAdjustmentReport
    balance_sheet: BalanceSheetReport
    data_hash: str
    status: ReportStatus
    generated_at: datetime
    generated_by: str
    currency: str = "ILS"
    notes: str | None = None
    rule_set_name: str = ""
    rule_set_checksum: str = ""
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a persisted report."""

    report_id: UUID
    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    info_messages: tuple[str, ...] = ()
    is_balance_sheet_balanced: bool = False
    all_required_fields_present: bool = False
    data_consistency_passed: bool = False


@dataclass(frozen=True)
class ExportedReport:
    """A serialized report file."""

    file_name: str
    content: bytes
    media_type: str
    export_format: ExportFormat
