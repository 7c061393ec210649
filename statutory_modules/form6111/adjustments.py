"""
Tax Adjustment Calculator (``statutory_modules.form6111.adjustments``).

Responsibility
--------------
Reconciles accounting profit (Part A ``total_profit_loss``) to taxable
income (Part B) through an ordered list of pluggable adjustment rules.

Architecture position
---------------------
**Modules layer** -- pure.  Rules receive everything they need in an
``AdjustmentContext`` built by the service; no rule performs I/O.

Invariants enforced
-------------------
* ``taxable_income = profit_loss_before_tax + sum(line amounts)``.
* ``final_taxable_income = taxable_income``.
* No rules -> every adjustment is ``Decimal("0")`` and taxable income
  equals accounting profit.
* Rules are evaluated in configured order; lines appear in that order.

Failure modes
-------------
* ``AdjustmentRuleError`` for an unknown ``kind``, an unknown category,
  or a rule definition missing required keys.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from statutory_kernel.db.types import REPORT_QUANTUM, round_money
from statutory_kernel.exceptions import AdjustmentRuleError
from statutory_kernel.logging_config import get_logger
from statutory_kernel.selectors.ledger_selector import AccountInfo
from statutory_modules.form6111.models import (
    AdjustmentCategory,
    ProfitLossReport,
    TaxAdjustmentLine,
    TaxAdjustmentReport,
)

logger = get_logger("modules.form6111.adjustments")

ZERO = Decimal("0")

CATEGORY_FIELDS: dict[AdjustmentCategory, str] = {
    AdjustmentCategory.NON_DEDUCTIBLE: "non_deductible_expenses",
    AdjustmentCategory.TIMING_DIFFERENCE: "timing_differences",
    AdjustmentCategory.DEPRECIATION_DIFFERENCE: "depreciation_differences",
}


@dataclass(frozen=True)
class AdjustmentContext:
    """Read-only inputs available to adjustment rules."""

    company_id: UUID
    period_start: date
    period_end: date
    profit_loss: ProfitLossReport
    accounts: tuple[AccountInfo, ...] = ()
    period_balances: Mapping[UUID, Decimal] = field(default_factory=dict)


@runtime_checkable
class AdjustmentRule(Protocol):
    """A Part B rule producing one signed adjustment line."""

    name: str

    def evaluate(self, context: AdjustmentContext) -> TaxAdjustmentLine:
        ...


# =========================================================================
# Built-in rules
# =========================================================================


@dataclass(frozen=True)
class FixedAdjustmentRule:
    """A constant adjustment, e.g. a known non-deductible fine."""

    name: str
    amount: Decimal
    category: AdjustmentCategory
    field_code: str
    description: str = ""
    reason: str = ""

    def evaluate(self, context: AdjustmentContext) -> TaxAdjustmentLine:
        return TaxAdjustmentLine(
            rule_name=self.name,
            field_code=self.field_code,
            description=self.description or self.name,
            amount=self.amount,
            category=self.category,
            reason=self.reason,
        )


@dataclass(frozen=True)
class AccountBalanceAdjustmentRule:
    """
    ``rate`` times the period balance of the matched accounts.

    An account matches when its code starts with any of ``account_prefixes``
    or its name contains any of ``keywords`` (case-insensitive).  A rate of 1
    adds back the whole balance (non-deductible); a negative rate deducts.
    """

    name: str
    category: AdjustmentCategory
    field_code: str
    account_prefixes: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    rate: Decimal = Decimal("1")
    description: str = ""

    def matches(self, account: AccountInfo) -> bool:
        if any(account.code.startswith(p) for p in self.account_prefixes):
            return True
        name = account.name.casefold()
        return any(k.casefold() in name for k in self.keywords)

    def evaluate(self, context: AdjustmentContext) -> TaxAdjustmentLine:
        matched = [a for a in context.accounts if self.matches(a)]
        base = sum(
            (context.period_balances.get(a.account_id, ZERO) for a in matched),
            ZERO,
        )
        codes = ", ".join(a.code for a in matched) or "none"
        return TaxAdjustmentLine(
            rule_name=self.name,
            field_code=self.field_code,
            description=self.description or self.name,
            amount=base * self.rate,
            category=self.category,
            reason=f"{self.rate} x {base} from accounts {codes}",
        )


# =========================================================================
# Rule registry
# =========================================================================


def _require(data: Mapping[str, Any], key: str) -> Any:
    if key not in data:
        raise AdjustmentRuleError(str(data.get("name", "<unnamed>")), f"missing '{key}'")
    return data[key]


def _category(data: Mapping[str, Any]) -> AdjustmentCategory:
    value = _require(data, "category")
    try:
        return AdjustmentCategory(value)
    except ValueError as exc:
        raise AdjustmentRuleError(
            str(data.get("name", "<unnamed>")), f"unknown category {value!r}",
        ) from exc


def _decimal(data: Mapping[str, Any], key: str, default: str | None = None) -> Decimal:
    raw = data.get(key, default) if default is not None else _require(data, key)
    try:
        return Decimal(str(raw))
    except InvalidOperation as exc:
        raise AdjustmentRuleError(
            str(data.get("name", "<unnamed>")), f"'{key}' is not a number: {raw!r}",
        ) from exc


def _build_fixed(data: Mapping[str, Any]) -> FixedAdjustmentRule:
    return FixedAdjustmentRule(
        name=str(_require(data, "name")),
        amount=_decimal(data, "amount"),
        category=_category(data),
        field_code=str(_require(data, "field_code")),
        description=str(data.get("description", "")),
        reason=str(data.get("reason", "")),
    )


def _build_account_balance(data: Mapping[str, Any]) -> AccountBalanceAdjustmentRule:
    rule = AccountBalanceAdjustmentRule(
        name=str(_require(data, "name")),
        category=_category(data),
        field_code=str(_require(data, "field_code")),
        account_prefixes=tuple(str(p) for p in data.get("account_prefixes") or ()),
        keywords=tuple(str(k) for k in data.get("keywords") or ()),
        rate=_decimal(data, "rate", "1"),
        description=str(data.get("description", "")),
    )
    if not rule.account_prefixes and not rule.keywords:
        raise AdjustmentRuleError(rule.name, "needs account_prefixes or keywords")
    return rule


ADJUSTMENT_RULE_KINDS = {
    "fixed": _build_fixed,
    "account_balance": _build_account_balance,
}


def build_adjustment_rule(data: Mapping[str, Any]) -> AdjustmentRule:
    """Build one rule from its config mapping via the ``kind`` registry."""
    kind = data.get("kind")
    builder = ADJUSTMENT_RULE_KINDS.get(kind)
    if builder is None:
        raise AdjustmentRuleError(
            str(data.get("name", "<unnamed>")),
            f"unknown kind {kind!r}; expected one of {sorted(ADJUSTMENT_RULE_KINDS)}",
        )
    return builder(data)


def build_adjustment_rules(
    definitions: Iterable[Mapping[str, Any] | AdjustmentRule],
) -> tuple[AdjustmentRule, ...]:
    """Build rules in order; already-built rule objects pass through."""
    rules = tuple(
        build_adjustment_rule(d) if isinstance(d, Mapping) else d
        for d in definitions
    )
    names = [r.name for r in rules]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise AdjustmentRuleError(duplicates[0], "duplicate rule name")
    return rules


# =========================================================================
# Calculation
# =========================================================================


def calculate_tax_adjustments(
    profit_loss: ProfitLossReport,
    rules: Iterable[AdjustmentRule],
    context: AdjustmentContext,
    quantum: Decimal = REPORT_QUANTUM,
) -> TaxAdjustmentReport:
    """
    Build Part B from Part A's profit before tax and the ordered rules.

    Pure.  Each line is quantized before aggregation so the reported
    subtotals are exactly the sum of the reported lines.
    """
    details: list[TaxAdjustmentLine] = []
    subtotals = dict.fromkeys(CATEGORY_FIELDS.values(), ZERO)

    for rule in rules:
        line = rule.evaluate(context)
        line = TaxAdjustmentLine(
            rule_name=line.rule_name,
            field_code=line.field_code,
            description=line.description,
            amount=round_money(line.amount, quantum),
            category=line.category,
            reason=line.reason,
        )
        details.append(line)
        subtotals[CATEGORY_FIELDS[line.category]] += line.amount

    profit_before_tax = profit_loss.total_profit_loss
    total = sum((line.amount for line in details), ZERO)
    taxable = profit_before_tax + total

    logger.debug(
        "tax_adjustments_calculated",
        extra={
            "rule_count": len(details),
            "profit_loss_before_tax": str(profit_before_tax),
            "total_tax_adjustments": str(total),
        },
    )

    return TaxAdjustmentReport(
        profit_loss_before_tax=profit_before_tax,
        **subtotals,
        total_tax_adjustments=total,
        taxable_income=taxable,
        final_taxable_income=taxable,
        adjustment_details=tuple(details),
    )
