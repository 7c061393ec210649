"""
Sub-report payload serialization.

The three sub-reports are stored as canonical JSON text (sorted keys, no
whitespace, Decimals as strings).  The content hash is computed over the
exact stored strings, so serialization must be deterministic.
"""

from __future__ import annotations

import json
from datetime import date

from statutory_kernel.utils.hashing import canonicalize_json, hash_report_content
from statutory_modules.form6111.models import (
    BalanceSheetReport,
    ProfitLossReport,
    TaxAdjustmentReport,
)
from statutory_modules.form6111.statements import render_to_dict


def serialize_part(part: ProfitLossReport | TaxAdjustmentReport | BalanceSheetReport) -> str:
    """Canonical JSON text for one sub-report."""
    return canonicalize_json(render_to_dict(part))


def parse_profit_loss(payload: str) -> ProfitLossReport:
    return ProfitLossReport.from_dict(json.loads(payload))


def parse_tax_adjustments(payload: str) -> TaxAdjustmentReport:
    return TaxAdjustmentReport.from_dict(json.loads(payload))


def parse_balance_sheet(payload: str) -> BalanceSheetReport:
    return BalanceSheetReport.from_dict(json.loads(payload))


def compute_report_hash(
    period_start: date,
    period_end: date,
    profit_loss: ProfitLossReport,
    tax_adjustments: TaxAdjustmentReport,
    balance_sheet: BalanceSheetReport,
) -> str:
    """Content hash of a report from its typed parts."""
    return hash_report_content(
        period_start,
        period_end,
        serialize_part(profit_loss),
        serialize_part(tax_adjustments),
        serialize_part(balance_sheet),
    )
