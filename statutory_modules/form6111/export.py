"""
Form 6111 export (``statutory_modules.form6111.export``).

Responsibility
--------------
Serializes a ``StatutoryReport`` into a downloadable file:

* JSON -- the reference format.  Lossless: Decimals are strings, and
  ``parse_json_export`` restores every field of the report.
* XLSX -- one sheet per part with the Form 6111 field code beside each
  figure, written with openpyxl.

Pure apart from building the in-memory file; no database access.
"""

from __future__ import annotations

import io
import json
from datetime import date, datetime
from typing import Any
from uuid import UUID

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font

from statutory_kernel.selectors.company_selector import CompanyProfile
from statutory_modules.form6111.classifier import ClassificationRuleSet
from statutory_modules.form6111.models import (
    BalanceSheetReport,
    ExportedReport,
    ExportFormat,
    ProfitLossReport,
    ReportStatus,
    StatutoryReport,
    TaxAdjustmentReport,
)
from statutory_modules.form6111.statements import render_to_dict

EXPORT_FORMAT_VERSION = 1

MEDIA_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

# (attribute, field-code key, label)
PROFIT_LOSS_ROWS: tuple[tuple[str, str, str], ...] = (
    ("sales_revenue", "sales_revenue", "Sales revenue"),
    ("service_revenue", "service_revenue", "Service revenue"),
    ("other_revenue", "other_revenue", "Other revenue"),
    ("total_revenue", "total_revenue", "Total revenue"),
    ("cost_of_sales", "cost_of_sales", "Cost of sales"),
    ("opening_inventory", "opening_inventory", "Opening inventory"),
    ("purchases", "purchases", "Purchases"),
    ("closing_inventory", "closing_inventory", "Closing inventory"),
    ("manufacturing_costs", "manufacturing_costs", "Manufacturing costs"),
    ("rnd_expenses", "rnd_expense", "Research and development"),
    ("sales_expenses", "sales_expense", "Selling and marketing"),
    ("administrative_expenses", "administrative_expense", "General and administrative"),
    ("finance_expenses", "finance_expense", "Finance expenses"),
    ("finance_income", "finance_income", "Finance income"),
    ("other_income", "other_income", "Other income"),
    ("other_expenses", "other_expense", "Other expenses"),
    ("current_tax_expense", "current_tax_expense", "Current tax expense"),
    ("deferred_tax_expense", "deferred_tax_expense", "Deferred tax expense"),
    ("total_profit_loss", "total_profit_loss", "Profit (loss) before tax"),
)

TAX_ADJUSTMENT_ROWS: tuple[tuple[str, str, str], ...] = (
    ("profit_loss_before_tax", "profit_loss_before_tax", "Profit (loss) per financial statements"),
    ("non_deductible_expenses", "non_deductible_expenses", "Non-deductible expenses"),
    ("timing_differences", "timing_differences", "Timing differences"),
    ("depreciation_differences", "depreciation_differences", "Depreciation differences"),
    ("total_tax_adjustments", "total_tax_adjustments", "Total tax adjustments"),
    ("taxable_income", "taxable_income", "Taxable income"),
    ("final_taxable_income", "final_taxable_income", "Final taxable income"),
)

BALANCE_SHEET_ROWS: tuple[tuple[str, str, str], ...] = (
    ("cash_and_equivalents", "cash_and_equivalents", "Cash and cash equivalents"),
    ("securities", "securities", "Marketable securities"),
    ("receivables", "receivables", "Trade receivables"),
    ("other_receivables", "other_receivables", "Other receivables"),
    ("inventory", "inventory", "Inventory"),
    ("total_current_assets", "total_current_assets", "Total current assets"),
    ("fixed_assets", "fixed_assets", "Fixed assets"),
    ("total_assets", "total_assets", "Total assets"),
    ("short_term_loans", "short_term_loans", "Short-term loans"),
    ("payables", "payables", "Trade payables"),
    ("other_payables", "other_payables", "Other payables"),
    ("total_current_liabilities", "total_current_liabilities", "Total current liabilities"),
    ("long_term_liabilities", "long_term_liabilities", "Long-term liabilities"),
    ("share_capital", "share_capital", "Share capital"),
    ("retained_earnings", "retained_earnings", "Retained earnings"),
    ("total_equity", "total_equity", "Total equity"),
    ("total_liabilities_and_equity", "total_liabilities_and_equity", "Total liabilities and equity"),
)


def export_file_name(form_name: str, tax_id: str | None, tax_year: int, fmt: ExportFormat) -> str:
    return f"{form_name}_{tax_id or 'unknown'}_{tax_year}.{fmt.value}"


# =========================================================================
# JSON
# =========================================================================


def build_json_document(
    report: StatutoryReport,
    company: CompanyProfile | None,
    rule_set: ClassificationRuleSet,
    form_name: str = "Form6111",
    reporting_method: str = "Accrual",
    accounting_method: str = "Double",
) -> dict[str, Any]:
    """The export document as plain JSON-ready data."""
    return {
        "form": form_name,
        "format_version": EXPORT_FORMAT_VERSION,
        "company": render_to_dict(company) if company is not None else None,
        "metadata": {
            "report_id": str(report.id),
            "company_id": str(report.company_id),
            "tax_year": report.tax_year,
            "period_start": report.period_start.isoformat(),
            "period_end": report.period_end.isoformat(),
            "currency": report.currency,
            "reporting_method": reporting_method,
            "accounting_method": accounting_method,
            "generated_at": report.generated_at.isoformat(),
            "generated_by": report.generated_by,
            "status": report.status.value,
            "notes": report.notes,
            "rule_set_name": report.rule_set_name,
            "rule_set_checksum": report.rule_set_checksum,
            "data_hash": report.data_hash,
        },
        "profit_loss": render_to_dict(report.profit_loss),
        "tax_adjustments": render_to_dict(report.tax_adjustments),
        "balance_sheet": render_to_dict(report.balance_sheet),
        "field_codes": dict(sorted(rule_set.field_codes.items())),
        "warnings": list(report.warnings),
    }


def build_json_export(
    report: StatutoryReport,
    company: CompanyProfile | None,
    rule_set: ClassificationRuleSet,
    **header: str,
) -> bytes:
    document = build_json_document(report, company, rule_set, **header)
    return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")


def parse_json_export(content: bytes | str) -> StatutoryReport:
    """Rebuild the report from a JSON export."""
    data = json.loads(content)
    meta = data["metadata"]
    return StatutoryReport(
        id=UUID(meta["report_id"]),
        company_id=UUID(meta["company_id"]),
        tax_year=int(meta["tax_year"]),
        period_start=date.fromisoformat(meta["period_start"]),
        period_end=date.fromisoformat(meta["period_end"]),
        profit_loss=ProfitLossReport.from_dict(data["profit_loss"]),
        tax_adjustments=TaxAdjustmentReport.from_dict(data["tax_adjustments"]),
        balance_sheet=BalanceSheetReport.from_dict(data["balance_sheet"]),
        data_hash=meta["data_hash"],
        status=ReportStatus(meta["status"]),
        generated_at=datetime.fromisoformat(meta["generated_at"]),
        generated_by=meta["generated_by"],
        currency=meta["currency"],
        notes=meta.get("notes"),
        rule_set_name=meta.get("rule_set_name", ""),
        rule_set_checksum=meta.get("rule_set_checksum", ""),
        warnings=tuple(data.get("warnings") or ()),
    )


# =========================================================================
# XLSX
# =========================================================================


def _write_part(ws, title: str, part: object, rows, rule_set: ClassificationRuleSet) -> None:
    ws["A1"] = title
    ws["A1"].font = Font(bold=True, size=14)
    for col, heading in enumerate(("Field code", "Item", "Amount"), start=1):
        cell = ws.cell(row=3, column=col, value=heading)
        cell.font = Font(bold=True)

    row = 4
    for attr, key, label in rows:
        ws.cell(row=row, column=1, value=rule_set.field_code(key) or "")
        ws.cell(row=row, column=2, value=label)
        amount = ws.cell(row=row, column=3, value=getattr(part, attr))
        amount.number_format = "#,##0.00"
        amount.alignment = Alignment(horizontal="right")
        if key.startswith("total") or key.endswith("taxable_income"):
            for col in (1, 2, 3):
                ws.cell(row=row, column=col).font = Font(bold=True)
        row += 1

    ws.column_dimensions["A"].width = 12
    ws.column_dimensions["B"].width = 45
    ws.column_dimensions["C"].width = 20


def _write_lines(ws, report: StatutoryReport) -> None:
    ws.append(("Part", "Account code", "Account name", "Bucket", "Amount"))
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for part, lines in (("A", report.profit_loss.lines), ("C", report.balance_sheet.lines)):
        for line in lines:
            ws.append((part, line.account_code, line.account_name, line.bucket.value, line.amount))
    for line in report.tax_adjustments.adjustment_details:
        ws.append(("B", line.field_code, line.description, line.category.value, line.amount))


def build_xlsx_export(
    report: StatutoryReport,
    company: CompanyProfile | None,
    rule_set: ClassificationRuleSet,
    form_name: str = "Form6111",
    reporting_method: str = "Accrual",
    accounting_method: str = "Double",
) -> bytes:
    wb = Workbook()

    header = wb.active
    header.title = "Header"
    rows: list[tuple[str, Any]] = [
        ("Form", form_name),
        ("Company", company.name if company else ""),
        ("Tax id", company.tax_id if company else ""),
        ("Address", company.address if company else ""),
        ("Tax year", report.tax_year),
        ("Period start", report.period_start.isoformat()),
        ("Period end", report.period_end.isoformat()),
        ("Currency", report.currency),
        ("Reporting method", reporting_method),
        ("Accounting method", accounting_method),
        ("Status", report.status.value),
        ("Generated at", report.generated_at.isoformat()),
        ("Generated by", report.generated_by),
        ("Data hash", report.data_hash),
    ]
    for label, value in rows:
        header.append((label, value))
        header.cell(row=header.max_row, column=1).font = Font(bold=True)
    header.column_dimensions["A"].width = 20
    header.column_dimensions["B"].width = 70

    _write_part(wb.create_sheet("Part A"), "Profit and loss", report.profit_loss,
                PROFIT_LOSS_ROWS, rule_set)
    _write_part(wb.create_sheet("Part B"), "Tax adjustments", report.tax_adjustments,
                TAX_ADJUSTMENT_ROWS, rule_set)
    _write_part(wb.create_sheet("Part C"), "Balance sheet", report.balance_sheet,
                BALANCE_SHEET_ROWS, rule_set)
    _write_lines(wb.create_sheet("Lines"), report)

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def export(
    report: StatutoryReport,
    company: CompanyProfile | None,
    rule_set: ClassificationRuleSet,
    fmt: ExportFormat,
    form_name: str = "Form6111",
    reporting_method: str = "Accrual",
    accounting_method: str = "Double",
) -> ExportedReport:
    """Build the export file for ``fmt``."""
    builder = build_json_export if fmt == ExportFormat.JSON else build_xlsx_export
    content = builder(
        report,
        company,
        rule_set,
        form_name=form_name,
        reporting_method=reporting_method,
        accounting_method=accounting_method,
    )
    return ExportedReport(
        file_name=export_file_name(form_name, company.tax_id if company else None,
                                   report.tax_year, fmt),
        content=content,
        media_type=MEDIA_TYPES[fmt],
        export_format=fmt,
    )
