"""
Form 6111 Service (``statutory_modules.form6111.service``).

Responsibility
--------------
Orchestrates Form 6111 generation, validation, export, listing and status
changes by bridging the ledger reader and the report table to the pure
builders in ``classifier.py``, ``statements.py`` and ``adjustments.py``.

Architecture position
---------------------
**Modules layer** -- thin ERP glue.  ``Form6111Service`` is the sole
public entry point for statutory report operations.  Constructor:
``session`` + ``clock`` + ``config`` + optional ``ledger_reader``.

Invariants enforced
-------------------
* Generation has no side effects until the single insert of the fully
  assembled report; a failed or cancelled run leaves no row behind.
* All monetary amounts use ``Decimal`` -- NEVER ``float``.
* Data inconsistencies (imbalance, recomputation mismatch, hash mismatch)
  are warnings; they never block a report from existing.
* Status moves only along ``STATUTORY_REPORT_WORKFLOW``; financial
  columns are protected by the ORM immutability listeners.

Failure modes
-------------
* ``InvalidReportPeriodError`` / ``InvalidTaxYearError`` before any query.
* ``CompanyNotFoundError`` for an unknown company.
* ``ReportNotFoundError`` on export/status change of a missing report.
* ``UnsupportedExportFormatError`` for an unknown export format.
* ``InvalidStatusTransitionError`` outside the workflow.
* ``ReportGenerationCancelledError`` when the cancel signal fires.
* Database errors propagate unchanged; retrying is safe.

Audit relevance
---------------
Structured log events for every operation carry ``company_id`` and
``report_id`` through ``LogContext``.  Every report stores the rule-set
name and checksum that classified it plus a content hash over its
figures.
"""

from __future__ import annotations

import dataclasses
import threading
from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from statutory_kernel.domain.clock import Clock, SystemClock
from statutory_kernel.domain.periods import DateRange
from statutory_kernel.exceptions import (
    CompanyNotFoundError,
    InvalidReportPeriodError,
    InvalidStatusTransitionError,
    InvalidTaxYearError,
    ReportGenerationCancelledError,
    ReportNotFoundError,
    UnsupportedExportFormatError,
)
from statutory_kernel.logging_config import LogContext, get_logger
from statutory_kernel.models.account import AccountType
from statutory_kernel.selectors.company_selector import CompanySelector
from statutory_kernel.selectors.ledger_selector import AccountInfo
from statutory_kernel.utils.hashing import hash_report_content
from statutory_modules.form6111.adjustments import (
    AdjustmentContext,
    calculate_tax_adjustments,
)
from statutory_modules.form6111.classifier import account_prefix_mapping, classify
from statutory_modules.form6111.config import Form6111Config
from statutory_modules.form6111.export import export
from statutory_modules.form6111.ledger import (
    BalanceRequest,
    LedgerReader,
    SessionLedgerReader,
    fetch_balances,
)
from statutory_modules.form6111.models import (
    BalanceSheetReport,
    ExportedReport,
    ExportFormat,
    ProfitLossReport,
    ReportStatus,
    StatutoryBucket,
    StatutoryReport,
    TaxAdjustmentReport,
    ValidationResult,
)
from statutory_modules.form6111.orm import StatutoryReportModel
from statutory_modules.form6111.serialization import (
    compute_report_hash,
    parse_balance_sheet,
    parse_profit_loss,
    parse_tax_adjustments,
)
from statutory_modules.form6111.statements import (
    BALANCE_SHEET_FIELDS,
    BALANCE_SHEET_TYPES,
    PROFIT_LOSS_TYPES,
    build_balance_sheet,
    build_profit_loss,
    compute_balance_sheet_totals,
    compute_total_profit_loss,
    compute_total_revenue,
    compute_unclosed_earnings,
    inventory_value,
)
from statutory_modules.form6111.workflows import STATUTORY_REPORT_WORKFLOW

logger = get_logger("modules.form6111.service")

ZERO = Decimal("0")

PERIOD = "period"
AS_OF = "as_of"
OPENING = "opening"


class Form6111Service:
    """
    Israeli Form 6111 statutory report service.

    Contract
    --------
    * ``generate_report`` returns the persisted report as a typed DTO with
      the validation warnings attached.
    * ``validate_report`` never raises for a missing report; it returns an
      invalid ``ValidationResult``.

    Guarantees
    ----------
    * Financial logic lives in the pure builders; this class only loads,
      fans out, persists and logs.
    * Clock is injectable for deterministic testing.
    * The ledger reader is injectable; the default reads through
      ``session`` on a single worker.

    Non-goals
    ---------
    * Does NOT post journal entries or change ledger data.
    * Does NOT commit; the caller owns the transaction.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: Form6111Config | None = None,
        ledger_reader: LedgerReader | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or Form6111Config.with_defaults()
        self._reader = ledger_reader or SessionLedgerReader(session)
        self._companies = CompanySelector(session)

        logger.info(
            "form6111_service_initialized",
            extra={
                "rule_set": self._config.rule_set.name,
                "currency": self._config.currency,
                "max_workers": self._config.max_workers,
                "concurrent_reader": self._reader.concurrent_safe,
            },
        )

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _check_request(
        self,
        company_id: UUID,
        period_start: date,
        period_end: date,
        tax_year: int | None = None,
    ) -> None:
        if period_start >= period_end:
            logger.warning(
                "form6111_invalid_period",
                extra={
                    "period_start": period_start.isoformat(),
                    "period_end": period_end.isoformat(),
                },
            )
            raise InvalidReportPeriodError(period_start.isoformat(), period_end.isoformat())

        if tax_year is not None and not (
            self._config.min_tax_year <= tax_year <= self._config.max_tax_year
        ):
            logger.warning("form6111_invalid_tax_year", extra={"tax_year": tax_year})
            raise InvalidTaxYearError(
                tax_year, self._config.min_tax_year, self._config.max_tax_year,
            )

        if not self._companies.exists(company_id):
            logger.warning("form6111_company_not_found")
            raise CompanyNotFoundError(str(company_id))

    def _inventory_accounts(self, accounts: Sequence[AccountInfo]) -> list[AccountInfo]:
        """Configured inventory accounts, else assets classified as inventory."""
        codes = self._config.inventory_account_codes
        if codes:
            return [a for a in accounts if a.code in codes]
        return [
            a for a in accounts
            if a.account_type == AccountType.ASSET
            and classify(a, self._config.rule_set) == StatutoryBucket.INVENTORY
        ]

    def _balance_requests(
        self,
        period: DateRange,
        pl_accounts: Sequence[AccountInfo],
        bs_accounts: Sequence[AccountInfo],
        inventory_accounts: Sequence[AccountInfo],
    ) -> list[BalanceRequest]:
        requests = [BalanceRequest(a.account_id, period, PERIOD) for a in pl_accounts]

        as_of_accounts: dict[UUID, None] = dict.fromkeys(a.account_id for a in bs_accounts)
        as_of_accounts.update(dict.fromkeys(a.account_id for a in inventory_accounts))
        if self._config.include_unclosed_earnings:
            as_of_accounts.update(dict.fromkeys(a.account_id for a in pl_accounts))
        requests.extend(BalanceRequest(aid, period.end, AS_OF) for aid in as_of_accounts)

        requests.extend(
            BalanceRequest(a.account_id, period.day_before_start, OPENING)
            for a in inventory_accounts
        )
        return requests

    def _assemble(
        self,
        company_id: UUID,
        period: DateRange,
        cancel_event: threading.Event | None = None,
    ) -> tuple[ProfitLossReport, TaxAdjustmentReport, BalanceSheetReport]:
        """Fetch balances once and build all three parts."""
        cfg = self._config
        accounts = self._reader.list_accounts(company_id, active_only=False)
        pl_accounts = [a for a in accounts if a.account_type in PROFIT_LOSS_TYPES]
        bs_accounts = [a for a in accounts if a.account_type in BALANCE_SHEET_TYPES]
        inventory_accounts = self._inventory_accounts(accounts)

        balances = fetch_balances(
            self._reader,
            company_id,
            self._balance_requests(period, pl_accounts, bs_accounts, inventory_accounts),
            max_workers=cfg.max_workers,
            cancel_event=cancel_event,
        )
        period_balances = balances.get(PERIOD, {})
        as_of_balances = balances.get(AS_OF, {})

        profit_loss = build_profit_loss(
            pl_accounts,
            period_balances,
            cfg.rule_set,
            opening_inventory=inventory_value(inventory_accounts, balances.get(OPENING, {})),
            closing_inventory=inventory_value(inventory_accounts, as_of_balances),
            quantum=cfg.quantum,
        )
        unclosed = (
            compute_unclosed_earnings(pl_accounts, as_of_balances)
            if cfg.include_unclosed_earnings
            else ZERO
        )
        balance_sheet = build_balance_sheet(
            bs_accounts,
            as_of_balances,
            cfg.rule_set,
            epsilon=cfg.epsilon,
            unclosed_earnings=unclosed,
            quantum=cfg.quantum,
        )
        tax_adjustments = calculate_tax_adjustments(
            profit_loss,
            cfg.adjustment_rules,
            AdjustmentContext(
                company_id=company_id,
                period_start=period.start,
                period_end=period.end,
                profit_loss=profit_loss,
                accounts=tuple(pl_accounts),
                period_balances=period_balances,
            ),
            quantum=cfg.quantum,
        )
        logger.debug(
            "form6111_parts_assembled",
            extra={
                "account_count": len(accounts),
                "inventory_accounts": len(inventory_accounts),
                "total_profit_loss": str(profit_loss.total_profit_loss),
            },
        )
        return profit_loss, tax_adjustments, balance_sheet

    def _find_model(self, report_id: UUID, company_id: UUID) -> StatutoryReportModel | None:
        return self._session.execute(
            select(StatutoryReportModel).where(
                StatutoryReportModel.id == report_id,
                StatutoryReportModel.company_id == company_id,
            )
        ).scalar_one_or_none()

    def _require_model(self, report_id: UUID, company_id: UUID) -> StatutoryReportModel:
        model = self._find_model(report_id, company_id)
        if model is None:
            logger.warning("form6111_report_not_found")
            raise ReportNotFoundError(str(report_id), str(company_id))
        return model

    def _validate_model(self, model: StatutoryReportModel) -> ValidationResult:
        """Checks over a stored report.  Every finding is a warning."""
        eps = self._config.epsilon
        warnings: list[str] = []
        info: list[str] = []
        consistent = True

        payloads = {
            "profit and loss": model.profit_loss_data,
            "tax adjustments": model.tax_adjustments_data,
            "balance sheet": model.balance_sheet_data,
        }
        missing = [name for name, text in payloads.items() if not text]
        for name in missing:
            warnings.append(f"Missing {name} data")

        if not missing:
            stored_hash = hash_report_content(
                model.period_start,
                model.period_end,
                model.profit_loss_data,
                model.tax_adjustments_data,
                model.balance_sheet_data,
            )
            if stored_hash != model.data_hash:
                consistent = False
                warnings.append("Data integrity hash mismatch: report content has changed")

        balanced = False
        if not missing:
            try:
                pl = parse_profit_loss(model.profit_loss_data)
                tax = parse_tax_adjustments(model.tax_adjustments_data)
                bs = parse_balance_sheet(model.balance_sheet_data)
            except (ValueError, KeyError, ArithmeticError) as exc:
                logger.warning(
                    "form6111_payload_unreadable",
                    extra={"error": str(exc)},
                )
                warnings.append(f"Report data could not be read: {exc}")
                consistent = False
            else:
                balanced, bs_warnings = self._check_balance_sheet(bs, eps)
                warnings.extend(bs_warnings)
                pl_warnings = self._check_profit_loss(pl, eps)
                tax_warnings = self._check_tax_adjustments(pl, tax, eps)
                if pl_warnings or tax_warnings:
                    consistent = False
                warnings.extend(pl_warnings)
                warnings.extend(tax_warnings)

        info.append(
            f"Generated {model.generated_at.isoformat()} by {model.generated_by}"
        )
        info.append(f"Status: {model.status}")
        if model.rule_set_name:
            info.append(
                f"Rule set: {model.rule_set_name} ({model.rule_set_checksum[:12]})"
            )

        return ValidationResult(
            report_id=model.id,
            is_valid=True,
            errors=(),
            warnings=tuple(warnings),
            info_messages=tuple(info),
            is_balance_sheet_balanced=balanced,
            all_required_fields_present=not missing,
            data_consistency_passed=consistent and not missing,
        )

    @staticmethod
    def _check_balance_sheet(
        bs: BalanceSheetReport, eps: Decimal,
    ) -> tuple[bool, list[str]]:
        warnings: list[str] = []
        buckets = {name: getattr(bs, name) for name in BALANCE_SHEET_FIELDS.values()}
        totals = compute_balance_sheet_totals(buckets, eps)
        if (
            abs(totals["total_assets"] - bs.total_assets) > eps
            or abs(totals["total_liabilities_and_equity"] - bs.total_liabilities_and_equity) > eps
        ):
            warnings.append("Balance sheet totals do not match their components")
        balanced = bool(totals["is_balanced"]) and bs.is_balanced
        if not balanced:
            warnings.append(
                "Balance sheet is not balanced. "
                f"Difference: {totals['balance_difference']:,.2f}"
            )
        return balanced, warnings

    @staticmethod
    def _check_profit_loss(pl: ProfitLossReport, eps: Decimal) -> list[str]:
        warnings: list[str] = []
        if abs(compute_total_revenue(pl) - pl.total_revenue) > eps:
            warnings.append("Total revenue does not match revenue buckets")
        expected = compute_total_profit_loss(pl)
        if abs(expected - pl.total_profit_loss) > eps:
            warnings.append(
                "Profit/Loss calculation may be incorrect: "
                f"expected {expected:,.2f}, reported {pl.total_profit_loss:,.2f}"
            )
        return warnings

    @staticmethod
    def _check_tax_adjustments(
        pl: ProfitLossReport, tax: TaxAdjustmentReport, eps: Decimal,
    ) -> list[str]:
        warnings: list[str] = []
        if abs(tax.profit_loss_before_tax - pl.total_profit_loss) > eps:
            warnings.append("Tax adjustment base does not match profit before tax")
        total = sum((line.amount for line in tax.adjustment_details), ZERO)
        if abs(total - tax.total_tax_adjustments) > eps:
            warnings.append("Tax adjustment total does not match adjustment lines")
        if abs(tax.profit_loss_before_tax + tax.total_tax_adjustments - tax.taxable_income) > eps:
            warnings.append("Taxable income calculation may be incorrect")
        return warnings

    # =========================================================================
    # Public API
    # =========================================================================

    def generate_report(
        self,
        company_id: UUID,
        tax_year: int,
        period_start: date,
        period_end: date,
        notes: str | None = None,
        generated_by: str = "system",
        cancel_event: threading.Event | None = None,
    ) -> StatutoryReport:
        """
        Generate and persist a Form 6111 report.

        Args:
            company_id: Reporting company.
            tax_year: Tax year the report is filed for.
            period_start: First day of the reporting period (inclusive).
            period_end: Last day of the reporting period (inclusive).
            notes: Free-text notes stored with the report.
            generated_by: Actor id recorded on the report.
            cancel_event: Optional cancellation signal.

        Returns:
            The persisted StatutoryReport, with validation warnings.
        """
        with LogContext.bind(company_id=company_id, actor_id=generated_by):
            self._check_request(company_id, period_start, period_end, tax_year)
            cfg = self._config

            logger.info(
                "form6111_generation_started",
                extra={
                    "tax_year": tax_year,
                    "period_start": period_start.isoformat(),
                    "period_end": period_end.isoformat(),
                },
            )
            profit_loss, tax_adjustments, balance_sheet = self._assemble(
                company_id, DateRange(period_start, period_end), cancel_event,
            )

            if cancel_event is not None and cancel_event.is_set():
                logger.warning("form6111_generation_cancelled", extra={"stage": "before_persist"})
                raise ReportGenerationCancelledError(str(company_id), "before_persist")

            report = StatutoryReport(
                id=uuid4(),
                company_id=company_id,
                tax_year=tax_year,
                period_start=period_start,
                period_end=period_end,
                profit_loss=profit_loss,
                tax_adjustments=tax_adjustments,
                balance_sheet=balance_sheet,
                data_hash=compute_report_hash(
                    period_start, period_end, profit_loss, tax_adjustments, balance_sheet,
                ),
                status=ReportStatus.GENERATED,
                generated_at=self._clock.now(),
                generated_by=generated_by,
                currency=cfg.currency,
                notes=notes,
                rule_set_name=cfg.rule_set.name,
                rule_set_checksum=cfg.rule_set.checksum,
            )
            model = StatutoryReportModel.from_dto(report)
            self._session.add(model)
            self._session.flush()

            with LogContext.bind(report_id=report.id):
                validation = self._validate_model(model)
                for warning in validation.warnings:
                    logger.warning("form6111_validation_warning", extra={"warning": warning})

                logger.info(
                    "form6111_generated",
                    extra={
                        "tax_year": tax_year,
                        "total_profit_loss": str(profit_loss.total_profit_loss),
                        "taxable_income": str(tax_adjustments.taxable_income),
                        "total_assets": str(balance_sheet.total_assets),
                        "is_balanced": balance_sheet.is_balanced,
                        "warning_count": len(validation.warnings),
                        "data_hash": report.data_hash,
                    },
                )
            return dataclasses.replace(report, warnings=validation.warnings)

    def validate_report(self, report_id: UUID, company_id: UUID) -> ValidationResult:
        """
        Validate a stored report.

        A missing report yields ``is_valid=False``; every other finding is a
        warning on a valid result.
        """
        with LogContext.bind(company_id=company_id, report_id=report_id):
            model = self._find_model(report_id, company_id)
            if model is None:
                logger.warning("form6111_validation_report_missing")
                return ValidationResult(
                    report_id=report_id,
                    is_valid=False,
                    errors=("Form 6111 not found",),
                )

            result = self._validate_model(model)
            logger.info(
                "form6111_validated",
                extra={
                    "is_valid": result.is_valid,
                    "warning_count": len(result.warnings),
                    "is_balanced": result.is_balance_sheet_balanced,
                },
            )
            return result

    def get_report(self, report_id: UUID, company_id: UUID) -> StatutoryReport | None:
        """Load one report, or None when it does not exist for the company."""
        model = self._find_model(report_id, company_id)
        return model.to_dto() if model is not None else None

    def list_reports(self, company_id: UUID, tax_year: int | None = None) -> list[StatutoryReport]:
        """Reports for a company, newest tax year first, then newest generation."""
        query = select(StatutoryReportModel).where(
            StatutoryReportModel.company_id == company_id,
        )
        if tax_year is not None:
            query = query.where(StatutoryReportModel.tax_year == tax_year)
        query = query.order_by(
            StatutoryReportModel.tax_year.desc(),
            StatutoryReportModel.generated_at.desc(),
        )
        reports = [m.to_dto() for m in self._session.execute(query).scalars()]
        logger.debug(
            "form6111_reports_listed",
            extra={
                "company_id": str(company_id),
                "tax_year": tax_year,
                "report_count": len(reports),
            },
        )
        return reports

    def export_report(
        self,
        report_id: UUID,
        company_id: UUID,
        format: ExportFormat | str = ExportFormat.JSON,
    ) -> ExportedReport:
        """
        Export a stored report.

        Raises:
            UnsupportedExportFormatError: for a format other than json/xlsx.
            ReportNotFoundError: if the report does not exist for the company.
        """
        with LogContext.bind(company_id=company_id, report_id=report_id):
            try:
                fmt = ExportFormat(format.lower() if isinstance(format, str) else format)
            except ValueError:
                logger.warning("form6111_export_format_unsupported", extra={"format": format})
                raise UnsupportedExportFormatError(
                    str(format), tuple(f.value for f in ExportFormat),
                ) from None

            model = self._require_model(report_id, company_id)
            cfg = self._config
            exported = export(
                model.to_dto(),
                self._companies.profile(company_id),
                cfg.rule_set,
                fmt,
                form_name=cfg.form_name,
                reporting_method=cfg.reporting_method,
                accounting_method=cfg.accounting_method,
            )
            logger.info(
                "form6111_exported",
                extra={
                    "format": fmt.value,
                    "file_name": exported.file_name,
                    "size_bytes": len(exported.content),
                },
            )
            return exported

    def update_report_status(
        self,
        report_id: UUID,
        company_id: UUID,
        new_status: ReportStatus | str,
        user_id: str,
    ) -> StatutoryReport:
        """
        Move a report along its lifecycle (generated -> reviewed -> filed).

        Raises:
            ReportNotFoundError: if the report does not exist for the company.
            InvalidStatusTransitionError: for any other transition.
        """
        with LogContext.bind(company_id=company_id, report_id=report_id, actor_id=user_id):
            model = self._require_model(report_id, company_id)
            target = (
                new_status.value if isinstance(new_status, ReportStatus)
                else str(new_status).strip().lower()
            )

            transition = STATUTORY_REPORT_WORKFLOW.find_transition(model.status, target)
            if transition is None:
                logger.warning(
                    "form6111_status_transition_rejected",
                    extra={"from_status": model.status, "to_status": target},
                )
                raise InvalidStatusTransitionError(str(report_id), model.status, target)

            previous = model.status
            model.status = target
            model.updated_by_id = user_id
            self._session.flush()

            logger.info(
                "form6111_status_updated",
                extra={
                    "from_status": previous,
                    "to_status": target,
                    "action": transition.action,
                },
            )
            return model.to_dto()

    def field_code_mapping(self) -> dict[str, str]:
        """Account-code prefix -> Form 6111 field code for the active rule set."""
        return account_prefix_mapping(self._config.rule_set)

    # =========================================================================
    # Single-part calculations (no persistence)
    # =========================================================================

    def calculate_profit_loss(
        self, company_id: UUID, period_start: date, period_end: date,
    ) -> ProfitLossReport:
        """Part A for a period without persisting a report."""
        return self._calculate(company_id, period_start, period_end)[0]

    def calculate_balance_sheet(
        self, company_id: UUID, period_start: date, period_end: date,
    ) -> BalanceSheetReport:
        """Part C as of ``period_end`` without persisting a report."""
        return self._calculate(company_id, period_start, period_end)[2]

    def calculate_tax_adjustments(
        self, company_id: UUID, period_start: date, period_end: date,
    ) -> TaxAdjustmentReport:
        """Part B for a period without persisting a report."""
        return self._calculate(company_id, period_start, period_end)[1]

    def _calculate(
        self, company_id: UUID, period_start: date, period_end: date,
    ) -> tuple[ProfitLossReport, TaxAdjustmentReport, BalanceSheetReport]:
        with LogContext.bind(company_id=company_id):
            self._check_request(company_id, period_start, period_end)
            return self._assemble(company_id, DateRange(period_start, period_end))
