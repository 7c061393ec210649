"""
Israeli Form 6111 Module (``statutory_modules.form6111``).

Responsibility
--------------
Generates the Israeli Tax Authority Form 6111 ("uniform structure")
statutory report from a company's posted ledger: profit and loss (Part A),
tax adjustments (Part B) and balance sheet (Part C).  Reports are
classified by a configurable rule table, hashed, persisted immutably,
validated and exported.

Architecture position
---------------------
**Modules layer** -- reads the ledger through kernel selectors, writes
only its own ``statutory_reports`` table.  Statement and adjustment logic
is implemented as pure functions.

Invariants enforced
-------------------
* Only posted journal lines participate.
* Every bucket total is a Decimal; empty buckets are exactly zero.
* A stored report's figures never change; amendments are new reports.

Failure modes
-------------
* Input errors raise typed ``StatutoryKernelError`` subclasses.
* Data inconsistencies surface as validation warnings.

Audit relevance
---------------
Each report carries a SHA-256 content hash plus the rule-set name and
checksum that produced it.
"""

from statutory_modules.form6111.adjustments import (
    AccountBalanceAdjustmentRule,
    AdjustmentContext,
    AdjustmentRule,
    FixedAdjustmentRule,
    build_adjustment_rule,
    calculate_tax_adjustments,
)
from statutory_modules.form6111.classifier import (
    ClassificationRuleSet,
    KeywordRule,
    PrefixRule,
    TypeDefaultRule,
    classify,
    default_rule_set,
)
from statutory_modules.form6111.config import Form6111Config
from statutory_modules.form6111.export import parse_json_export
from statutory_modules.form6111.ledger import (
    LedgerReader,
    SessionFactoryLedgerReader,
    SessionLedgerReader,
)
from statutory_modules.form6111.models import (
    AdjustmentCategory,
    BalanceSheetReport,
    ExportedReport,
    ExportFormat,
    ProfitLossReport,
    ReportStatus,
    StatementLine,
    StatutoryBucket,
    StatutoryReport,
    TaxAdjustmentLine,
    TaxAdjustmentReport,
    ValidationResult,
)
from statutory_modules.form6111.orm import StatutoryReportModel
from statutory_modules.form6111.service import Form6111Service
from statutory_modules.form6111.workflows import STATUTORY_REPORT_WORKFLOW

__all__ = [
    # Service
    "Form6111Service",
    # Config
    "Form6111Config",
    # Classification
    "ClassificationRuleSet",
    "PrefixRule",
    "KeywordRule",
    "TypeDefaultRule",
    "classify",
    "default_rule_set",
    # Adjustments
    "AdjustmentRule",
    "AdjustmentContext",
    "FixedAdjustmentRule",
    "AccountBalanceAdjustmentRule",
    "build_adjustment_rule",
    "calculate_tax_adjustments",
    # Ledger access
    "LedgerReader",
    "SessionLedgerReader",
    "SessionFactoryLedgerReader",
    # Models
    "StatutoryBucket",
    "ReportStatus",
    "AdjustmentCategory",
    "ExportFormat",
    "StatementLine",
    "ProfitLossReport",
    "BalanceSheetReport",
    "TaxAdjustmentLine",
    "TaxAdjustmentReport",
    "StatutoryReport",
    "ValidationResult",
    "ExportedReport",
    "parse_json_export",
    # ORM
    "StatutoryReportModel",
    # Workflow
    "STATUTORY_REPORT_WORKFLOW",
]
