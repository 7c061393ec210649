"""
Typed Exception Hierarchy for the Statutory Kernel.

Every error is a typed class with a machine-readable ``code`` attribute and
structured data attributes, so callers catch by type and API layers report
by code instead of parsing message strings.

    StatutoryKernelError (base)
    |
    +-- ReportRequestError
    |   +-- InvalidReportPeriodError
    |   +-- InvalidTaxYearError
    |   +-- UnsupportedExportFormatError
    |
    +-- LookupFailedError
    |   +-- CompanyNotFoundError
    |   +-- ReportNotFoundError
    |
    +-- ReportLifecycleError
    |   +-- InvalidStatusTransitionError
    |   +-- ReportGenerationCancelledError
    |
    +-- ConfigurationError
    |   +-- ClassificationRuleError
    |   +-- AdjustmentRuleError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Request         | INVALID_REPORT_PERIOD       | period_start >= period_end
                | INVALID_TAX_YEAR            | Tax year outside the accepted range
                | UNSUPPORTED_EXPORT_FORMAT   | Export format not recognised
----------------|-----------------------------|-----------------------------------------
Lookup          | COMPANY_NOT_FOUND           | Company id does not exist
                | REPORT_NOT_FOUND            | Report id missing for the company
----------------|-----------------------------|-----------------------------------------
Lifecycle       | INVALID_STATUS_TRANSITION   | Status change not in the workflow
                | REPORT_GENERATION_CANCELLED | Cancellation signal observed
----------------|-----------------------------|-----------------------------------------
Configuration   | CLASSIFICATION_RULE_ERROR   | Rule table inconsistent or incomplete
                | ADJUSTMENT_RULE_ERROR       | Adjustment rule cannot be built
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Financial content of a persisted
                |                             | report or posted entry modified

Data inconsistencies found while validating a generated report (imbalance,
recomputation mismatch) are NOT exceptions; they surface as warnings.
"""


class StatutoryKernelError(Exception):
    """
    Base exception for all statutory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "STATUTORY_KERNEL_ERROR"


# Request validation exceptions


class ReportRequestError(StatutoryKernelError):
    """Base exception for invalid report requests."""

    code: str = "REPORT_REQUEST_ERROR"


class InvalidReportPeriodError(ReportRequestError):
    """Reporting period start is not strictly before its end."""

    code: str = "INVALID_REPORT_PERIOD"

    def __init__(self, period_start: str, period_end: str):
        self.period_start = period_start
        self.period_end = period_end
        super().__init__(
            f"Period start {period_start} must be before period end {period_end}"
        )


class InvalidTaxYearError(ReportRequestError):
    """Tax year is outside the accepted range."""

    code: str = "INVALID_TAX_YEAR"

    def __init__(self, tax_year: int, min_year: int, max_year: int):
        self.tax_year = tax_year
        self.min_year = min_year
        self.max_year = max_year
        super().__init__(
            f"Tax year {tax_year} must be between {min_year} and {max_year}"
        )


class UnsupportedExportFormatError(ReportRequestError):
    """Requested export format is not supported."""

    code: str = "UNSUPPORTED_EXPORT_FORMAT"

    def __init__(self, export_format: str, supported: tuple[str, ...]):
        self.export_format = export_format
        self.supported = list(supported)
        super().__init__(
            f"Unsupported export format '{export_format}'. "
            f"Supported: {', '.join(supported)}"
        )


# Lookup exceptions


class LookupFailedError(StatutoryKernelError):
    """Base exception for missing entities."""

    code: str = "LOOKUP_FAILED"


class CompanyNotFoundError(LookupFailedError):
    """Company with given ID was not found."""

    code: str = "COMPANY_NOT_FOUND"

    def __init__(self, company_id: str):
        self.company_id = company_id
        super().__init__(f"Company not found: {company_id}")


class ReportNotFoundError(LookupFailedError):
    """Statutory report with given ID was not found for the company."""

    code: str = "REPORT_NOT_FOUND"

    def __init__(self, report_id: str, company_id: str):
        self.report_id = report_id
        self.company_id = company_id
        super().__init__(f"Report {report_id} not found for company {company_id}")


# Lifecycle exceptions


class ReportLifecycleError(StatutoryKernelError):
    """Base exception for report lifecycle errors."""

    code: str = "REPORT_LIFECYCLE_ERROR"


class InvalidStatusTransitionError(ReportLifecycleError):
    """Requested status change is not a defined workflow transition."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, report_id: str, from_status: str, to_status: str):
        self.report_id = report_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Report {report_id} cannot move from '{from_status}' to '{to_status}'"
        )


class ReportGenerationCancelledError(ReportLifecycleError):
    """Report generation was cancelled before persistence."""

    code: str = "REPORT_GENERATION_CANCELLED"

    def __init__(self, company_id: str, stage: str, completed: int = 0, total: int = 0):
        self.company_id = company_id
        self.stage = stage
        self.completed = completed
        self.total = total
        super().__init__(
            f"Report generation for company {company_id} cancelled during "
            f"{stage} ({completed}/{total} balances fetched)"
        )


# Configuration exceptions


class ConfigurationError(StatutoryKernelError):
    """Base exception for invalid reporting configuration."""

    code: str = "CONFIGURATION_ERROR"


class ClassificationRuleError(ConfigurationError):
    """Classification rule table is inconsistent or incomplete."""

    code: str = "CLASSIFICATION_RULE_ERROR"

    def __init__(self, rule_set: str, reason: str):
        self.rule_set = rule_set
        self.reason = reason
        super().__init__(f"Invalid classification rule set '{rule_set}': {reason}")


class AdjustmentRuleError(ConfigurationError):
    """Tax adjustment rule definition cannot be built."""

    code: str = "ADJUSTMENT_RULE_ERROR"

    def __init__(self, rule_name: str, reason: str):
        self.rule_name = rule_name
        self.reason = reason
        super().__init__(f"Invalid adjustment rule '{rule_name}': {reason}")


# Immutability-related exceptions


class ImmutabilityError(StatutoryKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Posted journal entries, their lines, and the financial content of
    generated statutory reports are immutable.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
