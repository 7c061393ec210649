"""
Form 6111 ORM Persistence Model (``statutory_modules.form6111.orm``).

Responsibility:
    SQLAlchemy ORM model persisting generated ``StatutoryReport`` DTOs.
    The three sub-reports are stored as canonical JSON text; ``to_dto()``
    deserializes them once into typed dataclasses.

Architecture position:
    **Modules layer** -- persistence companion to ``form6111.models``.
    Inherits from ``TrackedBase`` (kernel DB base) which provides:
    id (UUID PK, auto-generated), created_at, updated_at,
    created_by_id (NOT NULL), updated_by_id (nullable).

Invariants enforced:
    - A row is written once per generation.  Only ``status`` and the audit
      columns may change afterwards; deletes are refused
      (``statutory_kernel.db.immutability``).
    - ``data_hash`` is SHA-256 over the period bounds and the three payload
      strings exactly as stored.
    - Enum fields stored as String(50) containing the enum .value string.

Audit relevance:
    The stored report is the compliance artifact that was (or will be)
    filed with the tax authority.  Rule-set name and checksum record which
    classification table produced it.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from statutory_kernel.db.base import TrackedBase
from statutory_kernel.db.types import Currency, PayloadHash, PayloadText


class StatutoryReportModel(TrackedBase):
    """
    ORM model for ``StatutoryReport`` -- one generated Form 6111 report.

    Contract:
        Regenerating a report for the same company and period creates a new
        row; earlier rows are kept for the audit trail.

    Guarantees:
        - ``status`` stores the ReportStatus enum .value string.
        - Payload columns hold canonical JSON (sorted keys, Decimals as
          strings).
    """

    __tablename__ = "statutory_reports"

    company_id: Mapped[UUID] = mapped_column(ForeignKey("companies.id"), nullable=False)
    tax_year: Mapped[int] = mapped_column(Integer, nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)

    profit_loss_data: Mapped[PayloadText] = mapped_column(nullable=False)
    tax_adjustments_data: Mapped[PayloadText] = mapped_column(nullable=False)
    balance_sheet_data: Mapped[PayloadText] = mapped_column(nullable=False)
    data_hash: Mapped[PayloadHash] = mapped_column(nullable=False)

    status: Mapped[str] = mapped_column(String(50), nullable=False, default="generated")
    generated_at: Mapped[datetime] = mapped_column(nullable=False)
    generated_by: Mapped[str] = mapped_column(String(100), nullable=False)
    currency: Mapped[Currency] = mapped_column(nullable=False, default="ILS")
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    rule_set_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    rule_set_checksum: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    __table_args__ = (
        Index("idx_statutory_report_company_year", "company_id", "tax_year"),
        Index("idx_statutory_report_status", "status"),
    )

    def to_dto(self, warnings: tuple[str, ...] = ()):
        from statutory_modules.form6111.models import ReportStatus, StatutoryReport
        from statutory_modules.form6111.serialization import (
            parse_balance_sheet,
            parse_profit_loss,
            parse_tax_adjustments,
        )
        return StatutoryReport(
            id=self.id,
            company_id=self.company_id,
            tax_year=self.tax_year,
            period_start=self.period_start,
            period_end=self.period_end,
            profit_loss=parse_profit_loss(self.profit_loss_data),
            tax_adjustments=parse_tax_adjustments(self.tax_adjustments_data),
            balance_sheet=parse_balance_sheet(self.balance_sheet_data),
            data_hash=self.data_hash,
            status=ReportStatus(self.status),
            generated_at=self.generated_at,
            generated_by=self.generated_by,
            currency=self.currency,
            notes=self.notes,
            rule_set_name=self.rule_set_name,
            rule_set_checksum=self.rule_set_checksum,
            warnings=warnings,
        )

    @classmethod
    def from_dto(cls, dto) -> "StatutoryReportModel":
        from statutory_modules.form6111.serialization import serialize_part
        return cls(
            id=dto.id,
            company_id=dto.company_id,
            tax_year=dto.tax_year,
            period_start=dto.period_start,
            period_end=dto.period_end,
            profit_loss_data=serialize_part(dto.profit_loss),
            tax_adjustments_data=serialize_part(dto.tax_adjustments),
            balance_sheet_data=serialize_part(dto.balance_sheet),
            data_hash=dto.data_hash,
            status=dto.status.value if hasattr(dto.status, "value") else dto.status,
            generated_at=dto.generated_at,
            generated_by=dto.generated_by,
            currency=dto.currency,
            notes=dto.notes,
            rule_set_name=dto.rule_set_name,
            rule_set_checksum=dto.rule_set_checksum,
            created_by_id=dto.generated_by,
        )

    def __repr__(self) -> str:
        return (
            f"<StatutoryReportModel {self.id} company={self.company_id} "
            f"year={self.tax_year} status={self.status}>"
        )
