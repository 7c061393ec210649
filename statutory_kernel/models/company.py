"""
Module: statutory_kernel.models.company
Responsibility: ORM persistence for companies (tenants).  Every account,
    journal entry and statutory report belongs to exactly one company.
Architecture position: Kernel > Models.  May import from db/base.py only.

Audit relevance:
    The company's legal name and tax id are printed in the header of every
    exported statutory report.
"""

from typing import TYPE_CHECKING

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from statutory_kernel.db.base import TrackedBase

if TYPE_CHECKING:
    from statutory_kernel.models.account import Account


class Company(TrackedBase):
    """
    Reporting entity (tenant).

    Contract:
        tax_id is unique across the system (uq_company_tax_id).
    """

    __tablename__ = "companies"

    __table_args__ = (
        UniqueConstraint("tax_id", name="uq_company_tax_id"),
        Index("idx_company_name", "name"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    tax_id: Mapped[str] = mapped_column(String(50), nullable=False)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    accounts: Mapped[list["Account"]] = relationship(
        back_populates="company",
        lazy="select",
    )

    def __repr__(self) -> str:
        return f"<Company {self.tax_id}: {self.name}>"
