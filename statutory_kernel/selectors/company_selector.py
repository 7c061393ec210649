"""
Module: statutory_kernel.selectors.company_selector
Responsibility: Read-only company profile lookup used for export headers.
Architecture position: Kernel > Selectors.
"""

from dataclasses import dataclass
from uuid import UUID

from statutory_kernel.models.company import Company
from statutory_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class CompanyProfile:
    """Company identity printed on exported statutory reports."""

    company_id: UUID
    name: str
    tax_id: str
    address: str | None = None
    city: str | None = None
    postal_code: str | None = None
    phone: str | None = None
    email: str | None = None


class CompanySelector(BaseSelector[Company]):
    """Selector for company reference data."""

    def exists(self, company_id: UUID) -> bool:
        return self.session.get(Company, company_id) is not None

    def profile(self, company_id: UUID) -> CompanyProfile | None:
        """Return the company's profile, or None if it does not exist."""
        company = self.session.get(Company, company_id)
        if company is None:
            return None
        return CompanyProfile(
            company_id=company.id,
            name=company.name,
            tax_id=company.tax_id,
            address=company.address,
            city=company.city,
            postal_code=company.postal_code,
            phone=company.phone,
            email=company.email,
        )
