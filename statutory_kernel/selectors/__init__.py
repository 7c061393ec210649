"""Selectors for the statutory kernel (read side)."""

from statutory_kernel.selectors.company_selector import CompanyProfile, CompanySelector
from statutory_kernel.selectors.ledger_selector import AccountInfo, LedgerSelector

__all__ = [
    "AccountInfo",
    "CompanyProfile",
    "CompanySelector",
    "LedgerSelector",
]
