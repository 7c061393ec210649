"""
Module: statutory_kernel.db.types
Responsibility: Annotated column type aliases and the sanctioned rounding
    helper for report figures.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    selectors/ and modules.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats.  All monetary amounts use Decimal with explicit precision.
    - round_money() is the ONLY rounding function applied to report figures.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated

from sqlalchemy import Numeric, String, Text


# Monetary amount: 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# ISO 4217 currency code
Currency = Annotated[str, String(3)]

# SHA-256 hash as hex string (64 characters)
PayloadHash = Annotated[str, String(64)]

# Serialized JSON payloads
PayloadText = Annotated[str, Text]


REPORT_QUANTUM = Decimal("0.01")


def round_money(value: Decimal, quantum: Decimal = REPORT_QUANTUM) -> Decimal:
    """
    Round a monetary value to the reporting quantum.

    Preconditions: value is a Decimal.
    Postconditions: value quantized to ``quantum`` with ROUND_HALF_UP.
    """
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def validate_currency_code(currency: str) -> str:
    """
    Normalize a 3-letter alphabetic currency code.

    Raises:
        ValueError: If the code is not three ASCII letters.
    """
    normalized = (currency or "").strip().upper()
    if len(normalized) != 3 or not normalized.isascii() or not normalized.isalpha():
        raise ValueError(f"Invalid ISO 4217 currency code: '{currency}'")
    return normalized
