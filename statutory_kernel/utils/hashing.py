"""
Deterministic hashing utilities.

All hashing in the statutory kernel must be deterministic and reproducible.
This module provides the canonical hashing functions used throughout.
"""

import hashlib
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID


def _json_serializer(obj: Any) -> Any:
    """
    Custom JSON serializer for types not natively supported.

    Raises:
        TypeError: If object type is not supported.
    """
    if isinstance(obj, Decimal):
        # Normalize so 1.50 and 1.5 hash identically
        return str(obj.normalize())
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, bytes):
        return obj.hex()

    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonicalize_json(data: dict | list | Any) -> str:
    """
    Convert data to canonical JSON string.

    Produces a deterministic JSON representation:
    - Keys are sorted alphabetically
    - No whitespace
    - Consistent handling of special types (Decimal, date, UUID)
    """
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        default=_json_serializer,
    )


def hash_payload(payload: dict) -> str:
    """
    Compute SHA-256 hash of a payload.

    Returns:
        Hex-encoded SHA-256 hash (64 characters).
    """
    canonical = canonicalize_json(payload)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def hash_report_content(
    period_start: date,
    period_end: date,
    profit_loss_payload: str,
    tax_adjustments_payload: str,
    balance_sheet_payload: str,
) -> str:
    """
    Compute the content-integrity hash of a statutory report.

    The hash is a pure function of the period bounds and the three
    serialized sub-report payloads.  Payloads are hashed as the exact
    strings stored, so any change to any figure changes the hash.
    """
    return hash_payload(
        {
            "period_start": period_start,
            "period_end": period_end,
            "profit_loss": profit_loss_payload,
            "tax_adjustments": tax_adjustments_payload,
            "balance_sheet": balance_sheet_payload,
        }
    )
