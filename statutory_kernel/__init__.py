"""
Statutory Kernel

Ledger kernel backing the statutory reporting modules:
- Multi-tenant chart of accounts and journal persistence
- Posted-only balance queries (range and as-of)
- Structured JSON logging and typed exceptions
- Deterministic content hashing
"""

__version__ = "0.1.0"
