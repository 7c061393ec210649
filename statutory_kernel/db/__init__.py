"""Database layer - engine, base classes, types, and immutability."""

from statutory_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from statutory_kernel.db.engine import create_tables, get_engine, get_session
from statutory_kernel.db.types import Money, PayloadHash, round_money

__all__ = [
    "get_engine",
    "get_session",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "Money",
    "PayloadHash",
    "round_money",
]
