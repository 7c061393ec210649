"""
Pytest fixtures for the statutory reporting test suite.

Provides:
- A fresh in-memory SQLite database per test (engine, tables, listeners)
- Deterministic clock
- Company / account / journal factories
- Structured log capture

SQLite keeps the suite self-contained; the production backend is
PostgreSQL (see statutory_kernel.db.engine).
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from statutory_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from statutory_kernel.db.immutability import register_immutability_listeners
from statutory_kernel.domain.clock import DeterministicClock
from statutory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from statutory_kernel.models.account import DEFAULT_NORMAL_BALANCE, Account, AccountType, NormalBalance
from statutory_kernel.models.company import Company
from statutory_kernel.models.journal import JournalEntry, JournalEntryStatus, JournalLine, LineSide
from statutory_kernel.selectors.ledger_selector import LedgerSelector

# Test actor ID for all test operations
TEST_ACTOR_ID = "test-actor"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture statutory_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.generate_report(...)
            logs = captured_logs()
            assert any(r["message"] == "form6111_generated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("statutory_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """Fresh in-memory database with all tables and immutability listeners."""
    init_engine_from_url("sqlite://")
    create_tables()
    register_immutability_listeners()
    sess = get_session()
    yield sess
    try:
        sess.close()
    finally:
        reset_engine()


@pytest.fixture
def test_actor_id() -> str:
    """Provide a consistent test actor ID."""
    return TEST_ACTOR_ID


# Clock fixtures


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


# Selector fixtures


@pytest.fixture
def ledger_selector(session: Session) -> LedgerSelector:
    return LedgerSelector(session)


# =============================================================================
# Test data generators
# =============================================================================


@pytest.fixture
def create_company(session: Session, test_actor_id: str):
    """Factory fixture to create companies."""

    def _create_company(
        name: str = "Galil Trading Ltd",
        tax_id: str = "514000001",
        address: str | None = "12 Herzl St",
        city: str | None = "Haifa",
    ) -> Company:
        company = Company(
            name=name,
            tax_id=tax_id,
            address=address,
            city=city,
            postal_code="3303012",
            phone="04-5550000",
            email="books@galil.example",
            created_by_id=test_actor_id,
        )
        session.add(company)
        session.flush()
        return company

    return _create_company


@pytest.fixture
def company(create_company) -> Company:
    return create_company()


@pytest.fixture
def create_account(session: Session, test_actor_id: str, company: Company):
    """Factory fixture to create accounts (default company unless given)."""

    def _create_account(
        code: str,
        name: str,
        account_type: AccountType = AccountType.ASSET,
        normal_balance: NormalBalance | None = None,
        is_active: bool = True,
        is_deleted: bool = False,
        owner: Company | None = None,
    ) -> Account:
        normal = normal_balance or DEFAULT_NORMAL_BALANCE[account_type]
        account = Account(
            company_id=(owner or company).id,
            code=code,
            name=name,
            account_type=account_type.value,
            normal_balance=normal.value,
            is_active=is_active,
            is_deleted=is_deleted,
            created_by_id=test_actor_id,
        )
        session.add(account)
        session.flush()
        return account

    return _create_account


@pytest.fixture
def post_entry(session: Session, test_actor_id: str, company: Company):
    """
    Factory fixture to write a journal entry with its lines.

    ``lines`` is a list of ``(account, side, amount)``; side is "debit" or
    "credit".  Entries are POSTED unless ``status`` says otherwise.
    """

    def _post_entry(
        effective_date: date,
        lines: list[tuple[Account, str, Decimal | str | int]],
        status: JournalEntryStatus = JournalEntryStatus.POSTED,
        owner: Company | None = None,
        description: str | None = None,
    ) -> JournalEntry:
        entry = JournalEntry(
            company_id=(owner or company).id,
            effective_date=effective_date,
            status=status.value,
            description=description,
            created_by_id=test_actor_id,
            lines=[
                JournalLine(
                    account_id=account.id,
                    side=LineSide(side).value,
                    amount=Decimal(str(amount)),
                    line_seq=seq,
                    created_by_id=test_actor_id,
                )
                for seq, (account, side, amount) in enumerate(lines)
            ],
        )
        session.add(entry)
        session.flush()
        return entry

    return _post_entry


@pytest.fixture
def transfer(post_entry):
    """Post a two-line entry: debit one account, credit another."""

    def _transfer(
        debit: Account,
        credit: Account,
        amount: Decimal | str | int,
        effective_date: date = date(2024, 6, 30),
        status: JournalEntryStatus = JournalEntryStatus.POSTED,
    ) -> JournalEntry:
        return post_entry(
            effective_date,
            [(debit, "debit", amount), (credit, "credit", amount)],
            status=status,
        )

    return _transfer


@pytest.fixture
def standard_accounts(create_account) -> dict[str, Account]:
    """A small Israeli-style chart of accounts covering every section."""
    return {
        "cash": create_account("1000", "Bank Leumi", AccountType.ASSET),
        "receivables": create_account("1100", "Customers Receivable", AccountType.ASSET),
        "inventory": create_account("1200", "Inventory", AccountType.ASSET),
        "equipment": create_account("1500", "Equipment", AccountType.ASSET),
        "payables": create_account("2000", "Suppliers Payable", AccountType.LIABILITY),
        "loan": create_account("2600", "Long-term loan", AccountType.LIABILITY),
        "capital": create_account("3000", "Share Capital", AccountType.EQUITY),
        "sales": create_account("4000", "Sales", AccountType.REVENUE),
        "services": create_account("4100", "Consulting", AccountType.REVENUE),
        "interest_income": create_account("4700", "Interest income", AccountType.REVENUE),
        "cogs": create_account("5000", "Cost of goods sold", AccountType.EXPENSE),
        "rent": create_account("5200", "Rent", AccountType.EXPENSE),
        "marketing": create_account("5800", "Marketing", AccountType.EXPENSE),
        "bank_fees": create_account("5900", "Bank charges", AccountType.EXPENSE),
    }
