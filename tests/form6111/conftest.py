"""Fixtures for Form 6111 module tests."""

from collections.abc import Generator
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from statutory_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from statutory_kernel.db.immutability import register_immutability_listeners
from statutory_kernel.models.account import DEFAULT_NORMAL_BALANCE, Account, AccountType, NormalBalance
from statutory_kernel.models.company import Company
from statutory_kernel.models.journal import JournalEntry, JournalLine
from statutory_kernel.selectors.ledger_selector import AccountInfo
from statutory_modules.form6111.classifier import default_rule_set
from statutory_modules.form6111.config import Form6111Config
from statutory_modules.form6111.service import Form6111Service


@pytest.fixture(scope="session")
def rule_set():
    """The bundled Israeli rule set (loaded once)."""
    return default_rule_set()


@pytest.fixture
def form6111_config(rule_set) -> Form6111Config:
    return Form6111Config(rule_set=rule_set)


@pytest.fixture
def form6111_service(session, deterministic_clock, form6111_config) -> Form6111Service:
    return Form6111Service(session, clock=deterministic_clock, config=form6111_config)


@pytest.fixture
def make_info():
    """Build an AccountInfo without touching the database."""

    def _make_info(
        code: str,
        name: str,
        account_type: AccountType,
        normal_balance: NormalBalance | None = None,
        is_active: bool = True,
    ) -> AccountInfo:
        return AccountInfo(
            account_id=uuid4(),
            code=code,
            name=name,
            account_type=account_type,
            normal_balance=normal_balance or DEFAULT_NORMAL_BALANCE[account_type],
            is_active=is_active,
        )

    return _make_info


@dataclass(frozen=True)
class FileLedger:
    url: str
    company_id: UUID


@pytest.fixture
def file_ledger_db(tmp_path, test_actor_id) -> Generator[FileLedger, None, None]:
    """
    Committed SQLite file database: one company, cash sales of 10000 and
    rent of 3000 paid in 2024.

    Leaves the module-level engine bound to the file so that code under
    test can open its own sessions against it.
    """
    url = f"sqlite:///{tmp_path / 'ledger.db'}"
    init_engine_from_url(url)
    create_tables()
    register_immutability_listeners()

    setup = get_session()
    company = Company(name="Galil Trading Ltd", tax_id="514000001", created_by_id=test_actor_id)
    setup.add(company)
    setup.flush()

    accounts = {}
    for code, name, account_type in [
        ("1000", "Bank Leumi", AccountType.ASSET),
        ("4000", "Sales", AccountType.REVENUE),
        ("5200", "Rent", AccountType.EXPENSE),
    ]:
        accounts[code] = Account(
            company_id=company.id,
            code=code,
            name=name,
            account_type=account_type.value,
            normal_balance=DEFAULT_NORMAL_BALANCE[account_type].value,
            created_by_id=test_actor_id,
        )
        setup.add(accounts[code])
    setup.flush()

    for debit, credit, amount in [("1000", "4000", "10000"), ("5200", "1000", "3000")]:
        setup.add(
            JournalEntry(
                company_id=company.id,
                effective_date=date(2024, 5, 1),
                status="posted",
                created_by_id=test_actor_id,
                lines=[
                    JournalLine(
                        account_id=accounts[debit].id, side="debit",
                        amount=Decimal(amount), line_seq=0, created_by_id=test_actor_id,
                    ),
                    JournalLine(
                        account_id=accounts[credit].id, side="credit",
                        amount=Decimal(amount), line_seq=1, created_by_id=test_actor_id,
                    ),
                ],
            )
        )
    setup.commit()
    ledger = FileLedger(url=url, company_id=company.id)
    setup.close()

    yield ledger
    reset_engine()
