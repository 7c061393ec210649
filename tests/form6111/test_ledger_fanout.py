"""
Balance fan-out tests.

Uses in-memory readers so concurrency and cancellation can be observed
without a database.
"""

import threading
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from statutory_kernel.domain.periods import DateRange
from statutory_kernel.exceptions import ReportGenerationCancelledError
from statutory_modules.form6111.ledger import (
    BalanceRequest,
    LedgerReader,
    SessionLedgerReader,
    fetch_balances,
)

PERIOD = DateRange(date(2024, 1, 1), date(2024, 12, 31))


class FakeReader:
    """Returns a fixed balance per account and records calling threads."""

    def __init__(self, balances, concurrent_safe=True, on_call=None):
        self.balances = balances
        self.concurrent_safe = concurrent_safe
        self.on_call = on_call
        self.calls = []
        self.threads = set()
        self._lock = threading.Lock()

    def posted_balance(self, company_id, account_id, window):
        with self._lock:
            self.calls.append((account_id, window))
            self.threads.add(threading.get_ident())
        if self.on_call is not None:
            self.on_call(len(self.calls))
        return self.balances.get(account_id, Decimal("0"))

    def list_accounts(self, company_id, active_only=False):
        return []


def test_fake_reader_satisfies_protocol():
    assert isinstance(FakeReader({}), LedgerReader)


def test_session_reader_is_not_concurrent_safe(session):
    reader = SessionLedgerReader(session)
    assert isinstance(reader, LedgerReader)
    assert reader.concurrent_safe is False


def test_results_grouped_by_purpose():
    a, b = uuid4(), uuid4()
    reader = FakeReader({a: Decimal("10"), b: Decimal("-4")})
    requests = [
        BalanceRequest(a, PERIOD, "period"),
        BalanceRequest(b, PERIOD, "period"),
        BalanceRequest(a, PERIOD.end, "as_of"),
    ]

    grouped = fetch_balances(reader, uuid4(), requests, max_workers=3)

    assert grouped == {
        "period": {a: Decimal("10"), b: Decimal("-4")},
        "as_of": {a: Decimal("10")},
    }
    assert len(reader.calls) == 3


def test_no_requests():
    assert fetch_balances(FakeReader({}), uuid4(), []) == {}


def test_unsafe_reader_runs_on_one_thread():
    accounts = [uuid4() for _ in range(12)]
    reader = FakeReader({}, concurrent_safe=False)

    fetch_balances(
        reader, uuid4(), [BalanceRequest(a, PERIOD, "period") for a in accounts], max_workers=8,
    )

    assert len(reader.threads) == 1
    assert len(reader.calls) == 12


def test_results_independent_of_worker_count():
    accounts = [uuid4() for _ in range(20)]
    balances = {a: Decimal(i) for i, a in enumerate(accounts)}
    requests = [BalanceRequest(a, PERIOD, "period") for a in accounts]

    serial = fetch_balances(FakeReader(balances), uuid4(), requests, max_workers=1)
    parallel = fetch_balances(FakeReader(balances), uuid4(), requests, max_workers=8)

    assert serial == parallel


def test_cancelled_before_fetch():
    event = threading.Event()
    event.set()
    reader = FakeReader({})

    with pytest.raises(ReportGenerationCancelledError) as exc_info:
        fetch_balances(
            reader, uuid4(), [BalanceRequest(uuid4(), PERIOD, "period")], cancel_event=event,
        )

    assert exc_info.value.stage == "before_fetch"
    assert exc_info.value.completed == 0
    assert reader.calls == []


def test_cancelled_during_fetch():
    event = threading.Event()
    reader = FakeReader({}, concurrent_safe=False, on_call=lambda n: n == 3 and event.set())
    requests = [BalanceRequest(uuid4(), PERIOD, "period") for _ in range(10)]

    with pytest.raises(ReportGenerationCancelledError) as exc_info:
        fetch_balances(reader, uuid4(), requests, cancel_event=event)

    assert exc_info.value.stage == "balance_fetch"
    assert exc_info.value.completed == 3
    assert exc_info.value.total == 10
    assert len(reader.calls) == 3


def test_cancellation_logged(captured_logs):
    event = threading.Event()
    event.set()
    with pytest.raises(ReportGenerationCancelledError):
        fetch_balances(FakeReader({}), uuid4(), [], cancel_event=event)

    assert any(r["message"] == "form6111_generation_cancelled" for r in captured_logs())


def test_reader_errors_propagate():
    class FailingReader(FakeReader):
        def posted_balance(self, company_id, account_id, window):
            raise ConnectionError("ledger store unreachable")

    with pytest.raises(ConnectionError):
        fetch_balances(
            FailingReader({}), uuid4(), [BalanceRequest(uuid4(), PERIOD, "period")],
        )
