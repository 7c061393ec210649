"""
Ledger access for Form 6111 generation (``statutory_modules.form6111.ledger``).

Responsibility
--------------
Defines the ``LedgerReader`` protocol the report generator consumes, two
SQLAlchemy-backed adapters, and ``fetch_balances``: the fan-out/fan-in of
per-account balance queries.

Concurrency model
-----------------
Balance requests run on a ``ThreadPoolExecutor``.  Each task returns its
own ``(request, balance)`` pair; results are collected after the join, so
there are no shared mutable accumulators and no locks.  A SQLAlchemy
``Session`` is not thread-safe: readers that share one session report
``concurrent_safe = False`` and are driven with a single worker.

Cancellation
------------
An optional ``threading.Event`` is checked before every fetch and after the
join.  When set, pending futures are cancelled and
``ReportGenerationCancelledError`` is raised.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from statutory_kernel.domain.periods import BalanceWindow
from statutory_kernel.exceptions import ReportGenerationCancelledError
from statutory_kernel.logging_config import get_logger
from statutory_kernel.selectors.ledger_selector import AccountInfo, LedgerSelector

logger = get_logger("modules.form6111.ledger")


@runtime_checkable
class LedgerReader(Protocol):
    """Read-only ledger operations needed to build a report."""

    concurrent_safe: bool

    def posted_balance(
        self, company_id: UUID, account_id: UUID, window: BalanceWindow,
    ) -> Decimal:
        ...

    def list_accounts(
        self, company_id: UUID, active_only: bool = False,
    ) -> list[AccountInfo]:
        ...


class SessionLedgerReader:
    """Reads through one shared session.  Not safe to call concurrently."""

    concurrent_safe = False

    def __init__(self, session: Session):
        self._selector = LedgerSelector(session)

    def posted_balance(
        self, company_id: UUID, account_id: UUID, window: BalanceWindow,
    ) -> Decimal:
        return self._selector.posted_balance(company_id, account_id, window)

    def list_accounts(
        self, company_id: UUID, active_only: bool = False,
    ) -> list[AccountInfo]:
        return self._selector.list_accounts(company_id, active_only)


class SessionFactoryLedgerReader:
    """Opens a short-lived session per call, so calls may run in parallel."""

    concurrent_safe = True

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def posted_balance(
        self, company_id: UUID, account_id: UUID, window: BalanceWindow,
    ) -> Decimal:
        with self._session_factory() as session:
            return LedgerSelector(session).posted_balance(company_id, account_id, window)

    def list_accounts(
        self, company_id: UUID, active_only: bool = False,
    ) -> list[AccountInfo]:
        with self._session_factory() as session:
            return LedgerSelector(session).list_accounts(company_id, active_only)


@dataclass(frozen=True)
class BalanceRequest:
    """One balance query.  ``purpose`` groups results for the reducer."""

    account_id: UUID
    window: BalanceWindow
    purpose: str


def _raise_cancelled(company_id: UUID, stage: str, completed: int, total: int):
    logger.warning(
        "form6111_generation_cancelled",
        extra={
            "company_id": str(company_id),
            "stage": stage,
            "completed": completed,
            "total": total,
        },
    )
    raise ReportGenerationCancelledError(str(company_id), stage, completed, total)


def fetch_balances(
    reader: LedgerReader,
    company_id: UUID,
    requests: Sequence[BalanceRequest],
    max_workers: int = 4,
    cancel_event: threading.Event | None = None,
) -> dict[str, dict[UUID, Decimal]]:
    """
    Run all balance requests and group the results by purpose.

    Returns:
        ``{purpose: {account_id: balance}}``.

    Raises:
        ReportGenerationCancelledError: if ``cancel_event`` is set before or
            during the fan-out.
    """
    total = len(requests)
    workers = max(1, max_workers) if reader.concurrent_safe else 1

    def is_cancelled() -> bool:
        return cancel_event is not None and cancel_event.is_set()

    def fetch(request: BalanceRequest) -> tuple[BalanceRequest, Decimal | None]:
        if is_cancelled():
            return request, None
        return request, reader.posted_balance(company_id, request.account_id, request.window)

    if is_cancelled():
        _raise_cancelled(company_id, "before_fetch", 0, total)

    logger.debug(
        "balance_fetch_started",
        extra={"company_id": str(company_id), "requests": total, "workers": workers},
    )

    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="form6111")
    try:
        futures = [executor.submit(fetch, r) for r in requests]
        results = [f.result() for f in futures]
    finally:
        executor.shutdown(wait=True, cancel_futures=True)

    completed = sum(1 for _, balance in results if balance is not None)
    if is_cancelled() or completed < total:
        _raise_cancelled(company_id, "balance_fetch", completed, total)

    grouped: dict[str, dict[UUID, Decimal]] = {}
    for request, balance in results:
        grouped.setdefault(request.purpose, {})[request.account_id] = balance

    logger.debug(
        "balance_fetch_completed",
        extra={"company_id": str(company_id), "requests": total},
    )
    return grouped
