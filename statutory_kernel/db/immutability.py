"""
ORM-Level Immutability Enforcement.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
Listeners registered here intercept those events and raise
ImmutabilityViolationError, aborting the flush before any SQL is sent:

    session.flush()
         |
         v
    [before_update] --> _check_*_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete] --> _check_*_delete() --------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

Entity               | When Immutable                 | Mutable fields
---------------------|--------------------------------|-------------------------------
JournalEntry         | After status = POSTED          | updated_at, updated_by_id
JournalLine          | When parent entry is POSTED    | (none)
StatutoryReportModel | ALWAYS (from creation)         | status, updated_at, updated_by_id

updated_at/updated_by_id are audit metadata, not financial data, so they may
change on immutable rows.  A statutory report's status moves through its
workflow; every other column is fixed at generation.

Usage:

    from statutory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup (idempotent)
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from statutory_kernel.exceptions import ImmutabilityViolationError
from statutory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

AUDIT_FIELDS = frozenset({"updated_at", "updated_by_id"})

STATUTORY_REPORT_MUTABLE_FIELDS = AUDIT_FIELDS | {"status"}


def _blocked(entity_type: str, entity_id: str, operation: str, reason: str, field: str | None = None):
    extra = {
        "entity_type": entity_type,
        "entity_id": entity_id,
        "operation": operation,
    }
    if field is not None:
        extra["field"] = field
    logger.error("immutability_violation_blocked", extra=extra)
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
    )


def _changed_fields(target, allowed: frozenset[str]) -> list[str]:
    insp = inspect(target)
    return [
        attr.key
        for attr in insp.attrs
        if attr.key not in allowed and attr.history.has_changes()
    ]


def _check_journal_entry_immutability(mapper, connection, target):
    """
    Prevent updates to posted JournalEntry records.

    Allows the DRAFT -> POSTED transition itself, blocks every later change:
        1. status changing FROM posted: block
        2. status unchanged AND posted: block any other field change
        3. status changing TO posted: allow (this IS the posting)
    """
    from statutory_kernel.models.journal import JournalEntryStatus

    status_history = get_history(target, "status")

    if status_history.deleted:
        was_posted_before = (
            JournalEntryStatus(status_history.deleted[0]) == JournalEntryStatus.POSTED
        )
    elif not status_history.added:
        was_posted_before = JournalEntryStatus(target.status) == JournalEntryStatus.POSTED
    else:
        was_posted_before = False

    if not was_posted_before:
        return

    for field in _changed_fields(target, AUDIT_FIELDS):
        _blocked(
            "JournalEntry",
            str(target.id),
            "UPDATE",
            f"Cannot modify field '{field}' on posted journal entry",
            field=field,
        )


def _check_journal_entry_delete(mapper, connection, target):
    """Prevent deletion of posted JournalEntry records."""
    from statutory_kernel.models.journal import JournalEntryStatus

    if JournalEntryStatus(target.status) == JournalEntryStatus.POSTED:
        _blocked(
            "JournalEntry",
            str(target.id),
            "DELETE",
            "Posted journal entries cannot be deleted",
        )


def _check_journal_line_immutability(mapper, connection, target):
    """Prevent updates to JournalLine when parent entry is posted."""
    if target.entry is not None and target.entry.is_posted:
        _blocked(
            "JournalLine",
            str(target.id),
            "UPDATE",
            "Journal lines cannot be modified after parent entry is posted",
        )


def _check_journal_line_delete(mapper, connection, target):
    """Prevent deletion of JournalLine when parent entry is posted."""
    if target.entry is not None and target.entry.is_posted:
        _blocked(
            "JournalLine",
            str(target.id),
            "DELETE",
            "Journal lines cannot be deleted after parent entry is posted",
        )


def _check_statutory_report_immutability(mapper, connection, target):
    """
    Prevent updates to the financial content of a statutory report.

    Only the workflow status (and audit metadata) may change after creation.
    Regenerating a report produces a new row.
    """
    for field in _changed_fields(target, STATUTORY_REPORT_MUTABLE_FIELDS):
        _blocked(
            "StatutoryReport",
            str(target.id),
            "UPDATE",
            f"Cannot modify field '{field}' on a generated statutory report",
            field=field,
        )


def _check_statutory_report_delete(mapper, connection, target):
    """Statutory reports are compliance artifacts and cannot be deleted."""
    _blocked(
        "StatutoryReport",
        str(target.id),
        "DELETE",
        "Statutory reports cannot be deleted",
    )


def _listener_table():
    from statutory_kernel.models.journal import JournalEntry, JournalLine
    from statutory_modules.form6111.orm import StatutoryReportModel

    return (
        (JournalEntry, "before_update", _check_journal_entry_immutability),
        (JournalEntry, "before_delete", _check_journal_entry_delete),
        (JournalLine, "before_update", _check_journal_line_immutability),
        (JournalLine, "before_delete", _check_journal_line_delete),
        (StatutoryReportModel, "before_update", _check_statutory_report_immutability),
        (StatutoryReportModel, "before_delete", _check_statutory_report_delete),
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Call after models are importable and before any database operations.
    Repeated calls are harmless.
    """
    for target, event_name, listener_fn in _listener_table():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that intentionally violate immutability.
    """
    for target, event_name, listener_fn in _listener_table():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
