"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Posted transactions cannot be modified, only offset by new entries that
leave a visible paper trail.  The kernel exposes no update API for journal
entries, and this module closes the remaining door: code that loads an
entry through the ORM and mutates it.

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |                                                        ^
         v                                                        |
    [before_delete event] --> _check_*_delete() -----------------+
         |
         v
    SQL sent to database (only if checks pass)

A rolled-back SAVEPOINT is not an ORM delete, so the posting engine's
compensating removal of a half-written header never triggers these checks.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity       | When Immutable          | Allowed
-------------|-------------------------|------------------------------------
JournalEntry | From first flush        | Nothing
JournalLine  | From first flush        | Nothing
FiscalYear   | After status = closed   | open -> locked, open/locked -> closed

===============================================================================
USAGE
===============================================================================

    from ledger_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

To temporarily disable (TESTS ONLY - never in production):

    from ledger_kernel.db.immutability import unregister_immutability_listeners
    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect

from ledger_kernel.exceptions import ImmutabilityViolationError
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

# Audit metadata that may change without altering the record's content.
_AUDIT_FIELDS = frozenset({"updated_at"})


def _changed_columns(target) -> list[str]:
    """Column attributes with pending changes, ignoring audit metadata."""
    insp = inspect(target)
    changed = []
    for attr in insp.mapper.column_attrs:
        if attr.key in _AUDIT_FIELDS:
            continue
        if insp.attrs[attr.key].history.has_changes():
            changed.append(attr.key)
    return changed


def _block(entity_type: str, target, operation: str, reason: str, **fields) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            **fields,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_journal_entry_immutability(mapper, connection, target):
    """Prevent updates to flushed JournalEntry records."""
    changed = _changed_columns(target)
    if changed:
        _block(
            "JournalEntry", target, "UPDATE",
            "Posted journal entries cannot be modified; post a reversing entry",
            fields=changed,
        )


def _check_journal_entry_delete(mapper, connection, target):
    """Prevent deletion of flushed JournalEntry records."""
    _block(
        "JournalEntry", target, "DELETE",
        "Posted journal entries cannot be deleted",
    )


def _check_journal_line_immutability(mapper, connection, target):
    """Prevent updates to flushed JournalLine records."""
    changed = _changed_columns(target)
    if changed:
        _block(
            "JournalLine", target, "UPDATE",
            "Journal lines cannot be modified after posting",
            fields=changed,
        )


def _check_journal_line_delete(mapper, connection, target):
    """Prevent deletion of flushed JournalLine records."""
    _block(
        "JournalLine", target, "DELETE",
        "Journal lines cannot be deleted after posting",
    )


def _check_fiscal_year_immutability(mapper, connection, target):
    """
    Prevent modifications to closed FiscalYear records.

    The close itself (open/locked -> closed, together with the closing
    metadata) is the last allowed write.  Anything after that is blocked.
    """
    from ledger_kernel.models.fiscal_year import FiscalYearStatus

    status_history = inspect(target).attrs["status"].history
    if status_history.deleted:
        old_status = status_history.deleted[0]
    else:
        old_status = target.status

    if FiscalYearStatus(old_status) != FiscalYearStatus.CLOSED:
        return

    changed = _changed_columns(target)
    if changed:
        _block(
            "FiscalYear", target, "UPDATE",
            f"Cannot modify field '{changed[0]}' on closed fiscal year",
            fields=changed,
        )


def _check_fiscal_year_delete(mapper, connection, target):
    """Prevent deletion of closed FiscalYear records."""
    from ledger_kernel.models.fiscal_year import FiscalYearStatus

    if FiscalYearStatus(target.status) == FiscalYearStatus.CLOSED:
        _block(
            "FiscalYear", target, "DELETE",
            "Closed fiscal years cannot be deleted",
        )


_LISTENERS = (
    ("JournalEntry", "before_update", _check_journal_entry_immutability),
    ("JournalEntry", "before_delete", _check_journal_entry_delete),
    ("JournalLine", "before_update", _check_journal_line_immutability),
    ("JournalLine", "before_delete", _check_journal_line_delete),
    ("FiscalYear", "before_update", _check_fiscal_year_immutability),
    ("FiscalYear", "before_delete", _check_fiscal_year_delete),
)


def _targets() -> dict:
    from ledger_kernel.models.fiscal_year import FiscalYear
    from ledger_kernel.models.journal import JournalEntry, JournalLine

    return {
        "JournalEntry": JournalEntry,
        "JournalLine": JournalLine,
        "FiscalYear": FiscalYear,
    }


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Call this after all models are imported but before any database
    operations begin.  Registering twice is harmless.
    """
    targets = _targets()
    for name, event_name, listener_fn in _LISTENERS:
        if not event.contains(targets[name], event_name, listener_fn):
            event.listen(targets[name], event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    targets = _targets()
    for name, event_name, listener_fn in _LISTENERS:
        if event.contains(targets[name], event_name, listener_fn):
            event.remove(targets[name], event_name, listener_fn)
