"""
ORM-Level Immutability Enforcement for ledger versions.

===============================================================================
WHY THIS EXISTS
===============================================================================

The history log is append-only: every put or delete against a key adds a new
LedgerVersion row, and the full change history of a record is replayed from
those rows.  Editing or removing a row would silently rewrite a lot's
provenance.  These listeners stop that at the ORM layer:

    session.flush()
         |
         v
    [before_update event] --> _check_version_update() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_version_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only INSERTs get this far)

===============================================================================
USAGE
===============================================================================

Called by create_tables() and by the SqlLedger constructor:

    from provenance_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()

===============================================================================
"""

from sqlalchemy import event

from provenance_kernel.exceptions import ImmutabilityViolationError
from provenance_kernel.logging_config import get_logger
from provenance_kernel.models.ledger_version import LedgerVersion

logger = get_logger("db.immutability")


def _check_version_update(mapper, connection, target):
    """Prevent any update to a stored LedgerVersion."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "LedgerVersion",
            "entity_id": f"{target.key}#{target.version}",
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="LedgerVersion",
        entity_id=f"{target.key}#{target.version}",
        reason="Ledger versions are append-only and cannot be modified",
    )


def _check_version_delete(mapper, connection, target):
    """Prevent removal of a stored LedgerVersion."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "LedgerVersion",
            "entity_id": f"{target.key}#{target.version}",
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="LedgerVersion",
        entity_id=f"{target.key}#{target.version}",
        reason="Ledger versions cannot be deleted; deletes are recorded as tombstones",
    )


def register_immutability_listeners() -> None:
    """Register the LedgerVersion listeners.  Safe to call more than once."""
    if not event.contains(LedgerVersion, "before_update", _check_version_update):
        event.listen(LedgerVersion, "before_update", _check_version_update)
    if not event.contains(LedgerVersion, "before_delete", _check_version_delete):
        event.listen(LedgerVersion, "before_delete", _check_version_delete)


def _safe_remove_listener(target, event_name, listener_fn):
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove the LedgerVersion listeners.

    WARNING: Only use this in tests that intentionally tamper with history.
    """
    _safe_remove_listener(LedgerVersion, "before_update", _check_version_update)
    _safe_remove_listener(LedgerVersion, "before_delete", _check_version_delete)
