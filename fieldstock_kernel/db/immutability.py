"""
ORM-Level Immutability Enforcement for transfer history.

===============================================================================
WHY THIS EXISTS
===============================================================================

Transfer records are the sole source of transfer history. A dispatcher looking
at "what went onto Truck 2 last week" must see exactly what happened, so a
record can never be edited or deleted once written.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events:

    session.flush()
         |
         v
    [before_update event] --> _check_*_update() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_*_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

If a check fails the flush raises and the surrounding transaction is rolled
back by the caller's transactional scope.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                   | When Immutable        | Why
-------------------------|-----------------------|-------------------------------
TransferRecordModel      | ALWAYS (from creation)| History is append-only
TransferRecordLineModel  | ALWAYS (from creation)| Lines are part of the record

===============================================================================
USAGE
===============================================================================

    from fieldstock_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # idempotent; SqlInventoryStore calls it

In tests that must deliberately bypass the guard:

    unregister_immutability_listeners()
"""

from sqlalchemy import event

from fieldstock_kernel.exceptions import ImmutabilityViolationError
from fieldstock_kernel.logging_config import get_logger
from fieldstock_kernel.models.transfer import TransferRecordLineModel, TransferRecordModel

logger = get_logger("db.immutability")


def _block(entity_type: str, entity_id: str, operation: str, reason: str):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
    )


def _check_transfer_record_update(mapper, connection, target):
    _block(
        "TransferRecord", str(target.id), "UPDATE",
        "Transfer records are immutable and cannot be modified",
    )


def _check_transfer_record_delete(mapper, connection, target):
    _block(
        "TransferRecord", str(target.id), "DELETE",
        "Transfer records cannot be deleted",
    )


def _check_transfer_line_update(mapper, connection, target):
    _block(
        "TransferRecordLine", f"{target.record_id}#{target.line_no}", "UPDATE",
        "Transfer record lines are immutable and cannot be modified",
    )


def _check_transfer_line_delete(mapper, connection, target):
    _block(
        "TransferRecordLine", f"{target.record_id}#{target.line_no}", "DELETE",
        "Transfer record lines cannot be deleted",
    )


_LISTENERS = (
    (TransferRecordModel, "before_update", _check_transfer_record_update),
    (TransferRecordModel, "before_delete", _check_transfer_record_delete),
    (TransferRecordLineModel, "before_update", _check_transfer_line_update),
    (TransferRecordLineModel, "before_delete", _check_transfer_line_delete),
)


def register_immutability_listeners() -> None:
    """Register append-only listeners. Safe to call more than once."""
    for target, event_name, listener_fn in _LISTENERS:
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove append-only listeners.

    WARNING: Only use this in tests that deliberately violate immutability.
    """
    for target, event_name, listener_fn in _LISTENERS:
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
