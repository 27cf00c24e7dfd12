"""
ORM-Level Immutability Enforcement for the contract ledger.

===============================================================================
WHY THIS EXISTS
===============================================================================

The contract ledger is append-only.  A contract version, once recorded, is a
snapshot: it can be archived (deactivated) exactly once, but its terms,
parties and amounts never change, and nothing is ever deleted.  A "change"
to a contract is always archive-old + create-new in one transaction.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events and check the rules:

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

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity               | Rule
---------------------|----------------------------------------------------------
ContractInstance     | Only the archive fields may change, once, active -> archived
ContractStakeholder  | ALWAYS immutable (from creation)
ContractHead         | kind fixed; current_version may only increase
All three            | Never deleted

===============================================================================
USAGE
===============================================================================

    from lease_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from lease_kernel.exceptions import ImmutabilityViolationError
from lease_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

# Fields an archive operation is allowed to write on a ContractInstance.
_ARCHIVE_FIELDS = frozenset({
    "is_active",
    "archived_at",
    "archived_by_operation",
    "archived_in_transaction_id",
})

# Maintained by SQLAlchemy itself (version_id_col).
_LOCK_FIELDS = frozenset({"lock_version"})


def _blocked(entity_type: str, entity_id: str, operation: str, reason: str, **fields):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "db_operation": operation,
            **fields,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
    )


def _check_contract_instance_immutability(mapper, connection, target):
    """
    Allow exactly one transition of a ContractInstance: active -> archived.

    Logic:
        1. If is_active was already False before this flush: block everything.
        2. If is_active is changing, it must be True -> False.
        3. Any field outside the archive fields may never change.
    """
    from lease_kernel.models.contract_instance import ContractInstance

    if not isinstance(target, ContractInstance):
        return

    active_history = get_history(target, "is_active")
    if active_history.deleted:
        was_active = bool(active_history.deleted[0])
        if not was_active:
            raise _blocked(
                "ContractInstance", str(target.id), "UPDATE",
                "Archived contract versions cannot be re-activated",
                field="is_active",
            )
        if target.is_active:
            raise _blocked(
                "ContractInstance", str(target.id), "UPDATE",
                "is_active may only change from active to archived",
                field="is_active",
            )
    elif not target.is_active:
        raise _blocked(
            "ContractInstance", str(target.id), "UPDATE",
            "Archived contract versions are immutable",
        )

    insp = inspect(target)
    for attr in insp.attrs:
        if attr.key in _ARCHIVE_FIELDS or attr.key in _LOCK_FIELDS:
            continue
        if attr.history.has_changes():
            raise _blocked(
                "ContractInstance", str(target.id), "UPDATE",
                f"Cannot modify field '{attr.key}' on a recorded contract version",
                field=attr.key,
            )


def _check_contract_instance_delete(mapper, connection, target):
    """Contract versions are never deleted; they are archived."""
    raise _blocked(
        "ContractInstance", str(target.id), "DELETE",
        "Contract versions cannot be deleted",
    )


def _check_contract_stakeholder_immutability(mapper, connection, target):
    """Stakeholder rows are immutable from creation."""
    raise _blocked(
        "ContractStakeholder", str(target.id), "UPDATE",
        "Contract stakeholders are immutable",
    )


def _check_contract_stakeholder_delete(mapper, connection, target):
    raise _blocked(
        "ContractStakeholder", str(target.id), "DELETE",
        "Contract stakeholders cannot be deleted",
    )


def _check_contract_head_immutability(mapper, connection, target):
    """A head only ever advances to a newer version of the same kind."""
    from lease_kernel.models.contract_instance import ContractHead

    if not isinstance(target, ContractHead):
        return

    if get_history(target, "kind").has_changes():
        raise _blocked(
            "ContractHead", str(target.id), "UPDATE",
            "A logical contract cannot change kind",
            field="kind",
        )

    version_history = get_history(target, "current_version")
    if version_history.deleted and version_history.added:
        old, new = version_history.deleted[0], version_history.added[0]
        if new <= old:
            raise _blocked(
                "ContractHead", str(target.id), "UPDATE",
                f"current_version may only advance ({old} -> {new})",
                field="current_version",
            )


def _check_contract_head_delete(mapper, connection, target):
    raise _blocked(
        "ContractHead", str(target.id), "DELETE",
        "Contract heads cannot be deleted",
    )


def _listeners():
    from lease_kernel.models.contract_instance import (
        ContractHead,
        ContractInstance,
        ContractStakeholder,
    )

    return (
        (ContractInstance, "before_update", _check_contract_instance_immutability),
        (ContractInstance, "before_delete", _check_contract_instance_delete),
        (ContractStakeholder, "before_update", _check_contract_stakeholder_immutability),
        (ContractStakeholder, "before_delete", _check_contract_stakeholder_delete),
        (ContractHead, "before_update", _check_contract_head_immutability),
        (ContractHead, "before_delete", _check_contract_head_delete),
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Call this after all models are imported but before any database
    operations begin.  Safe to call more than once.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    for target, event_name, listener_fn in _listeners():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
