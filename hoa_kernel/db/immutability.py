"""
ORM-level immutability enforcement for posted ledger records.

===============================================================================
WHY THIS EXISTS
===============================================================================

Posted journal entries are the association's books of record.  They are never
edited in place; a mistake is corrected with a compensating reversal entry
that leaves a visible trail.  The write services already refuse to touch
posted entries.  These listeners catch everything else that goes through a
SQLAlchemy flush: scripts, future services, and ad hoc session edits.

    session.flush()
         |
         v
    [before_insert] --> _check_*() --> ImmutabilityViolationError
    [before_update] --> _check_*() ------^
    [before_delete] --> _check_*() ------^
         |
         v
    SQL sent to database (only if checks pass)

Status transitions performed by JournalEntryService use guarded bulk UPDATE
statements, which do not pass through mapper events.  The listeners therefore
only see unit-of-work changes.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity            | When Immutable                     | Allowed
------------------|------------------------------------|----------------------------------
JournalEntry      | status = POSTED                    | POSTED -> REVERSED with reversed_at,
                  |                                    | reversal_reason, updated_at
JournalEntry      | status = REVERSED                  | updated_at only
JournalEntry      | delete unless DRAFT                | -
JournalEntryLine  | parent POSTED or REVERSED          | nothing (no insert, update, delete)
GLAccount         | structural fields once referenced  | name, description, subtype,
                  | by a posted or reversed line       | is_active, balance
GLAccount         | hard delete once any line exists   | -

===============================================================================
USAGE
===============================================================================

    from hoa_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup, idempotent

Tests that need to plant forbidden states may unregister temporarily:

    unregister_immutability_listeners()
"""

from sqlalchemy import event, exists, inspect, select
from sqlalchemy.orm.attributes import get_history

from hoa_kernel.exceptions import AccountReferencedError, ImmutabilityViolationError
from hoa_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at"})
_REVERSAL_FIELDS = frozenset({"status", "reversed_at", "reversal_reason"})
_ACCOUNT_STRUCTURAL_FIELDS = ("account_code", "account_type", "normal_balance")
_FINAL_STATUSES = ("posted", "reversed")


def _status_value(status) -> str | None:
    if status is None:
        return None
    return getattr(status, "value", status)


def _persisted_status(target) -> str | None:
    """Status as it was before the pending change, if any."""
    history = get_history(target, "status")
    if history.deleted:
        return _status_value(history.deleted[0])
    return _status_value(target.status)


def _changed_fields(target) -> list[str]:
    insp = inspect(target)
    return [
        attr.key
        for attr in insp.mapper.column_attrs
        if insp.attrs[attr.key].history.has_changes()
    ]


def _blocked(entity_type: str, entity_id, operation: str, reason: str, **fields):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            "reason": reason,
            **fields,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _check_journal_entry_immutability(mapper, connection, target):
    """
    Block edits to posted and reversed journal entries.

    A posted entry may only move to REVERSED, touching the reversal fields.
    A reversed entry is terminal.
    """
    old_status = _persisted_status(target)
    if old_status not in _FINAL_STATUSES:
        return

    changed = [f for f in _changed_fields(target) if f not in _AUDIT_FIELDS]
    if not changed:
        return

    if old_status == "posted" and _status_value(target.status) == "reversed":
        disallowed = [f for f in changed if f not in _REVERSAL_FIELDS]
        if not disallowed:
            return
        changed = disallowed

    raise _blocked(
        "JournalEntry",
        target.id,
        "UPDATE",
        f"Cannot modify field '{changed[0]}' on {old_status} journal entry",
        field=changed[0],
    )


def _check_journal_entry_delete(mapper, connection, target):
    """Only draft entries can be deleted."""
    old_status = _persisted_status(target)
    if old_status in _FINAL_STATUSES:
        raise _blocked(
            "JournalEntry",
            target.id,
            "DELETE",
            f"Cannot delete {old_status} journal entry",
        )


def _parent_status(connection, journal_entry_id) -> str | None:
    from hoa_kernel.models.journal import JournalEntry

    table = JournalEntry.__table__
    return connection.execute(
        select(table.c.status).where(table.c.id == journal_entry_id)
    ).scalar_one_or_none()


def _check_journal_line_immutability(mapper, connection, target):
    """Lines of a posted or reversed entry cannot change."""
    history = get_history(target, "journal_entry_id")
    entry_id = history.deleted[0] if history.deleted else target.journal_entry_id
    status = _parent_status(connection, entry_id)
    if status in _FINAL_STATUSES:
        raise _blocked(
            "JournalEntryLine",
            target.id,
            "UPDATE",
            f"Cannot modify line of {status} journal entry",
        )


def _check_journal_line_insert(mapper, connection, target):
    """Lines cannot be added to a posted or reversed entry."""
    status = _parent_status(connection, target.journal_entry_id)
    if status in _FINAL_STATUSES:
        raise _blocked(
            "JournalEntryLine",
            target.id,
            "INSERT",
            f"Cannot add line to {status} journal entry",
        )


def _check_journal_line_delete(mapper, connection, target):
    """Lines of a posted or reversed entry cannot be deleted."""
    status = _parent_status(connection, target.journal_entry_id)
    if status in _FINAL_STATUSES:
        raise _blocked(
            "JournalEntryLine",
            target.id,
            "DELETE",
            f"Cannot delete line of {status} journal entry",
        )


def _account_has_lines(connection, account_id, posted_only: bool) -> bool:
    from hoa_kernel.models.journal import JournalEntry, JournalEntryLine

    lines = JournalEntryLine.__table__
    entries = JournalEntry.__table__
    criteria = [lines.c.gl_account_id == account_id]
    if posted_only:
        criteria.append(entries.c.status.in_(_FINAL_STATUSES))
    query = select(
        exists()
        .select_from(lines.join(entries, lines.c.journal_entry_id == entries.c.id))
        .where(*criteria)
    )
    return bool(connection.execute(query).scalar())


def _check_account_structural_immutability(mapper, connection, target):
    """Structural fields are frozen once posted lines reference the account."""
    changed = [
        f for f in _ACCOUNT_STRUCTURAL_FIELDS if get_history(target, f).has_changes()
    ]
    if not changed:
        return
    if _account_has_lines(connection, target.id, posted_only=True):
        raise _blocked(
            "GLAccount",
            target.id,
            "UPDATE",
            f"Cannot modify '{changed[0]}' on account referenced by posted entries",
            field=changed[0],
        )


def _check_account_delete(mapper, connection, target):
    """Accounts with journal lines are deactivated, never deleted."""
    if _account_has_lines(connection, target.id, posted_only=False):
        logger.error(
            "immutability_violation_blocked",
            extra={
                "entity_type": "GLAccount",
                "entity_id": str(target.id),
                "operation": "DELETE",
                "reason": "account_has_journal_lines",
            },
        )
        raise AccountReferencedError(account_id=str(target.id))


def _listeners():
    from hoa_kernel.models.account import GLAccount
    from hoa_kernel.models.journal import JournalEntry, JournalEntryLine

    return [
        (JournalEntry, "before_update", _check_journal_entry_immutability),
        (JournalEntry, "before_delete", _check_journal_entry_delete),
        (JournalEntryLine, "before_insert", _check_journal_line_insert),
        (JournalEntryLine, "before_update", _check_journal_line_immutability),
        (JournalEntryLine, "before_delete", _check_journal_line_delete),
        (GLAccount, "before_update", _check_account_structural_immutability),
        (GLAccount, "before_delete", _check_account_delete),
    ]


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Call once at startup, after models are imported.  Repeated calls are
    no-ops.
    """
    for target, name, fn in _listeners():
        if not event.contains(target, name, fn):
            event.listen(target, name, fn)
    logger.debug("immutability_listeners_registered")


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: tests only.  Never call this in production code.
    """
    for target, name, fn in _listeners():
        if event.contains(target, name, fn):
            event.remove(target, name, fn)
