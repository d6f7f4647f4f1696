"""
BaseService -- abstract base for all kernel write services.

Responsibility:
    Provides the common constructor and session-handling contract for every
    write service in the kernel.  Services receive a SQLAlchemy ``Session``
    and use ``session.flush()``, never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Transaction boundaries belong to the caller (JournalEntryLedger or a
    test harness).  A multi-step operation such as a reversal therefore
    commits or rolls back as one unit.
"""

from abc import ABC
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from hoa_kernel.db.base import Base
from hoa_kernel.domain.clock import Clock, SystemClock

ModelType = TypeVar("ModelType", bound=Base)


def as_uuid(value: UUID | str) -> UUID:
    """Accept ids as UUID or string."""
    return value if isinstance(value, UUID) else UUID(str(value))


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for kernel write services.

    Contract:
        Accepts a ``Session`` from the caller and flushes within the active
        transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide read methods for callers; those live in
          ``hoa_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
