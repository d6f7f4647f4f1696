"""
hoa_services.ledger -- the journal entry ledger facade.

Responsibility:
    The public surface of the general ledger.  Every operation opens its own
    transaction, runs the kernel services inside it, converts results to
    immutable DTOs, and commits.  On any failure the whole transaction is
    rolled back, so an operation either happens completely or not at all.

Architecture position:
    Services -- transaction owner above ``hoa_kernel``.  Kernel services
    only flush; this module commits.

Invariants enforced:
    - One transaction per public operation.  reverse_entry's three steps
      (create, post, mark original reversed) share that transaction.
    - Domain errors (HoaLedgerError subclasses) are re-raised unchanged
      after rollback.  SQLAlchemy errors are re-raised as PersistenceError
      with the driver exception chained.
    - Nothing is retried automatically.

Failure modes:
    - ValidationError subclasses, NotFoundError subclasses,
      InvalidStateError, ImmutabilityViolationError, AccountError
      subclasses, PersistenceError.

Audit relevance:
    association_id and entry_id are bound into LogContext for the duration
    of each operation, so every kernel log line emitted inside it carries
    them.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any, Generator
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from hoa_config import LedgerConfig
from hoa_kernel.db.engine import session_scope
from hoa_kernel.domain.clock import Clock, SystemClock
from hoa_kernel.domain.dtos import (
    AccountNode,
    GLAccountDTO,
    GLAccountSpec,
    JournalEntryDTO,
    JournalEntryFormData,
    TrialBalanceRow,
)
from hoa_kernel.exceptions import PersistenceError
from hoa_kernel.logging_config import LogContext, get_logger
from hoa_kernel.models.journal import JournalEntryStatus
from hoa_kernel.selectors.account_selector import account_to_dto
from hoa_kernel.selectors.journal_selector import entry_to_dto
from hoa_services.container import LedgerServices

logger = get_logger("services.ledger")


class JournalEntryLedger:
    """
    Transactional facade over the journal entry ledger.

    Contract:
        Each public method is atomic.  Returned objects are frozen DTOs
        that remain valid after the session closes.

    Non-goals:
        - Authentication or authorization.  Callers pass association_id
          explicitly and are trusted to own it.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        config: LedgerConfig,
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._config = config
        self._clock = clock or SystemClock()

    @contextmanager
    def _transaction(self, operation: str, **context: Any) -> Generator[LedgerServices, None, None]:
        with LogContext.bind(correlation_id=str(uuid4()), **context):
            try:
                with session_scope(self._session_factory) as session:
                    yield LedgerServices(session, self._config, self._clock)
            except SQLAlchemyError as exc:
                logger.error(
                    "ledger_persistence_failed",
                    extra={"operation": operation, "error_type": type(exc).__name__},
                )
                raise PersistenceError(operation, str(exc)) from exc

    # =========================================================================
    # Journal entries
    # =========================================================================

    def create_entry(
        self,
        association_id: str,
        form_data: JournalEntryFormData | dict,
    ) -> JournalEntryDTO:
        """Validate, number and store a new DRAFT entry."""
        if isinstance(form_data, dict):
            form_data = JournalEntryFormData.from_dict(form_data)
        with self._transaction("create_entry", association_id=association_id) as svc:
            entry = svc.journal.create_entry(association_id, form_data)
            return entry_to_dto(entry)

    def post_entry(self, entry_id: UUID | str) -> JournalEntryDTO:
        """Post a DRAFT entry and update account balances."""
        with self._transaction("post_entry", entry_id=entry_id) as svc:
            entry = svc.journal.post_entry(entry_id)
            return entry_to_dto(entry)

    def reverse_entry(self, entry_id: UUID | str, reason: str) -> JournalEntryDTO:
        """
        Reverse a POSTED entry.

        Returns:
            The posted compensating entry.  The original is REVERSED.
        """
        with self._transaction("reverse_entry", entry_id=entry_id) as svc:
            reversal = svc.reversals.reverse_entry(entry_id, reason)
            return entry_to_dto(reversal)

    def delete_entry(self, entry_id: UUID | str) -> None:
        """Delete a DRAFT entry and its lines."""
        with self._transaction("delete_entry", entry_id=entry_id) as svc:
            svc.journal.delete_entry(entry_id)

    def generate_entry_number(self, association_id: str) -> str:
        """
        Allocate and commit the next entry number.

        The number is consumed even if no entry is ever created with it.
        """
        with self._transaction("generate_entry_number", association_id=association_id) as svc:
            return svc.journal.generate_entry_number(association_id)

    def get_entry(self, entry_id: UUID | str) -> JournalEntryDTO | None:
        with self._transaction("get_entry", entry_id=entry_id) as svc:
            return svc.journal_selector.get_entry(entry_id)

    def list_entries(
        self,
        association_id: str,
        status: JournalEntryStatus | str | None = None,
    ) -> list[JournalEntryDTO]:
        with self._transaction("list_entries", association_id=association_id) as svc:
            return svc.journal_selector.list_entries(association_id, status)

    # =========================================================================
    # Balances
    # =========================================================================

    def account_balance(
        self,
        account_id: UUID | str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Decimal:
        with self._transaction("account_balance") as svc:
            return svc.ledger_selector.account_balance(account_id, start_date, end_date)

    def trial_balance(
        self,
        association_id: str,
        as_of_date: date | None = None,
    ) -> list[TrialBalanceRow]:
        with self._transaction("trial_balance", association_id=association_id) as svc:
            return svc.ledger_selector.trial_balance(association_id, as_of_date)

    # =========================================================================
    # Chart of accounts
    # =========================================================================

    def create_account(self, association_id: str, spec: GLAccountSpec) -> GLAccountDTO:
        with self._transaction("create_account", association_id=association_id) as svc:
            return account_to_dto(svc.accounts.create_account(association_id, spec))

    def update_account(self, account_id: UUID | str, **changes: Any) -> GLAccountDTO:
        with self._transaction("update_account") as svc:
            return account_to_dto(svc.accounts.update_account(account_id, **changes))

    def deactivate_account(self, account_id: UUID | str) -> GLAccountDTO:
        with self._transaction("deactivate_account") as svc:
            return account_to_dto(svc.accounts.deactivate_account(account_id))

    def create_default_chart(self, association_id: str) -> list[GLAccountDTO]:
        """Seed the configured default chart of accounts for an association."""
        with self._transaction("create_default_chart", association_id=association_id) as svc:
            created = svc.accounts.create_default_chart(
                association_id, svc.default_chart_specs()
            )
            return [account_to_dto(a) for a in created]

    def list_accounts(
        self,
        association_id: str,
        include_inactive: bool = False,
    ) -> list[GLAccountDTO]:
        with self._transaction("list_accounts", association_id=association_id) as svc:
            return svc.account_selector.list_accounts(association_id, include_inactive)

    def chart_of_accounts(self, association_id: str) -> list[AccountNode]:
        with self._transaction("chart_of_accounts", association_id=association_id) as svc:
            return svc.account_selector.chart_of_accounts(association_id)
