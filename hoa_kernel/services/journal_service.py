"""
JournalEntryService -- create, post and delete journal entries.

Responsibility:
    The write side of the journal entry ledger.  Validates entries with
    the double-entry rules, numbers them from a locked per-association
    counter, persists header and lines together, moves entries through
    DRAFT -> POSTED -> REVERSED with guarded status updates, and applies
    posted lines to GL account running balances.

Architecture position:
    Kernel > Services -- imperative shell.  Consumes SequenceService and
    GLAccountService.  Reversal orchestration lives in ReversalService,
    which calls back into this service.

Invariants enforced:
    - Validation (line count, balance, one side per line) runs before any
      write on create, and again before the status change on post.
    - Status changes are conditional UPDATEs (``WHERE status = :expected``).
      When zero rows match, another transaction won and InvalidStateError is
      raised.  No in-process locks are involved.
    - Entry numbers come from SequenceService, never from MAX(...) + 1.
    - Only DRAFT entries are deleted.

Failure modes:
    - TooFewLinesError, UnbalancedEntryError, InvalidLineError.
    - InvalidSourceTypeError, AccountNotFoundError, InvalidAccountError.
    - EntryNotFoundError, InvalidStateError.
    - SQLAlchemyError from flush, propagated to the transaction owner.

Audit relevance:
    Every state change logs a structured event carrying entry_id and
    entry_number.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from hoa_kernel.domain.clock import Clock
from hoa_kernel.domain.dtos import JournalEntryFormData
from hoa_kernel.domain.entry_number import (
    DEFAULT_PREFIX,
    DEFAULT_WIDTH,
    format_entry_number,
    parse_entry_number,
    sequence_name,
    year_prefix,
)
from hoa_kernel.domain.validation import (
    DEFAULT_BALANCE_TOLERANCE,
    DEFAULT_MIN_LINES,
    validate_double_entry,
)
from hoa_kernel.exceptions import (
    AccountNotFoundError,
    EntryNotFoundError,
    InvalidAccountError,
    InvalidSourceTypeError,
    InvalidStateError,
    ValidationError,
)
from hoa_kernel.logging_config import get_logger
from hoa_kernel.models.account import GLAccount
from hoa_kernel.models.journal import (
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
    SourceType,
)
from hoa_kernel.services.account_service import GLAccountService
from hoa_kernel.services.base import BaseService, as_uuid
from hoa_kernel.services.sequence_service import SequenceService

logger = get_logger("services.journal")


class JournalEntryService(BaseService[JournalEntry]):
    """
    Write service for journal entries.

    Contract:
        Flush-only.  The caller owns the transaction, so a failure anywhere
        in an operation leaves nothing behind once the caller rolls back.

    Guarantees:
        - A created entry is balanced within ``balance_tolerance`` and has
          at least ``min_lines`` lines, each with exactly one positive side.
        - ``post_entry`` on the same draft from two transactions succeeds
          once; the loser gets InvalidStateError.

    Non-goals:
        - Editing a draft's lines in place.  Drafts are deleted and
          re-created.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        *,
        balance_tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE,
        min_lines: int = DEFAULT_MIN_LINES,
        entry_number_prefix: str = DEFAULT_PREFIX,
        entry_number_width: int = DEFAULT_WIDTH,
        account_service: GLAccountService | None = None,
        sequence_service: SequenceService | None = None,
    ):
        super().__init__(session, clock)
        self._tolerance = balance_tolerance
        self._min_lines = min_lines
        self._prefix = entry_number_prefix
        self._width = entry_number_width
        self._accounts = account_service or GLAccountService(session, self.clock)
        self._sequences = sequence_service or SequenceService(session)

    # =========================================================================
    # Entry numbers
    # =========================================================================

    def generate_entry_number(self, association_id: str) -> str:
        """
        Allocate the next entry number for the association in the current year.

        The year comes from the injected clock, not the entry date, so a
        back-dated entry still draws from this year's sequence.
        """
        year = self.clock.now().year
        value = self._sequences.next_value(
            sequence_name(association_id, year),
            seed=lambda: self._highest_issued(association_id, year),
        )
        entry_number = format_entry_number(year, value, self._prefix, self._width)
        logger.debug(
            "entry_number_allocated",
            extra={"association_id": association_id, "entry_number": entry_number},
        )
        return entry_number

    def _highest_issued(self, association_id: str, year: int) -> int:
        """Highest sequence already used this year, for seeding a new counter."""
        numbers = self.session.execute(
            select(JournalEntry.entry_number).where(
                JournalEntry.association_id == association_id,
                JournalEntry.entry_number.startswith(
                    year_prefix(year, self._prefix), autoescape=True
                ),
            )
        ).scalars()
        highest = 0
        for number in numbers:
            try:
                highest = max(highest, parse_entry_number(number).sequence)
            except ValueError:
                continue
        return highest

    # =========================================================================
    # Create
    # =========================================================================

    def create_entry(
        self,
        association_id: str,
        form_data: JournalEntryFormData,
        *,
        reversal_of_id: UUID | None = None,
    ) -> JournalEntry:
        """
        Validate and store a new DRAFT entry with its lines.

        Preconditions:
            - ``association_id`` is non-empty.

        Postconditions:
            - Entry and lines are flushed together; line_number runs 1..N in
              input order; total_amount is the sum of debits.

        Raises:
            ValidationError subclasses before anything is written.
            AccountNotFoundError if a line references an unknown account.
        """
        if not association_id:
            raise ValidationError("association_id is required")

        totals = validate_double_entry(form_data.lines, self._tolerance, self._min_lines)
        source_type = self._source_type(form_data.source_type)
        self._check_accounts(association_id, form_data)

        now = self.clock.now()
        entry = JournalEntry(
            association_id=association_id,
            entry_number=self.generate_entry_number(association_id),
            entry_date=form_data.entry_date,
            description=form_data.description,
            reference_number=form_data.reference_number,
            source_type=source_type.value,
            total_amount=totals.total_debit,
            status=JournalEntryStatus.DRAFT.value,
            reversal_of_id=reversal_of_id,
            created_at=now,
            updated_at=now,
            lines=[
                JournalEntryLine(
                    line_number=index,
                    gl_account_id=line.gl_account_id,
                    description=line.description,
                    debit_amount=line.debit_amount,
                    credit_amount=line.credit_amount,
                    property_id=line.property_id,
                    vendor_id=line.vendor_id,
                    created_at=now,
                    updated_at=now,
                )
                for index, line in enumerate(form_data.lines, start=1)
            ],
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "journal_entry_created",
            extra={
                "entry_id": str(entry.id),
                "association_id": association_id,
                "entry_number": entry.entry_number,
                "line_count": len(form_data.lines),
                "total_amount": totals.total_debit,
                "source_type": source_type.value,
            },
        )
        return entry

    @staticmethod
    def _source_type(value: Any) -> SourceType:
        try:
            return SourceType(value)
        except ValueError:
            raise InvalidSourceTypeError(str(value)) from None

    def _check_accounts(self, association_id: str, form_data: JournalEntryFormData) -> None:
        account_ids = {line.gl_account_id for line in form_data.lines}
        accounts = {
            account.id: account
            for account in self.session.execute(
                select(GLAccount).where(GLAccount.id.in_(account_ids))
            ).scalars()
        }
        for line in form_data.lines:
            account = accounts.get(line.gl_account_id)
            if account is None:
                raise AccountNotFoundError(str(line.gl_account_id))
            if account.association_id != association_id:
                raise InvalidAccountError(
                    str(account.id), "account belongs to another association"
                )
            if not account.is_active:
                raise InvalidAccountError(str(account.id), "account is inactive")

    # =========================================================================
    # Lookup and guarded transitions
    # =========================================================================

    def lock_entry(self, entry_id: UUID | str) -> JournalEntry:
        """
        Load an entry with a row lock, refreshing any cached copy.

        Raises:
            EntryNotFoundError: If no entry has this id.
        """
        entry = self.session.execute(
            select(JournalEntry)
            .where(JournalEntry.id == as_uuid(entry_id))
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return entry

    def _transition(
        self,
        entry: JournalEntry,
        from_status: JournalEntryStatus,
        to_status: JournalEntryStatus,
        operation: str,
        **values: Any,
    ) -> None:
        """
        Conditionally move an entry between statuses and refresh it.

        Raises:
            InvalidStateError: If the entry is no longer in ``from_status``.
        """
        result = self.session.execute(
            update(JournalEntry)
            .where(
                JournalEntry.id == entry.id,
                JournalEntry.status == from_status.value,
            )
            .values(status=to_status.value, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            current = self.session.execute(
                select(JournalEntry.status).where(JournalEntry.id == entry.id)
            ).scalar_one_or_none()
            logger.warning(
                "journal_entry_transition_lost",
                extra={
                    "entry_id": str(entry.id),
                    "operation": operation,
                    "expected_status": from_status.value,
                    "current_status": current,
                },
            )
            if current is None:
                raise EntryNotFoundError(str(entry.id))
            raise InvalidStateError(
                entity_id=str(entry.id),
                current_status=str(current),
                required_status=from_status.value,
                operation=operation,
            )
        self.session.refresh(entry)

    @staticmethod
    def require_status(
        entry: JournalEntry,
        required: JournalEntryStatus,
        operation: str,
    ) -> None:
        if entry.status != required:
            raise InvalidStateError(
                entity_id=str(entry.id),
                current_status=JournalEntryStatus(entry.status).value,
                required_status=required.value,
                operation=operation,
            )

    # =========================================================================
    # Post
    # =========================================================================

    def post_entry(self, entry_id: UUID | str) -> JournalEntry:
        """
        Post a DRAFT entry and apply its lines to account balances.

        Raises:
            EntryNotFoundError: If the entry does not exist.
            InvalidStateError: If the entry is not DRAFT, including when a
                concurrent transaction posts it first.
            ValidationError: If the stored lines no longer validate.
        """
        entry = self.lock_entry(entry_id)
        self.require_status(entry, JournalEntryStatus.DRAFT, "post")

        validate_double_entry(entry.lines, self._tolerance, self._min_lines)

        now = self.clock.now()
        self._transition(
            entry,
            JournalEntryStatus.DRAFT,
            JournalEntryStatus.POSTED,
            "post",
            posted_at=now,
            updated_at=now,
        )

        for line in entry.lines:
            self._accounts.apply_line(line.gl_account_id, line.debit_amount, line.credit_amount)

        logger.info(
            "journal_entry_posted",
            extra={
                "entry_id": str(entry.id),
                "entry_number": entry.entry_number,
                "association_id": entry.association_id,
                "total_amount": entry.total_amount,
            },
        )
        return entry

    def mark_reversed(self, entry_id: UUID | str, reason: str) -> JournalEntry:
        """
        Move a POSTED entry to REVERSED.

        Only ReversalService calls this, after the compensating entry has
        been posted in the same transaction.
        """
        entry = self.lock_entry(entry_id)
        self.require_status(entry, JournalEntryStatus.POSTED, "reverse")

        now = self.clock.now()
        self._transition(
            entry,
            JournalEntryStatus.POSTED,
            JournalEntryStatus.REVERSED,
            "reverse",
            reversed_at=now,
            reversal_reason=reason,
            updated_at=now,
        )
        return entry

    # =========================================================================
    # Delete
    # =========================================================================

    def delete_entry(self, entry_id: UUID | str) -> None:
        """
        Delete a DRAFT entry and its lines.

        Raises:
            EntryNotFoundError: If the entry does not exist.
            InvalidStateError: If the entry is posted or reversed.
        """
        entry = self.lock_entry(entry_id)
        self.require_status(entry, JournalEntryStatus.DRAFT, "delete")

        entry_number = entry.entry_number
        self.session.delete(entry)
        self.session.flush()

        logger.info(
            "journal_entry_deleted",
            extra={"entry_id": str(entry_id), "entry_number": entry_number},
        )
