"""
ReversalService -- thin orchestrator for journal entry reversals.

Responsibility:
    Validates reversal preconditions, builds the compensating entry with
    every line's debit and credit swapped, posts it, and moves the original
    entry from POSTED to REVERSED.

Architecture position:
    Kernel > Services -- imperative shell.  Consumes JournalEntryService.

Invariants enforced:
    - Only POSTED entries are reversed; REVERSED is terminal.
    - The compensating entry passes the same validation as any other entry
      and is posted through the same guarded transition.
    - All three steps (create, post, mark reversed) run in the caller's
      transaction, so a failure in any step leaves neither entry changed
      once the caller rolls back.

Failure modes:
    - EntryNotFoundError: original does not exist.
    - InvalidStateError: original is not POSTED, or a concurrent reversal
      won the POSTED -> REVERSED transition.
    - ValidationError: empty reason.

Audit relevance:
    The compensating entry carries reversal_of_id and the original
    entry_number as reference_number.  The original records reversed_at
    and reversal_reason.
"""

from __future__ import annotations

from uuid import UUID

from hoa_kernel.domain.dtos import JournalEntryFormData, JournalLineInput
from hoa_kernel.exceptions import ValidationError
from hoa_kernel.logging_config import get_logger
from hoa_kernel.models.journal import (
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
    SourceType,
)
from hoa_kernel.services.journal_service import JournalEntryService

logger = get_logger("services.reversal")


def reversal_line(line: JournalEntryLine) -> JournalLineInput:
    """The compensating line: same account and attribution, sides swapped."""
    return JournalLineInput(
        gl_account_id=line.gl_account_id,
        debit_amount=line.credit_amount,
        credit_amount=line.debit_amount,
        description=f"Reversal: {line.description}" if line.description else "Reversal",
        property_id=line.property_id,
        vendor_id=line.vendor_id,
    )


class ReversalService:
    """
    Reverses posted journal entries.

    Contract:
        ``reverse_entry`` returns the newly posted compensating entry.  The
        caller commits.

    Non-goals:
        - Partial reversals.  Every line is reversed.
    """

    def __init__(self, journal_service: JournalEntryService):
        self._journal = journal_service

    def reverse_entry(self, entry_id: UUID | str, reason: str) -> JournalEntry:
        """
        Reverse a POSTED entry.

        Postconditions:
            - A new POSTED entry dated today exists with swapped lines.
            - The original is REVERSED with reversed_at and reversal_reason.
        """
        if not reason or not reason.strip():
            raise ValidationError("Reversal reason is required")

        original = self._journal.lock_entry(entry_id)
        self._journal.require_status(original, JournalEntryStatus.POSTED, "reverse")

        form = JournalEntryFormData(
            entry_date=self._journal.clock.today(),
            description=f"Reversal of {original.entry_number}: {reason}",
            reference_number=original.entry_number,
            source_type=SourceType.ADJUSTMENT.value,
            lines=tuple(reversal_line(line) for line in original.lines),
        )

        reversal = self._journal.create_entry(
            original.association_id, form, reversal_of_id=original.id
        )
        logger.info(
            "reversal_entry_created",
            extra={
                "original_entry_id": str(original.id),
                "reversal_entry_id": str(reversal.id),
                "reversal_entry_number": reversal.entry_number,
            },
        )

        self._journal.post_entry(reversal.id)
        self._journal.mark_reversed(original.id, reason)

        logger.info(
            "journal_entry_reversed",
            extra={
                "original_entry_id": str(original.id),
                "original_entry_number": original.entry_number,
                "reversal_entry_id": str(reversal.id),
                "reversal_entry_number": reversal.entry_number,
                "reason": reason,
            },
        )
        return reversal
