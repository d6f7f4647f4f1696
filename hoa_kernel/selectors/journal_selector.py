"""
Module: hoa_kernel.selectors.journal_selector
Responsibility: Read-only access to journal entries and their lines.
Architecture position: Kernel > Selectors.

Ordering:
    list_entries returns newest first: entry_date DESC, then entry_number
    DESC.  Lines are always ordered by line_number.
"""

from uuid import UUID

from sqlalchemy import select

from hoa_kernel.db.types import round_money
from hoa_kernel.domain.dtos import JournalEntryDTO, JournalLineDTO
from hoa_kernel.models.journal import JournalEntry, JournalEntryLine, JournalEntryStatus
from hoa_kernel.selectors.base import BaseSelector


def line_to_dto(line: JournalEntryLine) -> JournalLineDTO:
    account = line.account
    return JournalLineDTO(
        id=line.id,
        line_number=line.line_number,
        gl_account_id=line.gl_account_id,
        account_code=account.account_code if account is not None else None,
        account_name=account.account_name if account is not None else None,
        description=line.description,
        debit_amount=round_money(line.debit_amount),
        credit_amount=round_money(line.credit_amount),
        property_id=line.property_id,
        vendor_id=line.vendor_id,
    )


def entry_to_dto(entry: JournalEntry) -> JournalEntryDTO:
    """Convert an ORM entry (with loaded lines) to its immutable DTO."""
    return JournalEntryDTO(
        id=entry.id,
        association_id=entry.association_id,
        entry_number=entry.entry_number,
        entry_date=entry.entry_date,
        description=entry.description,
        reference_number=entry.reference_number,
        source_type=str(getattr(entry.source_type, "value", entry.source_type)),
        total_amount=round_money(entry.total_amount),
        status=JournalEntryStatus(entry.status).value,
        posted_at=entry.posted_at,
        reversed_at=entry.reversed_at,
        reversal_reason=entry.reversal_reason,
        reversal_of_id=entry.reversal_of_id,
        created_at=entry.created_at,
        lines=tuple(
            line_to_dto(line)
            for line in sorted(entry.lines, key=lambda l: l.line_number)
        ),
    )


class JournalSelector(BaseSelector[JournalEntry]):
    """
    Read-only queries over journal entries.

    Contract:
        Missing entries are reported as None, not raised.
    """

    def get_entry(self, entry_id: UUID | str) -> JournalEntryDTO | None:
        if not isinstance(entry_id, UUID):
            entry_id = UUID(str(entry_id))
        entry = self.session.get(JournalEntry, entry_id)
        return entry_to_dto(entry) if entry is not None else None

    def get_by_number(self, association_id: str, entry_number: str) -> JournalEntryDTO | None:
        entry = self.session.execute(
            select(JournalEntry).where(
                JournalEntry.association_id == association_id,
                JournalEntry.entry_number == entry_number,
            )
        ).scalar_one_or_none()
        return entry_to_dto(entry) if entry is not None else None

    def list_entries(
        self,
        association_id: str,
        status: JournalEntryStatus | str | None = None,
    ) -> list[JournalEntryDTO]:
        """
        All entries for an association, newest first.

        Args:
            association_id: Owning association.
            status: Optional status filter.
        """
        query = (
            select(JournalEntry)
            .where(JournalEntry.association_id == association_id)
            .order_by(JournalEntry.entry_date.desc(), JournalEntry.entry_number.desc())
        )
        if status is not None:
            query = query.where(JournalEntry.status == JournalEntryStatus(status).value)

        return [entry_to_dto(entry) for entry in self.session.execute(query).scalars()]

    def reversal_of(self, entry_id: UUID | str) -> JournalEntryDTO | None:
        """The compensating entry for ``entry_id``, if it has been reversed."""
        if not isinstance(entry_id, UUID):
            entry_id = UUID(str(entry_id))
        entry = self.session.execute(
            select(JournalEntry).where(JournalEntry.reversal_of_id == entry_id)
        ).scalar_one_or_none()
        return entry_to_dto(entry) if entry is not None else None
