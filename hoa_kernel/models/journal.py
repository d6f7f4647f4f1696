"""
Module: hoa_kernel.models.journal
Responsibility: ORM persistence for journal entries and journal entry lines,
    the single source of financial truth for an association's ledger.
Architecture position: Kernel > Models.  May import from db/ only.
    MUST NOT import from services/, selectors/ or domain/.

Invariants enforced:
    - entry_number is unique per association (UNIQUE constraint).
    - Lines are exclusively owned by their entry (delete-orphan cascade).
    - Immutability of posted/reversed entries and their lines is enforced by
      the listeners in db/immutability.py.

Failure modes:
    - IntegrityError on duplicate (association_id, entry_number).
    - ImmutabilityViolationError on UPDATE/DELETE of a posted entry or line.

Audit relevance:
    A reversing entry records reversal_of_id and carries the original
    entry_number as its reference_number, so both directions of the link
    are queryable.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hoa_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from hoa_kernel.models.account import GLAccount


class JournalEntryStatus(str, Enum):
    """Lifecycle status of a journal entry.

    Contract: Transitions are one-way: DRAFT -> POSTED -> REVERSED.
    """

    DRAFT = "draft"
    POSTED = "posted"
    REVERSED = "reversed"


class SourceType(str, Enum):
    """Where a journal entry came from."""

    MANUAL = "manual"
    ADJUSTMENT = "adjustment"
    RECURRING = "recurring"
    ASSESSMENT = "assessment"
    PAYMENT = "payment"
    BANK = "bank"
    SYSTEM = "system"


class JournalEntry(TrackedBase):
    """
    Journal entry header.

    Contract:
        Created as DRAFT with a balanced set of lines.  Once POSTED the row
        and its lines are immutable except for the POSTED -> REVERSED
        transition.

    Guarantees:
        - total_amount equals the sum of line debits at creation.
        - entry_number is unique within the association.

    Non-goals:
        - Balance is not enforced at the ORM level.  The write service
          validates before flushing; is_balanced is a read-side convenience.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint(
            "association_id", "entry_number", name="uq_journal_association_number"
        ),
        Index("idx_journal_association_status", "association_id", "status"),
        Index("idx_journal_entry_date", "entry_date"),
    )

    association_id: Mapped[str] = mapped_column(String(64), nullable=False)

    entry_number: Mapped[str] = mapped_column(String(32), nullable=False)

    entry_date: Mapped[date] = mapped_column(Date, nullable=False)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    source_type: Mapped[SourceType] = mapped_column(
        String(20),
        default=SourceType.MANUAL,
        nullable=False,
    )

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
        default=Decimal("0"),
    )

    status: Mapped[JournalEntryStatus] = mapped_column(
        String(10),
        default=JournalEntryStatus.DRAFT,
        nullable=False,
    )

    posted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    reversed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    reversal_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Set on the compensating entry, pointing at the entry it reverses
    reversal_of_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=True,
    )

    lines: Mapped[list["JournalEntryLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="JournalEntryLine.line_number",
    )

    reversal_of: Mapped["JournalEntry | None"] = relationship(
        remote_side="JournalEntry.id",
        foreign_keys=[reversal_of_id],
    )

    def __repr__(self) -> str:
        return f"<JournalEntry {self.entry_number} status={self.status}>"

    @property
    def is_draft(self) -> bool:
        return self.status == JournalEntryStatus.DRAFT

    @property
    def is_posted(self) -> bool:
        return self.status == JournalEntryStatus.POSTED

    @property
    def is_reversed(self) -> bool:
        return self.status == JournalEntryStatus.REVERSED

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit_amount for line in self.lines), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit_amount for line in self.lines), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        """Read-side check that debits equal credits exactly."""
        return self.total_debits == self.total_credits


class JournalEntryLine(TrackedBase):
    """
    One debit or credit against a GL account.

    Contract:
        Exactly one of debit_amount / credit_amount is positive; the other
        is zero.  line_number runs 1..N in the order lines were supplied.
    """

    __tablename__ = "journal_entry_lines"

    __table_args__ = (
        UniqueConstraint(
            "journal_entry_id", "line_number", name="uq_journal_line_number"
        ),
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "gl_account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    gl_account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("gl_accounts.id"),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    debit_amount: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
        default=Decimal("0"),
    )

    credit_amount: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
        default=Decimal("0"),
    )

    # Sub-ledger attribution
    property_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    vendor_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")

    account: Mapped["GLAccount"] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<JournalEntryLine {self.line_number} "
            f"Dr {self.debit_amount} Cr {self.credit_amount}>"
        )

    @property
    def is_debit(self) -> bool:
        return self.debit_amount > 0

    @property
    def is_credit(self) -> bool:
        return self.credit_amount > 0
