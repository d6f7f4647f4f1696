"""
DTOs -- Pure domain data transfer objects for the journal ledger.

Responsibility:
    Defines the immutable input structures accepted by the write side
    (JournalLineInput, JournalEntryFormData, GLAccountSpec) and the
    read-side records returned by selectors (JournalEntryDTO,
    JournalLineDTO, GLAccountDTO, TrialBalanceRow, AccountNode).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Free of ORM
    dependencies; selectors convert ORM rows into these records.

Invariants enforced:
    - Monetary inputs become Decimal via ``to_money`` (string conversion,
      never float arithmetic) and are rounded to cents on construction.
    - Lines are stored as tuples so a submitted entry cannot be mutated
      between validation and persistence.

Failure modes:
    - ValueError when an amount is not numeric.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable
from uuid import UUID

from hoa_kernel.db.types import round_money, to_money


@dataclass(frozen=True)
class JournalLineInput:
    """One caller-supplied line of a journal entry."""

    gl_account_id: UUID | str
    debit_amount: Decimal = Decimal("0")
    credit_amount: Decimal = Decimal("0")
    description: str | None = None
    property_id: str | None = None
    vendor_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "debit_amount", round_money(to_money(self.debit_amount)))
        object.__setattr__(self, "credit_amount", round_money(to_money(self.credit_amount)))
        if not isinstance(self.gl_account_id, UUID):
            object.__setattr__(self, "gl_account_id", UUID(str(self.gl_account_id)))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JournalLineInput:
        return cls(
            gl_account_id=data["gl_account_id"],
            debit_amount=data.get("debit_amount", 0),
            credit_amount=data.get("credit_amount", 0),
            description=data.get("description"),
            property_id=data.get("property_id"),
            vendor_id=data.get("vendor_id"),
        )


@dataclass(frozen=True)
class JournalEntryFormData:
    """
    Header and lines for a new journal entry.

    ``lines`` accepts any iterable of JournalLineInput or plain dicts and is
    normalised to a tuple of JournalLineInput.
    """

    entry_date: date
    description: str | None = None
    lines: tuple[JournalLineInput, ...] = field(default_factory=tuple)
    reference_number: str | None = None
    source_type: str = "manual"

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", _coerce_lines(self.lines))
        if isinstance(self.entry_date, str):
            object.__setattr__(self, "entry_date", date.fromisoformat(self.entry_date))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JournalEntryFormData:
        return cls(
            entry_date=data["entry_date"],
            description=data.get("description"),
            lines=data.get("lines", ()),
            reference_number=data.get("reference_number"),
            source_type=data.get("source_type", "manual"),
        )


def _coerce_lines(lines: Iterable[JournalLineInput | dict]) -> tuple[JournalLineInput, ...]:
    return tuple(
        line if isinstance(line, JournalLineInput) else JournalLineInput.from_dict(line)
        for line in lines
    )


@dataclass(frozen=True)
class GLAccountSpec:
    """Input for creating a GL account."""

    account_code: str
    account_name: str
    account_type: str
    normal_balance: str | None = None
    account_subtype: str | None = None
    description: str | None = None
    parent_account_id: UUID | None = None
    is_system_account: bool = False


# ---------------------------------------------------------------------------
# Read-side records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JournalLineDTO:
    id: UUID
    line_number: int
    gl_account_id: UUID
    account_code: str | None
    account_name: str | None
    description: str | None
    debit_amount: Decimal
    credit_amount: Decimal
    property_id: str | None
    vendor_id: str | None


@dataclass(frozen=True)
class JournalEntryDTO:
    """Immutable view of a journal entry and its lines."""

    id: UUID
    association_id: str
    entry_number: str
    entry_date: date
    description: str | None
    reference_number: str | None
    source_type: str
    total_amount: Decimal
    status: str
    posted_at: datetime | None
    reversed_at: datetime | None
    reversal_reason: str | None
    reversal_of_id: UUID | None
    created_at: datetime | None
    lines: tuple[JournalLineDTO, ...]

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit_amount for line in self.lines), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit_amount for line in self.lines), Decimal("0"))


@dataclass(frozen=True)
class GLAccountDTO:
    id: UUID
    association_id: str
    account_code: str
    account_name: str
    account_type: str
    account_subtype: str | None
    normal_balance: str
    parent_account_id: UUID | None
    current_balance: Decimal
    is_active: bool
    is_system_account: bool


@dataclass(frozen=True)
class AccountNode:
    """A chart-of-accounts node with its children, ordered by code."""

    account: GLAccountDTO
    children: tuple[AccountNode, ...] = ()


@dataclass(frozen=True)
class TrialBalanceRow:
    account_id: UUID
    account_code: str
    account_name: str
    account_type: str
    debit_total: Decimal
    credit_total: Decimal

    @property
    def net_balance(self) -> Decimal:
        return self.debit_total - self.credit_total
