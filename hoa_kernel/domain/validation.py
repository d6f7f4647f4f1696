"""
Double-entry validation -- pure checks with no I/O.

Shared by JournalEntryService.create_entry and post_entry so that the rules
applied when an entry is drafted are re-applied, unchanged, when it posts.

Check order (first failure wins):
    1. line count below minimum           -> TooFewLinesError
    2. |debits - credits| > tolerance     -> UnbalancedEntryError
    3. per line, in order:
       negative amount                    -> InvalidLineError(NEGATIVE)
       both sides positive                -> InvalidLineError(BOTH_SIDES)
       neither side positive              -> InvalidLineError(NO_SIDE)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol

from hoa_kernel.exceptions import InvalidLineError, TooFewLinesError, UnbalancedEntryError

DEFAULT_BALANCE_TOLERANCE = Decimal("0.01")
DEFAULT_MIN_LINES = 2


class LineAmounts(Protocol):
    """Anything carrying a debit and a credit amount (input DTO or ORM line)."""

    debit_amount: Decimal
    credit_amount: Decimal


@dataclass(frozen=True)
class EntryTotals:
    total_debit: Decimal
    total_credit: Decimal

    @property
    def difference(self) -> Decimal:
        return abs(self.total_debit - self.total_credit)


def validate_double_entry(
    lines: Iterable[LineAmounts],
    tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE,
    min_lines: int = DEFAULT_MIN_LINES,
) -> EntryTotals:
    """
    Validate a set of lines against the double-entry rules.

    Returns:
        The computed totals when every rule holds.

    Raises:
        TooFewLinesError, UnbalancedEntryError, InvalidLineError.
    """
    lines = list(lines)
    if len(lines) < min_lines:
        raise TooFewLinesError(line_count=len(lines), minimum=min_lines)

    total_debit = sum((line.debit_amount for line in lines), Decimal("0"))
    total_credit = sum((line.credit_amount for line in lines), Decimal("0"))

    if abs(total_debit - total_credit) > tolerance:
        raise UnbalancedEntryError(
            debits=total_debit, credits=total_credit, tolerance=tolerance
        )

    for line_number, line in enumerate(lines, start=1):
        check_line(line, line_number)

    return EntryTotals(total_debit=total_debit, total_credit=total_credit)


def check_line(line: LineAmounts, line_number: int) -> None:
    """Raise InvalidLineError unless exactly one side is positive."""
    debit, credit = line.debit_amount, line.credit_amount
    if debit < 0 or credit < 0:
        raise InvalidLineError(line_number, InvalidLineError.NEGATIVE)
    if debit > 0 and credit > 0:
        raise InvalidLineError(line_number, InvalidLineError.BOTH_SIDES)
    if debit == 0 and credit == 0:
        raise InvalidLineError(line_number, InvalidLineError.NO_SIDE)
