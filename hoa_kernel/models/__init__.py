"""Domain models for the HOA kernel."""

from hoa_kernel.models.account import (
    DEFAULT_NORMAL_BALANCE,
    AccountType,
    GLAccount,
    NormalBalance,
)
from hoa_kernel.models.journal import (
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
    SourceType,
)

__all__ = [
    "DEFAULT_NORMAL_BALANCE",
    "AccountType",
    "GLAccount",
    "JournalEntry",
    "JournalEntryLine",
    "JournalEntryStatus",
    "NormalBalance",
    "SourceType",
]
