"""Selectors for the HOA kernel (read side)."""

from hoa_kernel.selectors.account_selector import GLAccountSelector
from hoa_kernel.selectors.journal_selector import JournalSelector
from hoa_kernel.selectors.ledger_selector import LedgerSelector

__all__ = [
    "GLAccountSelector",
    "JournalSelector",
    "LedgerSelector",
]
