"""Services for the HOA kernel (write side)."""

from hoa_kernel.services.account_service import GLAccountService
from hoa_kernel.services.journal_service import JournalEntryService
from hoa_kernel.services.reversal_service import ReversalService
from hoa_kernel.services.sequence_service import SequenceCounter, SequenceService

__all__ = [
    "GLAccountService",
    "JournalEntryService",
    "ReversalService",
    "SequenceCounter",
    "SequenceService",
]
