"""
hoa_services -- transactional composition root for the HOA ledger.

Dependency direction:
    hoa_services/ -> hoa_kernel/  (allowed)
    hoa_services/ -> hoa_config/  (allowed)
    hoa_kernel/   -> hoa_services/ (FORBIDDEN)
"""

from hoa_services.bootstrap import bootstrap_ledger
from hoa_services.container import LedgerServices
from hoa_services.ledger import JournalEntryLedger

__all__ = [
    "JournalEntryLedger",
    "LedgerServices",
    "bootstrap_ledger",
]
