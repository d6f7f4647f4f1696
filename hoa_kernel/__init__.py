"""
HOA Kernel - General ledger core for homeowners associations.

A double-entry journal ledger with:
- Balanced-entry validation before any write
- Per-association, per-year entry numbering from locked counters
- Draft -> posted -> reversed lifecycle with guarded status transitions
- Immutability of posted and reversed entries
- GL account running balances maintained on posting
"""

__version__ = "0.1.0"
