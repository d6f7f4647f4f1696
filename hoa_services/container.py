"""
hoa_services.container -- per-transaction wiring of kernel services.

Responsibility:
    Creates every kernel service and selector for one session exactly once
    and wires them together from the active LedgerConfig.  No kernel
    service constructs its collaborators when built through here.

Usage:
    services = LedgerServices(session, config, clock)
    services.journal.create_entry(...)
    services.reversals.reverse_entry(...)
    services.journal_selector.get_entry(...)
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from hoa_config import LedgerConfig
from hoa_kernel.domain.clock import Clock, SystemClock
from hoa_kernel.domain.dtos import GLAccountSpec
from hoa_kernel.selectors.account_selector import GLAccountSelector
from hoa_kernel.selectors.journal_selector import JournalSelector
from hoa_kernel.selectors.ledger_selector import LedgerSelector
from hoa_kernel.services.account_service import GLAccountService
from hoa_kernel.services.journal_service import JournalEntryService
from hoa_kernel.services.reversal_service import ReversalService
from hoa_kernel.services.sequence_service import SequenceService


class LedgerServices:
    """Kernel services bound to one session and one configuration."""

    def __init__(self, session: Session, config: LedgerConfig, clock: Clock | None = None):
        self.session = session
        self.config = config
        self.clock = clock or SystemClock()

        self.sequences = SequenceService(session)
        self.accounts = GLAccountService(session, self.clock)
        self.journal = JournalEntryService(
            session,
            self.clock,
            balance_tolerance=config.balance_tolerance,
            min_lines=config.min_lines,
            entry_number_prefix=config.entry_number_prefix,
            entry_number_width=config.entry_number_width,
            account_service=self.accounts,
            sequence_service=self.sequences,
        )
        self.reversals = ReversalService(self.journal)

        self.journal_selector = JournalSelector(session)
        self.ledger_selector = LedgerSelector(session)
        self.account_selector = GLAccountSelector(session)

    def default_chart_specs(self) -> list[GLAccountSpec]:
        """Translate configured account seeds into kernel account specs."""
        return [
            GLAccountSpec(
                account_code=seed.account_code,
                account_name=seed.account_name,
                account_type=seed.account_type,
                normal_balance=seed.normal_balance,
                account_subtype=seed.account_subtype,
                description=seed.description,
                is_system_account=seed.is_system_account,
            )
            for seed in self.config.default_accounts
        ]
