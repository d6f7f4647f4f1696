"""
Module: hoa_kernel.selectors.ledger_selector
Responsibility: Read-only ledger aggregates: account balances and the trial
    balance, computed from journal lines at query time.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Only lines of POSTED and REVERSED entries count.  A reversed entry and
      its posted compensating entry are both included, so they net to zero.
    - The computed balance of an account always agrees with the running
      GLAccount.current_balance maintained by posting.

Failure modes:
    - AccountNotFoundError from account_balance for an unknown account.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from hoa_kernel.db.types import round_money
from hoa_kernel.domain.dtos import TrialBalanceRow
from hoa_kernel.exceptions import AccountNotFoundError
from hoa_kernel.models.account import GLAccount, NormalBalance
from hoa_kernel.models.journal import JournalEntry, JournalEntryLine, JournalEntryStatus
from hoa_kernel.selectors.base import BaseSelector

LEDGER_STATUSES = (JournalEntryStatus.POSTED.value, JournalEntryStatus.REVERSED.value)


class LedgerSelector(BaseSelector[JournalEntryLine]):
    """Aggregates over posted journal lines."""

    def _line_totals(
        self,
        account_id: UUID,
        start_date: date | None,
        end_date: date | None,
    ) -> tuple[Decimal, Decimal]:
        query = (
            select(
                func.coalesce(func.sum(JournalEntryLine.debit_amount), Decimal("0")),
                func.coalesce(func.sum(JournalEntryLine.credit_amount), Decimal("0")),
            )
            .join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalEntryLine.gl_account_id == account_id,
                JournalEntry.status.in_(LEDGER_STATUSES),
            )
        )
        if start_date is not None:
            query = query.where(JournalEntry.entry_date >= start_date)
        if end_date is not None:
            query = query.where(JournalEntry.entry_date <= end_date)

        debits, credits = self.session.execute(query).one()
        return Decimal(str(debits)), Decimal(str(credits))

    def account_balance(
        self,
        account_id: UUID | str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Decimal:
        """
        Balance of one account from its posted lines, optionally within a
        date range (inclusive on both ends).

        The sign follows the account's normal balance: a debit-normal account
        reports debits - credits, a credit-normal account credits - debits.

        Raises:
            AccountNotFoundError: If the account does not exist.
        """
        if not isinstance(account_id, UUID):
            account_id = UUID(str(account_id))
        account = self.session.get(GLAccount, account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))

        debits, credits = self._line_totals(account_id, start_date, end_date)
        if account.normal_balance == NormalBalance.DEBIT:
            return round_money(debits - credits)
        return round_money(credits - debits)

    def trial_balance(
        self,
        association_id: str,
        as_of_date: date | None = None,
    ) -> list[TrialBalanceRow]:
        """
        Debit and credit totals per account, ordered by account code.

        Postconditions: The sum of debit_total over all rows equals the sum
            of credit_total (every counted entry is balanced).
        """
        debit_sum = func.sum(JournalEntryLine.debit_amount).label("debit_total")
        credit_sum = func.sum(JournalEntryLine.credit_amount).label("credit_total")

        query = (
            select(
                GLAccount.id.label("account_id"),
                GLAccount.account_code,
                GLAccount.account_name,
                GLAccount.account_type,
                debit_sum,
                credit_sum,
            )
            .select_from(JournalEntryLine)
            .join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id)
            .join(GLAccount, JournalEntryLine.gl_account_id == GLAccount.id)
            .where(
                JournalEntry.association_id == association_id,
                JournalEntry.status.in_(LEDGER_STATUSES),
            )
            .group_by(
                GLAccount.id,
                GLAccount.account_code,
                GLAccount.account_name,
                GLAccount.account_type,
            )
            .order_by(GLAccount.account_code)
        )
        if as_of_date is not None:
            query = query.where(JournalEntry.entry_date <= as_of_date)

        return [
            TrialBalanceRow(
                account_id=row.account_id,
                account_code=row.account_code,
                account_name=row.account_name,
                account_type=row.account_type,
                debit_total=round_money(Decimal(str(row.debit_total or 0))),
                credit_total=round_money(Decimal(str(row.credit_total or 0))),
            )
            for row in self.session.execute(query).all()
        ]
