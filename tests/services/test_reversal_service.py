"""
ReversalService unit tests.

Tests cover:
- Happy path: compensating entry posted, original marked REVERSED
- Line fidelity: sides swapped, accounts and attribution preserved
- Linkage: reversal_of_id and reference_number point at the original
- Balances: original plus reversal nets to zero
- Error paths: draft, already reversed, unknown entry, missing reason
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from hoa_kernel.domain.dtos import JournalEntryFormData, JournalLineInput
from hoa_kernel.exceptions import EntryNotFoundError, InvalidStateError, ValidationError
from hoa_kernel.models.account import GLAccount
from hoa_kernel.models.journal import (
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
    SourceType,
)
from hoa_kernel.services.reversal_service import reversal_line
from tests.conftest import TEST_ASSOCIATION_ID

REASON = "Assessment billed to the wrong unit"


class TestReverseEntry:
    def test_returns_posted_compensating_entry(self, reversal_service, posted_entry):
        reversal = reversal_service.reverse_entry(posted_entry.id, REASON)

        assert reversal.id != posted_entry.id
        assert reversal.status == JournalEntryStatus.POSTED
        assert reversal.association_id == TEST_ASSOCIATION_ID
        assert reversal.entry_number == "JE-2024-0002"
        assert reversal.source_type == SourceType.ADJUSTMENT
        assert reversal.description == f"Reversal of {posted_entry.entry_number}: {REASON}"

    def test_links_to_original(self, reversal_service, posted_entry):
        reversal = reversal_service.reverse_entry(posted_entry.id, REASON)

        assert reversal.reversal_of_id == posted_entry.id
        assert reversal.reference_number == posted_entry.entry_number

    def test_dated_today_by_clock(self, reversal_service, posted_entry, deterministic_clock):
        deterministic_clock.set_time(datetime(2024, 3, 9, 15, 30, tzinfo=timezone.utc))

        reversal = reversal_service.reverse_entry(posted_entry.id, REASON)

        assert posted_entry.entry_date == date(2024, 1, 15)
        assert reversal.entry_date == date(2024, 3, 9)

    def test_original_marked_reversed(self, reversal_service, posted_entry, session):
        reversal_service.reverse_entry(posted_entry.id, REASON)

        original = session.get(JournalEntry, posted_entry.id)
        session.refresh(original)
        assert original.status == JournalEntryStatus.REVERSED
        assert original.reversal_reason == REASON
        assert original.reversed_at is not None
        assert original.posted_at is not None

    def test_lines_swapped(self, reversal_service, posted_entry, standard_accounts):
        reversal = reversal_service.reverse_entry(posted_entry.id, REASON)

        assert len(reversal.lines) == len(posted_entry.lines)
        for original_line, reversed_line in zip(posted_entry.lines, reversal.lines):
            assert reversed_line.gl_account_id == original_line.gl_account_id
            assert reversed_line.debit_amount == original_line.credit_amount
            assert reversed_line.credit_amount == original_line.debit_amount
            assert reversed_line.description == f"Reversal: {original_line.description}"

        assert reversal.total_amount == posted_entry.total_amount

    def test_balances_net_to_zero(self, reversal_service, posted_entry, standard_accounts, session):
        reversal_service.reverse_entry(posted_entry.id, REASON)

        for code in ("1100", "4000"):
            account = session.get(GLAccount, standard_accounts[code].id)
            session.refresh(account)
            assert account.current_balance == Decimal("0")

    def test_reversal_is_findable_from_original(self, reversal_service, posted_entry, journal_selector):
        reversal = reversal_service.reverse_entry(posted_entry.id, REASON)

        found = journal_selector.reversal_of(posted_entry.id)
        assert found is not None
        assert found.id == reversal.id

    def test_logs_reversal(self, reversal_service, posted_entry, captured_logs):
        reversal = reversal_service.reverse_entry(posted_entry.id, REASON)

        records = {r["message"]: r for r in captured_logs()}
        assert "reversal_entry_created" in records
        reversed_log = records["journal_entry_reversed"]
        assert reversed_log["original_entry_id"] == str(posted_entry.id)
        assert reversed_log["reversal_entry_number"] == reversal.entry_number
        assert reversed_log["reason"] == REASON


class TestReverseEntryErrors:
    def test_draft_cannot_be_reversed(self, reversal_service, draft_entry, session):
        with pytest.raises(InvalidStateError) as exc_info:
            reversal_service.reverse_entry(draft_entry.id, REASON)

        assert exc_info.value.current_status == "draft"
        assert exc_info.value.required_status == "posted"
        assert exc_info.value.operation == "reverse"
        count = session.execute(select(func.count()).select_from(JournalEntry)).scalar_one()
        assert count == 1

    def test_cannot_reverse_twice(self, reversal_service, posted_entry):
        reversal_service.reverse_entry(posted_entry.id, REASON)

        with pytest.raises(InvalidStateError) as exc_info:
            reversal_service.reverse_entry(posted_entry.id, REASON)
        assert exc_info.value.current_status == "reversed"

    def test_unknown_entry(self, reversal_service):
        with pytest.raises(EntryNotFoundError):
            reversal_service.reverse_entry(uuid4(), REASON)

    @pytest.mark.parametrize("reason", ["", "   "])
    def test_reason_required(self, reversal_service, posted_entry, reason):
        with pytest.raises(ValidationError):
            reversal_service.reverse_entry(posted_entry.id, reason)


class TestMultiLineReversal:
    def test_every_line_reversed(self, journal_service, reversal_service, standard_accounts):
        form = JournalEntryFormData(
            entry_date=date(2024, 1, 20),
            description="Quarterly landscaping",
            lines=(
                JournalLineInput(
                    gl_account_id=standard_accounts["6000"].id,
                    debit_amount="450.00",
                    vendor_id="vendor-green",
                ),
                JournalLineInput(gl_account_id=standard_accounts["6100"].id, debit_amount="50.00"),
                JournalLineInput(gl_account_id=standard_accounts["2000"].id, credit_amount="500.00"),
            ),
        )
        entry = journal_service.create_entry(TEST_ASSOCIATION_ID, form)
        journal_service.post_entry(entry.id)

        reversal = reversal_service.reverse_entry(entry.id, "Invoice cancelled")

        assert [l.credit_amount for l in reversal.lines] == [
            Decimal("450.00"),
            Decimal("50.00"),
            Decimal("0"),
        ]
        assert reversal.lines[2].debit_amount == Decimal("500.00")
        assert reversal.lines[0].vendor_id == "vendor-green"


class TestReversalLine:
    def test_line_without_description(self):
        line_input = reversal_line(
            JournalEntryLine(
                line_number=1,
                gl_account_id=uuid4(),
                debit_amount=Decimal("12.50"),
                credit_amount=Decimal("0"),
            )
        )
        assert line_input.description == "Reversal"
        assert line_input.credit_amount == Decimal("12.50")
        assert line_input.debit_amount == Decimal("0")
