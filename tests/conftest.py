"""
Pytest fixtures for the HOA ledger test suite.

Provides:
- A database engine and tables shared by the whole session
- Per-test sessions that roll back everything at teardown
- Kernel services wired to a deterministic clock
- A JournalEntryLedger whose transactions run inside the test's rollback scope

Environment Variables:
- DATABASE_URL: SQLAlchemy URL of the test database.
  If not set, an in-memory SQLite database is used.
"""

import json
import logging
import os
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session, sessionmaker

from hoa_config import get_active_config
from hoa_kernel.db.engine import build_engine, create_tables, drop_tables
from hoa_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from hoa_kernel.domain.clock import DeterministicClock
from hoa_kernel.domain.dtos import GLAccountSpec, JournalEntryFormData, JournalLineInput
from hoa_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from hoa_kernel.selectors.account_selector import GLAccountSelector
from hoa_kernel.selectors.journal_selector import JournalSelector
from hoa_kernel.selectors.ledger_selector import LedgerSelector
from hoa_kernel.services.account_service import GLAccountService
from hoa_kernel.services.journal_service import JournalEntryService
from hoa_kernel.services.reversal_service import ReversalService
from hoa_kernel.services.sequence_service import SequenceService
from hoa_services.ledger import JournalEntryLedger

TEST_ASSOCIATION_ID = "assoc-oakridge"
OTHER_ASSOCIATION_ID = "assoc-pinecrest"

DEFAULT_DATABASE_URL = "sqlite:///:memory:"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture hoa_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, journal_service):
            journal_service.create_entry(...)
            logs = captured_logs()
            assert any(r["message"] == "journal_entry_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("hoa_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


def get_database_url() -> str:
    """Get database URL from environment, or use in-memory SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


# =============================================================================
# Session-scoped DB infrastructure (create engine + tables ONCE per suite)
# =============================================================================


@pytest.fixture(scope="session")
def db_engine():
    """Single engine for the entire test session."""
    eng = build_engine(get_database_url())
    yield eng
    eng.dispose()


@pytest.fixture(scope="session")
def db_tables(db_engine):
    """Create all tables once per session, drop once at end.

    Immutability listeners are registered once and remain active.
    """
    drop_tables(db_engine)
    create_tables(db_engine)
    register_immutability_listeners()
    yield
    unregister_immutability_listeners()
    drop_tables(db_engine)


# =============================================================================
# Per-test connection and session with automatic rollback
# =============================================================================


@pytest.fixture
def connection(db_tables, db_engine):
    """A connection holding an outer transaction that is rolled back at teardown."""
    conn = db_engine.connect()
    trans = conn.begin()
    yield conn
    if trans.is_active:
        trans.rollback()
    conn.close()


@pytest.fixture
def session(connection) -> Generator[Session, None, None]:
    """Provide a database session for testing.

    The session joins the connection's outer transaction in
    ``create_savepoint`` mode, so ``session.commit()`` only releases a
    savepoint and every change disappears when the test ends.
    """
    sess = Session(
        bind=connection,
        join_transaction_mode="create_savepoint",
        expire_on_commit=False,
    )
    yield sess
    sess.close()


# =============================================================================
# Clock and configuration
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """Clock fixed at 2024-01-01 12:00 UTC."""
    return DeterministicClock()


@pytest.fixture
def ledger_config():
    return get_active_config()


# =============================================================================
# Kernel services
# =============================================================================


@pytest.fixture
def sequence_service(session):
    return SequenceService(session)


@pytest.fixture
def account_service(session, deterministic_clock):
    return GLAccountService(session, deterministic_clock)


@pytest.fixture
def journal_service(session, deterministic_clock, account_service, sequence_service):
    return JournalEntryService(
        session,
        deterministic_clock,
        account_service=account_service,
        sequence_service=sequence_service,
    )


@pytest.fixture
def reversal_service(journal_service):
    return ReversalService(journal_service)


@pytest.fixture
def journal_selector(session):
    return JournalSelector(session)


@pytest.fixture
def ledger_selector(session):
    return LedgerSelector(session)


@pytest.fixture
def account_selector(session):
    return GLAccountSelector(session)


# =============================================================================
# Test data
# =============================================================================


def _default_specs(config) -> list[GLAccountSpec]:
    return [
        GLAccountSpec(
            account_code=seed.account_code,
            account_name=seed.account_name,
            account_type=seed.account_type,
            normal_balance=seed.normal_balance,
            account_subtype=seed.account_subtype,
            is_system_account=seed.is_system_account,
        )
        for seed in config.default_accounts
    ]


@pytest.fixture
def standard_accounts(account_service, ledger_config):
    """The default HOA chart for TEST_ASSOCIATION_ID, keyed by account code.

    1000 Cash - Operating, 1100 Accounts Receivable, 2000 Accounts Payable,
    4000 Assessment Income, 6000 Maintenance Expenses, and so on.
    """
    created = account_service.create_default_chart(
        TEST_ASSOCIATION_ID, _default_specs(ledger_config)
    )
    return {account.account_code: account for account in created}


@pytest.fixture
def make_form():
    """Build a balanced two-line entry: debit one account, credit another.

    Usage::

        form = make_form(cash.id, income.id, Decimal("250.00"))
    """

    def _make(
        debit_account_id,
        credit_account_id,
        amount: Decimal = Decimal("100.00"),
        entry_date: date = date(2024, 1, 15),
        description: str = "Monthly assessment",
        source_type: str = "manual",
        reference_number: str | None = None,
    ) -> JournalEntryFormData:
        return JournalEntryFormData(
            entry_date=entry_date,
            description=description,
            reference_number=reference_number,
            source_type=source_type,
            lines=(
                JournalLineInput(
                    gl_account_id=debit_account_id,
                    debit_amount=amount,
                    description="Debit side",
                ),
                JournalLineInput(
                    gl_account_id=credit_account_id,
                    credit_amount=amount,
                    description="Credit side",
                ),
            ),
        )

    return _make


@pytest.fixture
def draft_entry(journal_service, standard_accounts, make_form):
    """A DRAFT entry: Dr 1100 Accounts Receivable / Cr 4000 Assessment Income, 100.00."""
    return journal_service.create_entry(
        TEST_ASSOCIATION_ID,
        make_form(standard_accounts["1100"].id, standard_accounts["4000"].id),
    )


@pytest.fixture
def posted_entry(journal_service, draft_entry):
    """The draft_entry fixture after posting."""
    return journal_service.post_entry(draft_entry.id)


# =============================================================================
# Ledger facade
# =============================================================================


@pytest.fixture
def ledger_session_factory(connection):
    """Session factory whose commits release savepoints on the test connection."""
    return sessionmaker(
        bind=connection,
        join_transaction_mode="create_savepoint",
        expire_on_commit=False,
    )


@pytest.fixture
def ledger(ledger_session_factory, ledger_config, deterministic_clock):
    return JournalEntryLedger(ledger_session_factory, ledger_config, deterministic_clock)


@pytest.fixture
def ledger_accounts(ledger):
    """The default chart created through the ledger, keyed by account code."""
    return {a.account_code: a for a in ledger.create_default_chart(TEST_ASSOCIATION_ID)}
