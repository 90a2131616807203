"""
Pytest fixtures for the ledger test suite.

Provides:
- A database engine and schema created once per session
- Per-test sessions rolled back at teardown
- Tenant, chart of accounts and fiscal year fixtures
- Structured log capture

Environment Variables:
- LEDGER_TEST_DATABASE_URL: SQLAlchemy URL of the test database.
  If not set, an in-memory SQLite database is used.
"""

import json
import logging
import os
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from ledger_config.bridges import load_default_chart
from ledger_kernel.db.engine import drop_tables, init_engine_from_url, reset_engine
from ledger_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.dtos import EntryDraft, LineSpec
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.models.journal import ReferenceType
from ledger_kernel.services.account_mapping import AccountMappingResolver
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.event_dispatch import LedgerEventDispatcher
from ledger_kernel.services.journal_writer import JournalWriter
from ledger_kernel.services.period_service import PeriodService
from ledger_kernel.services.tenant_service import TenantService
from ledger_modules._orm_registry import create_all_tables

TEST_ACTOR = "user-7f3a"
DEFAULT_TEST_DATABASE_URL = "sqlite://"


def get_database_url() -> str:
    return os.environ.get("LEDGER_TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
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
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, journal_writer):
            journal_writer.post(...)
            logs = captured_logs()
            assert any(r["message"] == "journal_entry_posted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Session-scoped DB infrastructure (engine + tables ONCE per suite)
# =============================================================================


@pytest.fixture(scope="session")
def db_engine():
    eng = init_engine_from_url(get_database_url(), echo=False)
    yield eng
    reset_engine()


@pytest.fixture(scope="session")
def db_tables(db_engine):
    """Create kernel and module tables once; immutability listeners stay active."""
    create_all_tables()
    register_immutability_listeners()
    yield
    unregister_immutability_listeners()
    drop_tables()


# =============================================================================
# Per-test session with automatic rollback
# =============================================================================


@pytest.fixture
def session(db_tables, db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing.

    The session joins an outer transaction on a dedicated connection.
    ``session.commit()`` inside a test only releases a savepoint; at
    teardown the outer transaction is rolled back, undoing every change.
    """
    conn = db_engine.connect()
    trans = conn.begin()
    sess = Session(
        bind=conn,
        join_transaction_mode="create_savepoint",
        expire_on_commit=False,
    )
    yield sess
    sess.close()
    trans.rollback()
    conn.close()


# =============================================================================
# Clock, services
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def dispatcher() -> LedgerEventDispatcher:
    return LedgerEventDispatcher()


@pytest.fixture
def resolver(session) -> AccountMappingResolver:
    return AccountMappingResolver(session)


@pytest.fixture
def period_service(session, deterministic_clock, resolver, dispatcher) -> PeriodService:
    return PeriodService(
        session,
        clock=deterministic_clock,
        resolver=resolver,
        dispatcher=dispatcher,
    )


@pytest.fixture
def journal_writer(session, period_service, dispatcher) -> JournalWriter:
    return JournalWriter(session, period_service=period_service, dispatcher=dispatcher)


@pytest.fixture
def account_service(session, resolver) -> AccountService:
    return AccountService(session, resolver=resolver)


# =============================================================================
# Tenant data
# =============================================================================


@pytest.fixture
def tenant_context(session):
    """A USD tenant with no accounts."""
    return TenantService(session).create_tenant("Acme Trading", "USD", TEST_ACTOR)


@pytest.fixture
def other_tenant_context(session):
    return TenantService(session).create_tenant("Globex", "USD", TEST_ACTOR)


@pytest.fixture
def chart(account_service, tenant_context) -> dict:
    """Seed the default chart; maps account_number -> account id."""
    return account_service.seed_default_chart(tenant_context, load_default_chart())


@pytest.fixture
def fiscal_year_2024(period_service, tenant_context):
    return period_service.create_fiscal_year(
        tenant_context, "FY2024", date(2024, 1, 1), date(2024, 12, 31)
    )


@pytest.fixture
def post_simple(journal_writer, tenant_context):
    """
    Post a two-line entry.

    Usage::

        entry_id = post_simple(chart["1100"], chart["4100"], "250.00")
    """

    def _post(
        debit_account,
        credit_account,
        amount,
        entry_date: date = date(2024, 3, 15),
        reference_type: ReferenceType = ReferenceType.MANUAL_JOURNAL,
        description: str = "Test entry",
        context=None,
    ):
        amount = Decimal(str(amount))
        return journal_writer.post(
            context or tenant_context,
            EntryDraft(
                entry_date=entry_date,
                description=description,
                reference_type=reference_type,
                lines=(
                    LineSpec.debit_line(debit_account, amount),
                    LineSpec.credit_line(credit_account, amount),
                ),
            ),
        )

    return _post
