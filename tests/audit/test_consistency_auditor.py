"""
Consistency audit tests.

Verifies:
- A healthy ledger scores 100
- Each check deducts its fixed penalty and reports its issue code
- Penalties accumulate and the score is clamped to [0, 100]
- The audit never writes
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_config.bridges import load_default_chart
from ledger_kernel.domain.dtos import AuditSeverity
from ledger_kernel.exceptions import MissingTenantContextError, TenantNotFoundError
from ledger_kernel.models.account_map import AccountRole
from ledger_kernel.models.journal import JournalEntry, JournalLine, ReferenceType
from ledger_kernel.models.stock_level import StockLevel
from ledger_kernel.services.consistency_auditor import ConsistencyAuditor
from ledger_kernel.services.tenant_service import TenantService
from ledger_modules.assets import DepreciationScheduler


class _FixedTotalsProjection:
    """Trial balance stub returning fixed totals."""

    def __init__(self, total_debit, total_credit):
        self._totals = (Decimal(total_debit), Decimal(total_credit))

    def balances_by_account(self, tenant_id, as_of=None):
        return []

    def income_statement_by_account(self, tenant_id, start_date, end_date):
        return []

    def trial_balance_totals(self, tenant_id):
        return self._totals


@pytest.fixture
def make_auditor(session, deterministic_clock, resolver):
    def _make(**kwargs):
        kwargs.setdefault("clock", deterministic_clock)
        kwargs.setdefault("resolver", resolver)
        kwargs.setdefault("pending_depreciation", DepreciationScheduler(session))
        return ConsistencyAuditor(session, **kwargs)

    return _make


def _write_unbalanced_entry(
    session, context, debit_account, credit_account, entry_date, credit=Decimal("90.00")
):
    """Bypass the posting engine to simulate a corrupted entry."""
    entry = JournalEntry(
        tenant_id=context.tenant_id,
        entry_date=entry_date,
        description="Imported from legacy system",
        reference_type=ReferenceType.MANUAL_JOURNAL.value,
        total_debit=Decimal("100.00"),
        total_credit=Decimal("100.00"),
    )
    session.add(entry)
    session.add_all([
        JournalLine(
            tenant_id=context.tenant_id, entry=entry, account_id=debit_account,
            debit=Decimal("100.00"), credit=Decimal("0"), line_seq=0,
        ),
        JournalLine(
            tenant_id=context.tenant_id, entry=entry, account_id=credit_account,
            debit=Decimal("0"), credit=credit, line_seq=1,
        ),
    ])
    session.flush()
    return entry.id


class TestHealthyLedger:

    def test_perfect_score(
        self, make_auditor, tenant_context, chart, fiscal_year_2024, post_simple,
        deterministic_clock,
    ):
        post_simple(chart["1100"], chart["4100"], "100.00")

        report = make_auditor().run_audit(tenant_context.tenant_id)

        assert report.score == 100
        assert report.is_balanced
        assert report.issues == ()
        assert report.total_debit == Decimal("100.00")
        assert report.checked_at == deterministic_clock.now()

    def test_audit_does_not_write(self, session, make_auditor, tenant_context, chart, fiscal_year_2024):
        make_auditor().run_audit(tenant_context.tenant_id)
        assert not session.new
        assert not session.dirty
        assert not session.deleted


class TestDeductions:

    def test_unbalanced_trial_balance_and_missing_role(
        self, make_auditor, resolver, tenant_context, chart, fiscal_year_2024
    ):
        resolver.update_mapping(tenant_context, {AccountRole.COGS: None})
        auditor = make_auditor(projection=_FixedTotalsProjection("1000.00", "995.00"))

        report = auditor.run_audit(tenant_context.tenant_id)

        assert report.score == 55
        assert not report.is_balanced
        assert report.issue_codes() == ["unbalanced-trial-balance", "missing-mapping:cogs"]
        assert report.issues[0].severity == AuditSeverity.CRITICAL

    def test_difference_below_threshold_is_balanced(
        self, make_auditor, tenant_context, chart, fiscal_year_2024
    ):
        auditor = make_auditor(projection=_FixedTotalsProjection("1000.00", "999.95"))
        assert auditor.run_audit(tenant_context.tenant_id).is_balanced

    def test_missing_account_map(self, make_auditor, tenant_context, fiscal_year_2024):
        report = make_auditor().run_audit(tenant_context.tenant_id)

        assert report.score == 80
        assert report.issue_codes() == ["account-map-missing"]

    def test_negative_inventory(
        self, session, make_auditor, tenant_context, chart, fiscal_year_2024
    ):
        session.add_all([
            StockLevel(tenant_id=tenant_context.tenant_id, product_id="SKU-1", quantity=Decimal("-3")),
            StockLevel(tenant_id=tenant_context.tenant_id, product_id="SKU-2", quantity=Decimal("-1")),
            StockLevel(tenant_id=tenant_context.tenant_id, product_id="SKU-3", quantity=Decimal("8")),
        ])
        session.flush()

        report = make_auditor().run_audit(tenant_context.tenant_id)

        assert report.score == 90
        assert report.issues[0].code == "negative-inventory"
        assert report.issues[0].count == 2

    def test_unbalanced_entry_detected(
        self, session, make_auditor, tenant_context, chart, fiscal_year_2024
    ):
        _write_unbalanced_entry(session, tenant_context, chart["1100"], chart["4100"], date(2024, 3, 1))

        report = make_auditor().run_audit(tenant_context.tenant_id)

        assert report.issue_codes() == ["unbalanced-trial-balance", "unbalanced-journal"]
        assert report.score == 50
        assert report.issues[1].count == 1

    def test_each_unbalanced_entry_costs_ten(
        self, session, make_auditor, tenant_context, chart, fiscal_year_2024
    ):
        for day in (1, 2, 3):
            _write_unbalanced_entry(
                session, tenant_context, chart["1100"], chart["4100"], date(2024, 3, day)
            )

        report = make_auditor().run_audit(tenant_context.tenant_id)

        assert report.score == 100 - 40 - 30

    def test_sub_unit_difference_flagged_in_zero_decimal_currency(
        self, session, make_auditor, account_service
    ):
        context = TenantService(session).create_tenant("Kyoto Imports", "JPY", "user-jp01")
        accounts = account_service.seed_default_chart(context, load_default_chart())
        _write_unbalanced_entry(
            session, context, accounts["1100"], accounts["4100"], date(2024, 3, 1),
            credit=Decimal("99.50"),
        )

        report = make_auditor().run_audit(context.tenant_id)

        assert "unbalanced-journal" in report.issue_codes()

    def test_entry_window_limits_the_check(
        self, session, make_auditor, tenant_context, chart, fiscal_year_2024, post_simple
    ):
        _write_unbalanced_entry(session, tenant_context, chart["1100"], chart["4100"], date(2024, 1, 5))
        post_simple(chart["1100"], chart["4100"], "10.00", entry_date=date(2024, 5, 1))

        windowed = make_auditor(audit_entry_window=1).run_audit(tenant_context.tenant_id)
        exhaustive = make_auditor(audit_entry_window=None).run_audit(tenant_context.tenant_id)

        assert "unbalanced-journal" not in windowed.issue_codes()
        assert "unbalanced-journal" in exhaustive.issue_codes()

    def test_no_current_fiscal_year(self, make_auditor, tenant_context, chart):
        report = make_auditor().run_audit(tenant_context.tenant_id)

        assert report.score == 90
        assert report.issue_codes() == ["no-current-fiscal-year"]

    def test_pending_depreciation(
        self, session, make_auditor, journal_writer, tenant_context, chart, fiscal_year_2024,
        deterministic_clock,
    ):
        scheduler = DepreciationScheduler(session, writer=journal_writer, clock=deterministic_clock)
        scheduler.register_asset(
            tenant_context, "Forklift", "FA-10", date(2024, 2, 1), Decimal("6000.00"), 60,
            chart["1500"], chart["1510"], chart["5500"],
        )

        report = make_auditor(pending_depreciation=scheduler).run_audit(tenant_context.tenant_id)

        assert report.score == 95
        assert report.issues[0].code == "pending-depreciation"
        assert report.issues[0].severity == AuditSeverity.INFO

        scheduler.run_monthly_depreciation(tenant_context, date(2024, 6, 15))
        assert make_auditor(pending_depreciation=scheduler).run_audit(
            tenant_context.tenant_id
        ).score == 100

    def test_score_is_clamped_at_zero(
        self, session, make_auditor, tenant_context, chart
    ):
        for day in range(1, 11):
            _write_unbalanced_entry(
                session, tenant_context, chart["1100"], chart["4100"], date(2024, 3, day)
            )

        assert make_auditor().run_audit(tenant_context.tenant_id).score == 0


class TestTenantGuards:

    def test_unknown_tenant(self, make_auditor):
        with pytest.raises(TenantNotFoundError):
            make_auditor().run_audit(uuid4())

    def test_missing_tenant(self, make_auditor):
        with pytest.raises(MissingTenantContextError):
            make_auditor().run_audit(None)

    def test_audit_is_logged(self, captured_logs, make_auditor, tenant_context, chart):
        make_auditor().run_audit(tenant_context.tenant_id)

        completed = [r for r in captured_logs() if r["message"] == "audit_completed"]
        assert completed[0]["score"] == 90
        assert completed[0]["tenant_id"] == str(tenant_context.tenant_id)
