"""
Business event posting tests.

Verifies:
- Each business event lands on the accounts its roles resolve to
- A missing role mapping fails before anything is written
- Invalid amounts are rejected
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from ledger_kernel.exceptions import MissingMappingError
from ledger_kernel.models.account_map import AccountRole
from ledger_kernel.models.journal import JournalEntry, ReferenceType
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_modules.postings import BusinessEventPoster


@pytest.fixture
def poster(session, resolver, journal_writer):
    return BusinessEventPoster(session, resolver=resolver, writer=journal_writer)


class TestCashEvents:

    def test_cash_income(self, session, poster, tenant_context, chart, balance_of):
        entry_id = poster.create_cash_income(
            tenant_context, Decimal("250.00"), date(2024, 3, 1), notes="Consulting"
        )

        entry = JournalSelector(session).get_entry(tenant_context.tenant_id, entry_id)
        assert entry.reference_type == ReferenceType.INCOME.value
        assert entry.description == "Consulting"
        assert balance_of(chart["1100"]) == Decimal("250.00")
        assert balance_of(chart["4100"]) == Decimal("-250.00")

    def test_cash_expense(self, poster, tenant_context, chart, balance_of):
        poster.create_cash_expense(tenant_context, Decimal("40.00"), date(2024, 3, 2))

        assert balance_of(chart["5300"]) == Decimal("40.00")
        assert balance_of(chart["1100"]) == Decimal("-40.00")

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5.00")])
    def test_non_positive_amount_rejected(self, poster, tenant_context, chart, amount):
        with pytest.raises(ValueError):
            poster.create_cash_income(tenant_context, amount, date(2024, 3, 1))


class TestInvoices:

    def test_credit_sale_with_tax_and_cost(self, poster, tenant_context, chart, balance_of):
        poster.post_sales_invoice(
            tenant_context, "INV-1001", date(2024, 4, 2),
            subtotal=Decimal("1000.00"), tax=Decimal("150.00"), cost_of_goods=Decimal("600.00"),
        )

        assert balance_of(chart["1200"]) == Decimal("1150.00")
        assert balance_of(chart["4100"]) == Decimal("-1000.00")
        assert balance_of(chart["2200"]) == Decimal("-150.00")
        assert balance_of(chart["5100"]) == Decimal("600.00")
        assert balance_of(chart["1300"]) == Decimal("-600.00")

    def test_cash_sale_debits_cash_sales_account(self, poster, tenant_context, chart, balance_of):
        poster.post_sales_invoice(
            tenant_context, "INV-1002", date(2024, 4, 3),
            subtotal=Decimal("100.00"), paid_in_cash=True,
        )

        assert balance_of(chart["1100"]) == Decimal("100.00")
        assert balance_of(chart["1200"]) == Decimal("0")

    def test_sale_reference(self, session, poster, tenant_context, chart):
        entry_id = poster.post_sales_invoice(
            tenant_context, "INV-1003", date(2024, 4, 3), subtotal=Decimal("10.00")
        )
        entry = JournalSelector(session).get_entry(tenant_context.tenant_id, entry_id)
        assert entry.reference_type == ReferenceType.SALE.value
        assert entry.reference_id == "INV-1003"

    def test_purchase_to_inventory_with_tax(self, poster, tenant_context, chart, balance_of):
        poster.post_purchase_invoice(
            tenant_context, "BILL-77", date(2024, 4, 5),
            subtotal=Decimal("500.00"), tax=Decimal("75.00"),
        )

        assert balance_of(chart["1300"]) == Decimal("500.00")
        assert balance_of(chart["2200"]) == Decimal("75.00")
        assert balance_of(chart["2100"]) == Decimal("-575.00")

    def test_non_stock_purchase_goes_to_expense(self, poster, tenant_context, chart, balance_of):
        poster.post_purchase_invoice(
            tenant_context, "BILL-78", date(2024, 4, 5),
            subtotal=Decimal("80.00"), to_inventory=False,
        )
        assert balance_of(chart["5400"]) == Decimal("80.00")

    def test_negative_tax_rejected(self, poster, tenant_context, chart):
        with pytest.raises(ValueError):
            poster.post_sales_invoice(
                tenant_context, "INV-9", date(2024, 4, 3),
                subtotal=Decimal("10.00"), tax=Decimal("-1.00"),
            )


class TestPayrollAndInventory:

    def test_payroll_accrual(self, poster, tenant_context, chart, balance_of):
        poster.post_payroll(tenant_context, "PR-2024-04", date(2024, 4, 30), Decimal("8000.00"))

        assert balance_of(chart["5200"]) == Decimal("8000.00")
        assert balance_of(chart["2300"]) == Decimal("-8000.00")

    def test_shrinkage_credits_inventory(self, poster, tenant_context, chart, balance_of):
        poster.post_inventory_adjustment(tenant_context, "ADJ-1", date(2024, 5, 1), Decimal("-25.00"))

        assert balance_of(chart["1300"]) == Decimal("-25.00")
        assert balance_of(chart["5600"]) == Decimal("25.00")

    def test_surplus_debits_inventory(self, poster, tenant_context, chart, balance_of):
        poster.post_inventory_adjustment(tenant_context, "ADJ-2", date(2024, 5, 1), Decimal("12.50"))

        assert balance_of(chart["1300"]) == Decimal("12.50")

    def test_zero_adjustment_rejected(self, poster, tenant_context, chart):
        with pytest.raises(ValueError):
            poster.post_inventory_adjustment(tenant_context, "ADJ-3", date(2024, 5, 1), Decimal("0"))


class TestMissingMapping:

    def test_unmapped_role_writes_nothing(self, session, poster, resolver, tenant_context, chart):
        resolver.update_mapping(tenant_context, {AccountRole.TAX_PAYABLE: None})

        with pytest.raises(MissingMappingError) as exc_info:
            poster.post_sales_invoice(
                tenant_context, "INV-2001", date(2024, 4, 2),
                subtotal=Decimal("100.00"), tax=Decimal("15.00"),
            )

        assert exc_info.value.role == "tax_payable"
        count = session.execute(
            select(func.count()).select_from(JournalEntry)
            .where(JournalEntry.tenant_id == tenant_context.tenant_id)
        ).scalar_one()
        assert count == 0

    def test_role_only_needed_when_used(self, poster, resolver, tenant_context, chart):
        resolver.update_mapping(tenant_context, {AccountRole.TAX_PAYABLE: None})

        assert poster.post_sales_invoice(
            tenant_context, "INV-2002", date(2024, 4, 2), subtotal=Decimal("100.00")
        )

    def test_tenant_without_map(self, poster, tenant_context):
        with pytest.raises(MissingMappingError):
            poster.create_cash_income(tenant_context, Decimal("10.00"), date(2024, 3, 1))
