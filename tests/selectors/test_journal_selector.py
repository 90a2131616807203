"""
Journal listing tests.

Verifies:
- Filters (description search, date range, reference type) combine
- Pagination is 1-based and reports has_next
- Another tenant's entries are invisible
"""

from datetime import date

import pytest

from ledger_kernel.models.journal import ReferenceType
from ledger_kernel.selectors.journal_selector import JournalSelector


@pytest.fixture
def selector(session):
    return JournalSelector(session)


@pytest.fixture
def posted_entries(chart, fiscal_year_2024, post_simple):
    """Five entries on distinct dates, newest last."""
    return [
        post_simple(chart["1100"], chart["4100"], "100.00", entry_date=date(2024, 1, 10),
                    reference_type=ReferenceType.SALE, description="Invoice INV-001"),
        post_simple(chart["5300"], chart["1100"], "40.00", entry_date=date(2024, 2, 10),
                    reference_type=ReferenceType.EXPENSE, description="Office supplies"),
        post_simple(chart["1100"], chart["4100"], "250.00", entry_date=date(2024, 3, 10),
                    reference_type=ReferenceType.SALE, description="Invoice INV-002"),
        post_simple(chart["5300"], chart["1100"], "15.00", entry_date=date(2024, 4, 10),
                    reference_type=ReferenceType.EXPENSE, description="Courier"),
        post_simple(chart["1100"], chart["3100"], "1000.00", entry_date=date(2024, 5, 10),
                    description="Owner contribution"),
    ]


class TestGetEntry:

    def test_returns_lines_in_sequence(self, selector, tenant_context, posted_entries):
        record = selector.get_entry(tenant_context.tenant_id, posted_entries[0])

        assert record.description == "Invoice INV-001"
        assert [line.debit > 0 for line in record.lines] == [True, False]
        assert record.created_by == tenant_context.actor

    def test_foreign_tenant_sees_nothing(self, selector, other_tenant_context, posted_entries):
        assert selector.get_entry(other_tenant_context.tenant_id, posted_entries[0]) is None


class TestListEntries:

    def test_newest_first(self, selector, tenant_context, posted_entries):
        page = selector.list_entries(tenant_context.tenant_id)

        assert page.total == 5
        assert [e.entry_date.month for e in page.entries] == [5, 4, 3, 2, 1]
        assert not page.has_next

    def test_search_is_case_insensitive(self, selector, tenant_context, posted_entries):
        page = selector.list_entries(tenant_context.tenant_id, search="invoice")
        assert {e.description for e in page.entries} == {"Invoice INV-001", "Invoice INV-002"}

    def test_date_range_is_inclusive(self, selector, tenant_context, posted_entries):
        page = selector.list_entries(
            tenant_context.tenant_id, date_from=date(2024, 2, 10), date_to=date(2024, 4, 10)
        )
        assert page.total == 3

    def test_reference_type_filter(self, selector, tenant_context, posted_entries):
        page = selector.list_entries(tenant_context.tenant_id, reference_type=ReferenceType.EXPENSE)
        assert [e.description for e in page.entries] == ["Courier", "Office supplies"]

    def test_filters_combine(self, selector, tenant_context, posted_entries):
        page = selector.list_entries(
            tenant_context.tenant_id, reference_type="sale", date_from=date(2024, 2, 1)
        )
        assert [e.description for e in page.entries] == ["Invoice INV-002"]

    def test_pagination(self, selector, tenant_context, posted_entries):
        first = selector.list_entries(tenant_context.tenant_id, page=1, page_size=2)
        last = selector.list_entries(tenant_context.tenant_id, page=3, page_size=2)

        assert first.has_next
        assert [e.entry_date.month for e in first.entries] == [5, 4]
        assert not last.has_next
        assert [e.entry_date.month for e in last.entries] == [1]

    def test_page_past_the_end_is_empty(self, selector, tenant_context, posted_entries):
        page = selector.list_entries(tenant_context.tenant_id, page=4, page_size=2)
        assert page.entries == ()
        assert page.total == 5

    @pytest.mark.parametrize("page,page_size", [(0, 20), (1, 0)])
    def test_invalid_paging(self, selector, tenant_context, page, page_size):
        with pytest.raises(ValueError):
            selector.list_entries(tenant_context.tenant_id, page=page, page_size=page_size)
