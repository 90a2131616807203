"""Fixtures shared by the module tests."""

from decimal import Decimal

import pytest

from ledger_kernel.selectors.balance_projection import LedgerLinesProjection


@pytest.fixture
def balance_of(session, tenant_context):
    """Debit-minus-credit balance of one account."""

    def _balance(account_id, context=None) -> Decimal:
        tenant_id = (context or tenant_context).tenant_id
        for row in LedgerLinesProjection(session).balances_by_account(tenant_id):
            if row.account_id == account_id:
                return row.balance
        return Decimal("0")

    return _balance
