"""
Chart of accounts tests.
"""

from uuid import uuid4

import pytest

from ledger_config.bridges import load_default_chart
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    InvalidAccountError,
    InvalidCurrencyError,
)
from ledger_kernel.models.account import AccountType


class TestCreateAccount:

    def test_defaults_to_base_currency(self, account_service, tenant_context):
        account = account_service.create_account(tenant_context, "1100", "Cash", AccountType.ASSET)
        assert account.currency == "USD"
        assert account.account_type == "asset"
        assert not account.is_placeholder

    def test_foreign_currency_account(self, account_service, tenant_context):
        account = account_service.create_account(
            tenant_context, "1120", "EUR Bank", "asset", currency="eur"
        )
        assert account.currency == "EUR"

    def test_unknown_currency_rejected(self, account_service, tenant_context):
        with pytest.raises(InvalidCurrencyError):
            account_service.create_account(tenant_context, "1120", "Bank", "asset", currency="XYZ")

    def test_unknown_type_rejected(self, account_service, tenant_context):
        with pytest.raises(ValueError):
            account_service.create_account(tenant_context, "9000", "Misc", "contra")

    def test_duplicate_number_rejected(self, account_service, tenant_context):
        account_service.create_account(tenant_context, "1100", "Cash", "asset")
        with pytest.raises(ValueError):
            account_service.create_account(tenant_context, "1100", "Cash again", "asset")

    def test_same_number_in_other_tenant_allowed(
        self, account_service, tenant_context, other_tenant_context
    ):
        account_service.create_account(tenant_context, "1100", "Cash", "asset")
        account_service.create_account(other_tenant_context, "1100", "Cash", "asset")

    def test_foreign_parent_rejected(
        self, account_service, tenant_context, other_tenant_context
    ):
        parent = account_service.create_account(
            other_tenant_context, "1000", "Assets", "asset", is_placeholder=True
        )
        with pytest.raises(InvalidAccountError):
            account_service.create_account(
                tenant_context, "1100", "Cash", "asset", parent_id=parent.id
            )


class TestQueries:

    def test_get_account_of_other_tenant_not_found(
        self, account_service, other_tenant_context, chart
    ):
        with pytest.raises(AccountNotFoundError):
            account_service.get_account(other_tenant_context.tenant_id, chart["1100"])

    def test_get_unknown_account(self, account_service, tenant_context):
        with pytest.raises(AccountNotFoundError):
            account_service.get_account(tenant_context.tenant_id, uuid4())

    def test_list_by_type_without_placeholders(self, account_service, tenant_context, chart):
        equity = account_service.list_accounts(
            tenant_context.tenant_id, account_type="equity", include_placeholders=False
        )
        assert [a.account_number for a in equity] == ["3100", "3200"]

    def test_lookup_by_number(self, account_service, tenant_context, chart):
        account = account_service.get_account_by_number(tenant_context.tenant_id, "3200")
        assert account.id == chart["3200"]
        assert account_service.get_account_by_number(tenant_context.tenant_id, "9999") is None


class TestSeedDefaultChart:

    def test_seed_binds_every_role(self, resolver, tenant_context, chart):
        assert resolver.missing_roles(tenant_context.tenant_id) == []
        placeholders = {"1000", "2000", "3000", "4000", "5000"}
        assert placeholders <= set(chart)

    def test_seed_is_idempotent(self, account_service, tenant_context, chart):
        again = account_service.seed_default_chart(tenant_context, load_default_chart())
        assert again == chart
        assert len(account_service.list_accounts(tenant_context.tenant_id)) == len(chart)

    def test_child_accounts_have_parents(self, account_service, tenant_context, chart):
        cash = account_service.get_account(tenant_context.tenant_id, chart["1100"])
        assert cash.parent_id == chart["1000"]
