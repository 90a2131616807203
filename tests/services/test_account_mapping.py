"""
Account role resolution tests.

Verifies:
- Bound roles resolve; unbound roles are explicit unresolved bindings
- resolve_or_fail raises MissingMappingError
- The cache never leaks one tenant's bindings to another
- Only postable accounts of the tenant can be bound
"""

from uuid import uuid4

import pytest

from ledger_kernel.exceptions import InvalidAccountError, MissingMappingError
from ledger_kernel.models.account_map import AccountRole
from ledger_kernel.services.account_mapping import AccountMappingResolver


class TestLookup:

    def test_seeded_roles_resolve(self, resolver, tenant_context, chart):
        assert resolver.resolve(tenant_context.tenant_id, AccountRole.CASH) == chart["1100"]
        assert resolver.has_map(tenant_context.tenant_id)
        assert resolver.missing_roles(tenant_context.tenant_id) == []

    def test_tenant_without_map(self, resolver, tenant_context):
        binding = resolver.lookup(tenant_context.tenant_id, AccountRole.CASH)

        assert not binding.is_resolved
        assert not resolver.has_map(tenant_context.tenant_id)
        assert len(resolver.missing_roles(tenant_context.tenant_id)) == len(AccountRole)

    def test_resolve_or_fail_raises_for_unbound_role(
        self, resolver, tenant_context, chart, captured_logs
    ):
        resolver.update_mapping(tenant_context, {AccountRole.BANK: None})

        with pytest.raises(MissingMappingError) as exc_info:
            resolver.resolve_or_fail(tenant_context.tenant_id, AccountRole.BANK)

        assert exc_info.value.role == "bank"
        assert any(r["message"] == "account_role_unresolved" for r in captured_logs())

    def test_role_accepted_by_value(self, resolver, tenant_context, chart):
        assert resolver.resolve(tenant_context.tenant_id, "tax_payable") == chart["2200"]


class TestTenantIsolation:

    def test_cache_is_keyed_by_tenant(
        self, session, resolver, account_service, tenant_context, other_tenant_context, chart
    ):
        assert resolver.resolve(tenant_context.tenant_id, AccountRole.CASH) == chart["1100"]

        assert resolver.resolve(other_tenant_context.tenant_id, AccountRole.CASH) is None

        globex_cash = account_service.create_account(
            other_tenant_context, "1000", "Globex Cash", "asset"
        )
        resolver.update_mapping(other_tenant_context, {AccountRole.CASH: globex_cash.id})

        assert resolver.resolve(other_tenant_context.tenant_id, AccountRole.CASH) == globex_cash.id
        assert resolver.resolve(tenant_context.tenant_id, AccountRole.CASH) == chart["1100"]

    def test_fresh_resolver_sees_persisted_map(self, session, tenant_context, chart):
        assert AccountMappingResolver(session).resolve(
            tenant_context.tenant_id, AccountRole.COGS
        ) == chart["5100"]


class TestUpdateMapping:

    def test_rebind_role(self, resolver, tenant_context, chart):
        resolver.update_mapping(tenant_context, {"cash": str(chart["1110"])})
        assert resolver.resolve(tenant_context.tenant_id, AccountRole.CASH) == chart["1110"]
        assert resolver.resolve(tenant_context.tenant_id, AccountRole.BANK) == chart["1110"]

    def test_placeholder_cannot_be_bound(self, resolver, tenant_context, chart):
        with pytest.raises(InvalidAccountError):
            resolver.update_mapping(tenant_context, {AccountRole.CASH: chart["1000"]})

    def test_foreign_account_cannot_be_bound(
        self, resolver, account_service, tenant_context, other_tenant_context, chart
    ):
        foreign = account_service.create_account(other_tenant_context, "1000", "Cash", "asset")
        with pytest.raises(InvalidAccountError):
            resolver.update_mapping(tenant_context, {AccountRole.CASH: foreign.id})

    def test_unknown_account_cannot_be_bound(self, resolver, tenant_context, chart):
        with pytest.raises(InvalidAccountError):
            resolver.update_mapping(tenant_context, {AccountRole.CASH: uuid4()})

    def test_unknown_role_rejected(self, resolver, tenant_context, chart):
        with pytest.raises(ValueError):
            resolver.update_mapping(tenant_context, {"petty_cash": chart["1100"]})
