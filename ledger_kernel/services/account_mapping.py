"""
AccountMappingResolver -- role-to-account lookup for auto-postings.

Responsibility:
    Answers "which account plays role R for tenant T".  Business-event
    postings never hard-code account ids; they ask the resolver.

Architecture position:
    Kernel > Services.  Used by PeriodService (retained earnings at year
    close), the ConsistencyAuditor and every module in ledger_modules.

Invariants enforced:
    - An unset role is an explicit unresolved RoleBinding, never a guess.
      resolve_or_fail() turns it into MissingMappingError.
    - Bound accounts belong to the tenant and are not placeholders
      (update_mapping).
    - The cache is keyed by tenant id.  A lookup for one tenant never sees
      another tenant's map.

Failure modes:
    - MissingMappingError from resolve_or_fail() on an unresolved role.
    - InvalidAccountError from update_mapping() on a foreign, unknown or
      placeholder account.

Non-goals:
    - The cache lives as long as the resolver, which is one unit of work.
      There is no cross-request invalidation.
"""

from collections.abc import Mapping
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.dtos import RoleBinding, TenantContext
from ledger_kernel.exceptions import InvalidAccountError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.account_map import AccountMap, AccountRole
from ledger_kernel.services.base import BaseService

logger = get_logger("services.account_mapping")

_NO_MAP: dict[AccountRole, UUID | None] = {}


class AccountMappingResolver(BaseService[AccountMap]):
    """
    Resolves AccountRoles to account ids through the tenant's AccountMap.

    Usage:
        resolver = AccountMappingResolver(session)
        cash_id = resolver.resolve_or_fail(tenant_id, AccountRole.CASH)
    """

    def __init__(self, session: Session):
        super().__init__(session)
        self._cache: dict[UUID, dict[AccountRole, UUID | None]] = {}

    def lookup(self, tenant_id: UUID, role: AccountRole) -> RoleBinding:
        role = AccountRole(role)
        return RoleBinding(
            tenant_id=tenant_id,
            role=role,
            account_id=self._roles_for(tenant_id).get(role),
        )

    def resolve(self, tenant_id: UUID, role: AccountRole) -> UUID | None:
        return self.lookup(tenant_id, role).account_id

    def resolve_or_fail(self, tenant_id: UUID, role: AccountRole) -> UUID:
        """
        Raises:
            MissingMappingError: If the role has no account for this tenant.
        """
        binding = self.lookup(tenant_id, role)
        if not binding.is_resolved:
            logger.warning(
                "account_role_unresolved",
                extra={"tenant_id": str(tenant_id), "role": binding.role.value},
            )
        return binding.require()

    def has_map(self, tenant_id: UUID) -> bool:
        return self._roles_for(tenant_id) is not _NO_MAP

    def missing_roles(
        self, tenant_id: UUID, roles: tuple[AccountRole, ...] | None = None
    ) -> list[AccountRole]:
        """Roles (all, or the given subset) that resolve to nothing."""
        mapping = self._roles_for(tenant_id)
        return [role for role in (roles or tuple(AccountRole)) if mapping.get(role) is None]

    def update_mapping(
        self,
        context: TenantContext,
        mapping: Mapping[AccountRole | str, UUID | str | None],
    ) -> None:
        """
        Bind roles to accounts, creating the tenant's AccountMap if needed.

        Roles absent from ``mapping`` keep their binding.  None or an empty
        string unbinds the role.

        Raises:
            ValueError: Unknown role name.
            InvalidAccountError: Account unknown, of another tenant, or a
                placeholder.
        """
        normalized: dict[AccountRole, UUID | None] = {}
        for role, account_id in mapping.items():
            if account_id in (None, ""):
                normalized[AccountRole(role)] = None
            else:
                normalized[AccountRole(role)] = (
                    account_id if isinstance(account_id, UUID) else UUID(str(account_id))
                )

        self._validate_accounts(context.tenant_id, [a for a in normalized.values() if a])

        account_map = self._get_map_orm(context.tenant_id)
        if account_map is None:
            account_map = AccountMap(tenant_id=context.tenant_id, created_by=context.actor)
            self.session.add(account_map)

        for role, account_id in normalized.items():
            account_map.bind(role, account_id)
        self.session.flush()
        self.invalidate(context.tenant_id)

        logger.info(
            "account_mapping_updated",
            extra={
                "roles": sorted(role.value for role in normalized),
                "unbound": sorted(role.value for role, a in normalized.items() if a is None),
            },
        )

    def invalidate(self, tenant_id: UUID) -> None:
        self._cache.pop(tenant_id, None)

    def _roles_for(self, tenant_id: UUID) -> dict[AccountRole, UUID | None]:
        if tenant_id not in self._cache:
            account_map = self._get_map_orm(tenant_id)
            self._cache[tenant_id] = account_map.as_dict() if account_map else _NO_MAP
        return self._cache[tenant_id]

    def _get_map_orm(self, tenant_id: UUID) -> AccountMap | None:
        return self.session.execute(
            select(AccountMap).where(AccountMap.tenant_id == tenant_id)
        ).scalar_one_or_none()

    def _validate_accounts(self, tenant_id: UUID, account_ids: list[UUID]) -> None:
        if not account_ids:
            return
        accounts = {
            account.id: account
            for account in self.session.execute(
                select(Account).where(Account.id.in_(account_ids))
            ).scalars()
        }
        for account_id in account_ids:
            account = accounts.get(account_id)
            if account is None:
                reason = "account does not exist"
            elif account.tenant_id != tenant_id:
                reason = "account belongs to another tenant"
            elif account.is_placeholder:
                reason = "placeholder accounts cannot be mapped"
            else:
                continue
            raise InvalidAccountError(str(account_id), reason)
