"""
AccountService -- chart of accounts maintenance.

Responsibility:
    Creates accounts under the fixed five-type taxonomy, answers account
    lookups, and installs a chart-of-accounts template together with its
    account-role bindings.

Architecture position:
    Kernel > Services.  The template itself is a domain DTO; loading it from
    YAML belongs to ledger_config.

Invariants enforced:
    - account_type is an AccountType value.
    - parent_id points at an account of the same tenant.
    - currency defaults to the tenant base currency and is a known code.

Failure modes:
    - ValueError on an unknown account type or a duplicate account number.
    - InvalidAccountError on a foreign or unknown parent.
    - InvalidCurrencyError on an unknown currency.
    - AccountNotFoundError from get_account().
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.currency import CurrencyRegistry
from ledger_kernel.domain.dtos import AccountInfo, ChartTemplate, TenantContext
from ledger_kernel.exceptions import AccountNotFoundError, InvalidAccountError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account, AccountType
from ledger_kernel.models.account_map import AccountRole
from ledger_kernel.services.account_mapping import AccountMappingResolver
from ledger_kernel.services.base import BaseService

logger = get_logger("services.account")


class AccountService(BaseService[Account]):
    """Service for the chart of accounts."""

    def __init__(self, session: Session, resolver: AccountMappingResolver | None = None):
        super().__init__(session)
        self._resolver = resolver or AccountMappingResolver(session)

    def create_account(
        self,
        context: TenantContext,
        account_number: str,
        name: str,
        account_type: AccountType | str,
        parent_id: UUID | None = None,
        is_placeholder: bool = False,
        currency: str | None = None,
    ) -> AccountInfo:
        """
        Add an account to the tenant's chart.

        Raises:
            ValueError: Unknown account_type or duplicate account_number.
            InvalidAccountError: parent_id is unknown or of another tenant.
            InvalidCurrencyError: Unknown currency.
        """
        account_type = AccountType(account_type)
        currency = CurrencyRegistry.validate(currency or context.base_currency)

        if self._find_by_number(context.tenant_id, account_number) is not None:
            raise ValueError(f"Account number {account_number} already exists")

        if parent_id is not None:
            parent = self.session.get(Account, parent_id)
            if parent is None or parent.tenant_id != context.tenant_id:
                raise InvalidAccountError(str(parent_id), "parent account not found in tenant")

        account = Account(
            tenant_id=context.tenant_id,
            account_number=account_number,
            name=name,
            account_type=account_type.value,
            parent_id=parent_id,
            is_placeholder=is_placeholder,
            currency=currency,
            created_by=context.actor,
        )
        self.session.add(account)
        self.session.flush()

        logger.info(
            "account_created",
            extra={
                "account_id": str(account.id),
                "account_number": account_number,
                "account_type": account_type.value,
            },
        )
        return AccountInfo.from_model(account)

    def get_account(self, tenant_id: UUID, account_id: UUID) -> AccountInfo:
        """
        Raises:
            AccountNotFoundError: Unknown account for this tenant.
        """
        account = self.session.get(Account, account_id)
        if account is None or account.tenant_id != tenant_id:
            raise AccountNotFoundError(str(account_id))
        return AccountInfo.from_model(account)

    def get_account_by_number(self, tenant_id: UUID, account_number: str) -> AccountInfo | None:
        account = self._find_by_number(tenant_id, account_number)
        return AccountInfo.from_model(account) if account else None

    def list_accounts(
        self,
        tenant_id: UUID,
        account_type: AccountType | str | None = None,
        include_placeholders: bool = True,
    ) -> list[AccountInfo]:
        query = select(Account).where(Account.tenant_id == tenant_id)
        if account_type is not None:
            query = query.where(Account.account_type == AccountType(account_type).value)
        if not include_placeholders:
            query = query.where(Account.is_placeholder.is_(False))
        accounts = self.session.execute(query.order_by(Account.account_number)).scalars()
        return [AccountInfo.from_model(account) for account in accounts]

    def seed_default_chart(self, context: TenantContext, template: ChartTemplate) -> dict[str, UUID]:
        """
        Install a chart template and bind its roles.

        Accounts whose number already exists are left as they are, so seeding
        twice is harmless.

        Returns:
            account_number -> account id for every account of the template.

        Raises:
            ValueError: A role binding names a number absent from the template,
                or a parent appears after its child.
        """
        ids: dict[str, UUID] = {}
        created = 0
        for spec in template.accounts:
            existing = self._find_by_number(context.tenant_id, spec.account_number)
            if existing is not None:
                ids[spec.account_number] = existing.id
                continue

            parent_id = None
            if spec.parent_number is not None:
                if spec.parent_number not in ids:
                    raise ValueError(
                        f"Parent {spec.parent_number} of {spec.account_number} "
                        "must precede it in the template"
                    )
                parent_id = ids[spec.parent_number]

            info = self.create_account(
                context,
                account_number=spec.account_number,
                name=spec.name,
                account_type=spec.account_type,
                parent_id=parent_id,
                is_placeholder=spec.is_placeholder,
                currency=spec.currency,
            )
            ids[spec.account_number] = info.id
            created += 1

        mapping: dict[AccountRole, UUID] = {}
        for role, account_number in template.role_bindings.items():
            if account_number not in ids:
                raise ValueError(f"Role {role} is bound to unknown account {account_number}")
            mapping[AccountRole(role)] = ids[account_number]
        if mapping:
            self._resolver.update_mapping(context, mapping)

        logger.info(
            "default_chart_seeded",
            extra={"accounts_created": created, "roles_bound": len(mapping)},
        )
        return ids

    def _find_by_number(self, tenant_id: UUID, account_number: str) -> Account | None:
        return self.session.execute(
            select(Account).where(
                Account.tenant_id == tenant_id,
                Account.account_number == account_number,
            )
        ).scalar_one_or_none()
