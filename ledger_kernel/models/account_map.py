"""
Module: ledger_kernel.models.account_map
Responsibility: ORM persistence for a tenant's role-to-account bindings.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one AccountMap row per tenant.
    - Each AccountRole has exactly one nullable column.  NULL means the role
      is unresolved; auto-postings that need it fail with MissingMappingError.
    - Bound accounts belong to the same tenant and are not placeholders
      (checked by AccountMappingResolver.update_mapping).
"""

from enum import Enum
from uuid import UUID

from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TenantScoped, TrackedBase, UUIDString


class AccountRole(str, Enum):
    """Semantic slots a business event posts to."""

    CASH = "cash"
    BANK = "bank"
    ACCOUNTS_RECEIVABLE = "accounts_receivable"
    ACCOUNTS_PAYABLE = "accounts_payable"
    DEFAULT_REVENUE = "default_revenue"
    DEFAULT_EXPENSE = "default_expense"
    INVENTORY = "inventory"
    COGS = "cogs"
    TAX_PAYABLE = "tax_payable"
    SALARIES_EXPENSE = "salaries_expense"
    SALARIES_PAYABLE = "salaries_payable"
    GENERAL_EXPENSE = "general_expense"
    CASH_SALES = "cash_sales"
    INVENTORY_ADJUSTMENT = "inventory_adjustment"
    DEFAULT_EQUITY = "default_equity"

    @property
    def column_name(self) -> str:
        return f"{self.value}_account_id"


# Roles whose absence the consistency auditor reports individually.
CRITICAL_ROLES = (
    AccountRole.DEFAULT_REVENUE,
    AccountRole.ACCOUNTS_RECEIVABLE,
    AccountRole.INVENTORY,
    AccountRole.COGS,
    AccountRole.CASH,
)


def _role_column() -> Mapped[UUID | None]:
    return mapped_column(UUIDString(), nullable=True)


class AccountMap(TenantScoped, TrackedBase):
    """
    The tenant's binding of every AccountRole to a chart-of-accounts entry.

    Non-goals:
        - Roles outside the closed AccountRole enum are not representable.
    """

    __tablename__ = "account_maps"

    __table_args__ = (
        UniqueConstraint("tenant_id", name="uq_account_map_tenant"),
    )

    cash_account_id: Mapped[UUID | None] = _role_column()
    bank_account_id: Mapped[UUID | None] = _role_column()
    accounts_receivable_account_id: Mapped[UUID | None] = _role_column()
    accounts_payable_account_id: Mapped[UUID | None] = _role_column()
    default_revenue_account_id: Mapped[UUID | None] = _role_column()
    default_expense_account_id: Mapped[UUID | None] = _role_column()
    inventory_account_id: Mapped[UUID | None] = _role_column()
    cogs_account_id: Mapped[UUID | None] = _role_column()
    tax_payable_account_id: Mapped[UUID | None] = _role_column()
    salaries_expense_account_id: Mapped[UUID | None] = _role_column()
    salaries_payable_account_id: Mapped[UUID | None] = _role_column()
    general_expense_account_id: Mapped[UUID | None] = _role_column()
    cash_sales_account_id: Mapped[UUID | None] = _role_column()
    inventory_adjustment_account_id: Mapped[UUID | None] = _role_column()
    default_equity_account_id: Mapped[UUID | None] = _role_column()

    def account_for(self, role: AccountRole) -> UUID | None:
        return getattr(self, AccountRole(role).column_name)

    def bind(self, role: AccountRole, account_id: UUID | None) -> None:
        setattr(self, AccountRole(role).column_name, account_id)

    def as_dict(self) -> dict[AccountRole, UUID | None]:
        return {role: self.account_for(role) for role in AccountRole}
