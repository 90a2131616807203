"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the Chart of Accounts -- the target of
    every journal line.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - account_type is one of the five fixed AccountType values.
    - A placeholder account groups children and never appears on a journal
      line (enforced by JournalWriter, not this model).
    - Balances are derived from journal lines and never stored here.

Failure modes:
    - InvalidAccountError when a posting targets a placeholder or an account
      of another tenant.
"""

from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TenantScoped, TrackedBase, UUIDString

if TYPE_CHECKING:
    from ledger_kernel.models.journal import JournalLine


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


# Account types swept into retained earnings at year end.
PROFIT_AND_LOSS_TYPES = (AccountType.REVENUE, AccountType.EXPENSE)


class Account(TenantScoped, TrackedBase):
    """
    Chart of Accounts entry -- a single node in a tenant's ledger structure.

    Contract:
        (tenant_id, account_number) is unique.  parent_id, when set, points
        at an account of the same tenant.

    Guarantees:
        - account_type is one of ASSET, LIABILITY, EQUITY, REVENUE, EXPENSE.
        - currency is always set; it defaults to the tenant base currency.

    Non-goals:
        - Normal-balance sign conventions live in the selectors that present
          balances, not in this model.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("tenant_id", "account_number", name="uq_account_tenant_number"),
        Index("idx_account_tenant_type", "tenant_id", "account_type"),
    )

    # Human-readable account number, e.g. "1100"
    account_number: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    account_type: Mapped[AccountType] = mapped_column(String(20), nullable=False)

    parent_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    is_placeholder: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    journal_lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="account",
        lazy="dynamic",
    )

    def __repr__(self) -> str:
        return f"<Account {self.account_number}: {self.name}>"

    @property
    def is_profit_and_loss(self) -> bool:
        return AccountType(self.account_type) in PROFIT_AND_LOSS_TYPES
