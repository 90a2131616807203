"""
Module: ledger_kernel.models.tenant
Responsibility: ORM persistence for tenants, the isolation unit of the ledger.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - base_currency is a three-letter ISO 4217 code (validated by
      TenantService before insert).
    - Every other tenant-owned row references a tenant by tenant_id; no
      read or write crosses tenants.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class Tenant(TrackedBase):
    """
    A company keeping its own books.

    Contract:
        base_currency is fixed at creation.  Balances of accounts held in
        another currency are revalued into it.
    """

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    base_currency: Mapped[str] = mapped_column(String(3), nullable=False)

    def __repr__(self) -> str:
        return f"<Tenant {self.name} ({self.base_currency})>"
