"""
Module: ledger_kernel.models.stock_level
Responsibility: Read-only view of per-product on-hand quantities.  The
    inventory subsystem owns the writes; the kernel only counts negatives
    during the consistency audit.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from decimal import Decimal

from sqlalchemy import Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base, TenantScoped


class StockLevel(TenantScoped, Base):
    """On-hand quantity of one product for one tenant."""

    __tablename__ = "stock_levels"

    __table_args__ = (
        UniqueConstraint("tenant_id", "product_id", name="uq_stock_level_product"),
    )

    product_id: Mapped[str] = mapped_column(String(100), nullable=False)

    quantity: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    def __repr__(self) -> str:
        return f"<StockLevel {self.product_id}: {self.quantity}>"
