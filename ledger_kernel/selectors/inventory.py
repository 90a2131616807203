"""
Module: ledger_kernel.selectors.inventory
Responsibility: Read-only access to on-hand stock quantities.  The
    inventory subsystem owns the data; the ledger only asks how many
    products are below zero.
Architecture position: Kernel > Selectors.
"""

from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import ZERO
from ledger_kernel.models.stock_level import StockLevel
from ledger_kernel.selectors.base import BaseSelector


@runtime_checkable
class InventoryLevels(Protocol):
    """Anything that can count a tenant's negative stock levels."""

    def count_negative(self, tenant_id: UUID) -> int:
        ...


class StockLevelSelector(BaseSelector[StockLevel]):
    """Default InventoryLevels backed by the stock_levels table."""

    def __init__(self, session: Session):
        super().__init__(session)

    def count_negative(self, tenant_id: UUID) -> int:
        return self.session.execute(
            select(func.count())
            .select_from(StockLevel)
            .where(StockLevel.tenant_id == tenant_id, StockLevel.quantity < ZERO)
        ).scalar_one()
