"""Selectors for the ledger kernel (read side)."""

from ledger_kernel.selectors.balance_projection import (
    BalanceProjection,
    LedgerLinesProjection,
    ViewBackedProjection,
    select_balance_projection,
)
from ledger_kernel.selectors.inventory import InventoryLevels, StockLevelSelector
from ledger_kernel.selectors.journal_selector import JournalPage, JournalSelector

__all__ = [
    "BalanceProjection",
    "InventoryLevels",
    "JournalPage",
    "JournalSelector",
    "LedgerLinesProjection",
    "StockLevelSelector",
    "ViewBackedProjection",
    "select_balance_projection",
]
