"""Domain models for the ledger kernel."""

from ledger_kernel.models.account import Account, AccountType
from ledger_kernel.models.account_map import AccountMap, AccountRole, CRITICAL_ROLES
from ledger_kernel.models.fiscal_year import FiscalYear, FiscalYearStatus
from ledger_kernel.models.journal import JournalEntry, JournalLine, ReferenceType
from ledger_kernel.models.stock_level import StockLevel
from ledger_kernel.models.tenant import Tenant

__all__ = [
    "Account",
    "AccountType",
    "AccountMap",
    "AccountRole",
    "CRITICAL_ROLES",
    "FiscalYear",
    "FiscalYearStatus",
    "JournalEntry",
    "JournalLine",
    "ReferenceType",
    "StockLevel",
    "Tenant",
]
