"""
Ledger Modules.

Business-facing layers over the ledger kernel.  Each module turns one kind
of business event into balanced journal entries through the kernel's
JournalWriter and never writes journal rows itself.

Modules:
- Assets: Fixed asset register, monthly straight-line depreciation
- FX: Foreign currency revaluation
- Postings: Cash income/expense, invoices, payroll, inventory adjustments
- Tax: Output/input tax summary and settlement
- Reconciliation: Bank statement matching of journal lines
"""

from ledger_modules import assets, fx, postings, reconciliation, tax
from ledger_modules._orm_registry import create_all_tables, import_all_orm_models

__all__ = [
    "assets",
    "fx",
    "postings",
    "reconciliation",
    "tax",
    "create_all_tables",
    "import_all_orm_models",
]
