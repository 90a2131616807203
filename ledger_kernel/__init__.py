"""
Ledger Kernel

A multi-tenant double-entry ledger with:
- Balanced, immutable journal entries
- Atomic posting (header and lines in one savepoint)
- Fiscal year locking and year-end closing
- Role-based account mapping for automatic postings
- A deterministic consistency audit
"""

__version__ = "0.1.0"
