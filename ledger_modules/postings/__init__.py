"""
Business-Event Postings Module (``ledger_modules.postings``).

Turns everyday business events (cash income and expense, sales and
purchase invoices, payroll accruals, inventory adjustments) into balanced
journal entries through the tenant's account-role mapping.
"""

from ledger_modules.postings.service import BusinessEventPoster

__all__ = ["BusinessEventPoster"]
