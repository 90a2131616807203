"""
Tax Settlement Module (``ledger_modules.tax``).

Aggregates output and input VAT for a period and posts the settlement
entry that clears the tax-payable account against the bank.
"""

from ledger_modules.tax.models import InvoiceTaxLine, TaxSummary
from ledger_modules.tax.service import TaxService

__all__ = ["InvoiceTaxLine", "TaxService", "TaxSummary"]
