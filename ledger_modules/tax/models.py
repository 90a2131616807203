"""
Tax Domain Models.

Invoice totals handed in by the sales and purchasing subsystems, and the
period summary computed from them.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from ledger_kernel.db.types import to_decimal


@dataclass(frozen=True)
class InvoiceTaxLine:
    """Taxable base and tax of one invoice."""
    invoice_date: date
    subtotal: Decimal
    tax_total: Decimal
    status: str = "posted"

    def __post_init__(self) -> None:
        object.__setattr__(self, "subtotal", to_decimal(self.subtotal))
        object.__setattr__(self, "tax_total", to_decimal(self.tax_total))


@dataclass(frozen=True)
class TaxSummary:
    """VAT position of one period.  Negative net_tax_payable is a refund."""
    period_start: date
    period_end: date
    total_sales_taxable: Decimal
    total_output_tax: Decimal
    total_purchases_taxable: Decimal
    total_input_tax: Decimal

    @property
    def net_tax_payable(self) -> Decimal:
        return self.total_output_tax - self.total_input_tax

    @property
    def period_label(self) -> str:
        return f"{self.period_start.isoformat()} to {self.period_end.isoformat()}"
