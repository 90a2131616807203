"""
Tax Module Service (``ledger_modules.tax.service``).

Responsibility
--------------
``summarize`` aggregates invoice totals into a ``TaxSummary``; ``settle``
posts the VAT settlement entry:

* output tax debits tax payable,
* input tax credits tax payable,
* a net payable credits the bank, a net refund debits it.

Architecture position
---------------------
**Modules layer**.  Invoices are owned elsewhere and passed in; roles
``tax_payable`` and ``bank`` are resolved through the account map.

Failure modes
-------------
* ``MissingMappingError`` -- ``tax_payable`` or ``bank`` unbound.
* ``ValueError`` -- period_start after period_end.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import EntryDraft, LineSpec, TenantContext
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account_map import AccountRole
from ledger_kernel.models.journal import ReferenceType
from ledger_kernel.services.account_mapping import AccountMappingResolver
from ledger_kernel.services.journal_writer import JournalWriter
from ledger_modules.tax.models import InvoiceTaxLine, TaxSummary

logger = get_logger("modules.tax.service")

ZERO = Decimal("0")

# Invoice states that never count towards a return.
EXCLUDED_STATUSES = frozenset({"void", "cancelled"})


class TaxService:
    """VAT return aggregation and settlement posting."""

    def __init__(
        self,
        session: Session,
        resolver: AccountMappingResolver | None = None,
        writer: JournalWriter | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._resolver = resolver or AccountMappingResolver(session)
        self._writer = writer or JournalWriter(session)
        self._clock = clock or SystemClock()

    def summarize(
        self,
        period_start: date,
        period_end: date,
        sales: Iterable[InvoiceTaxLine],
        purchases: Iterable[InvoiceTaxLine],
    ) -> TaxSummary:
        """Sum the in-period, non-void invoices on each side."""
        if period_start > period_end:
            raise ValueError("period_start cannot be after period_end")

        def in_period(lines: Iterable[InvoiceTaxLine]) -> list[InvoiceTaxLine]:
            return [
                line for line in lines
                if period_start <= line.invoice_date <= period_end
                and line.status not in EXCLUDED_STATUSES
            ]

        sales = in_period(sales)
        purchases = in_period(purchases)
        return TaxSummary(
            period_start=period_start,
            period_end=period_end,
            total_sales_taxable=sum((s.subtotal for s in sales), ZERO),
            total_output_tax=sum((s.tax_total for s in sales), ZERO),
            total_purchases_taxable=sum((p.subtotal for p in purchases), ZERO),
            total_input_tax=sum((p.tax_total for p in purchases), ZERO),
        )

    def settle(
        self,
        context: TenantContext,
        summary: TaxSummary,
        settlement_date: date | None = None,
    ) -> UUID | None:
        """
        Post the settlement entry.  Returns None when the summary holds no
        tax at all.
        """
        if summary.total_output_tax == ZERO and summary.total_input_tax == ZERO:
            logger.info("tax_settlement_skipped", extra={"period": summary.period_label})
            return None

        tax_payable = self._resolver.resolve_or_fail(context.tenant_id, AccountRole.TAX_PAYABLE)
        bank = self._resolver.resolve_or_fail(context.tenant_id, AccountRole.BANK)

        lines: list[LineSpec] = []
        if summary.total_output_tax > ZERO:
            lines.append(LineSpec.debit_line(tax_payable, summary.total_output_tax, note="Clear output tax"))
        if summary.total_input_tax > ZERO:
            lines.append(LineSpec.credit_line(tax_payable, summary.total_input_tax, note="Clear input tax"))
        net = summary.net_tax_payable
        if net > ZERO:
            lines.append(LineSpec.credit_line(bank, net, note="VAT payment"))
        elif net < ZERO:
            lines.append(LineSpec.debit_line(bank, -net, note="VAT refund"))

        entry_id = self._writer.post(
            context,
            EntryDraft(
                entry_date=settlement_date or self._clock.today(),
                description=f"VAT settlement - {summary.period_label}",
                reference_type=ReferenceType.TAX_RETURN.value,
                reference_id=summary.period_label,
                lines=tuple(lines),
            ),
        )
        logger.info("tax_settlement_posted", extra={
            "period": summary.period_label,
            "output_tax": str(summary.total_output_tax),
            "input_tax": str(summary.total_input_tax),
            "net_tax_payable": str(net),
            "entry_id": str(entry_id),
        })
        return entry_id
