"""
Business-Event Postings Service (``ledger_modules.postings.service``).

Responsibility
--------------
One method per business event.  Each method names the account ROLES it
posts to, resolves them through ``AccountMappingResolver.resolve_or_fail``
and hands a balanced draft to ``JournalWriter``.

Architecture position
---------------------
**Modules layer** -- thin glue over the kernel.  No account ids are
hard-coded here; the tenant's AccountMap decides.

Invariants enforced
-------------------
* Every role is resolved before anything is written.  An unmapped role
  aborts with ``MissingMappingError`` and leaves the ledger untouched.
* Amounts are positive Decimals; zero tax and zero cost lines are omitted.

Failure modes
-------------
* ``MissingMappingError`` -- a role this event needs is unbound.
* ``ValueError`` -- non-positive amount, or negative tax/cost.
* Kernel posting errors propagate unchanged.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.db.types import to_decimal
from ledger_kernel.domain.dtos import EntryDraft, LineSpec, TenantContext
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account_map import AccountRole
from ledger_kernel.models.journal import ReferenceType
from ledger_kernel.services.account_mapping import AccountMappingResolver
from ledger_kernel.services.journal_writer import JournalWriter

logger = get_logger("modules.postings.service")

ZERO = Decimal("0")


def _positive(name: str, value: Decimal) -> Decimal:
    value = to_decimal(value)
    if value <= ZERO:
        raise ValueError(f"{name} must be positive")
    return value


def _non_negative(name: str, value: Decimal) -> Decimal:
    value = to_decimal(value)
    if value < ZERO:
        raise ValueError(f"{name} must not be negative")
    return value


class BusinessEventPoster:
    """
    Posts business events through role-resolved accounts.

    Usage::

        poster = BusinessEventPoster(session)
        poster.create_cash_income(context, Decimal("250.00"), date(2024, 3, 1))
    """

    def __init__(
        self,
        session: Session,
        resolver: AccountMappingResolver | None = None,
        writer: JournalWriter | None = None,
    ):
        self._session = session
        self._resolver = resolver or AccountMappingResolver(session)
        self._writer = writer or JournalWriter(session)

    def _roles(self, context: TenantContext, *roles: AccountRole) -> dict[AccountRole, UUID]:
        return {role: self._resolver.resolve_or_fail(context.tenant_id, role) for role in roles}

    def _post(
        self,
        context: TenantContext,
        entry_date: date,
        description: str,
        reference_type: ReferenceType,
        lines: list[LineSpec],
        reference_id: str | None = None,
    ) -> UUID:
        entry_id = self._writer.post(
            context,
            EntryDraft(
                entry_date=entry_date,
                description=description,
                reference_type=reference_type.value,
                reference_id=reference_id,
                lines=tuple(lines),
            ),
        )
        logger.info("business_event_posted", extra={
            "reference_type": reference_type.value,
            "reference_id": reference_id,
            "entry_id": str(entry_id),
        })
        return entry_id

    # =========================================================================
    # Cash
    # =========================================================================

    def create_cash_income(
        self,
        context: TenantContext,
        amount: Decimal,
        entry_date: date,
        notes: str | None = None,
    ) -> UUID:
        """Dr cash / Cr default revenue."""
        amount = _positive("amount", amount)
        roles = self._roles(context, AccountRole.CASH, AccountRole.DEFAULT_REVENUE)
        return self._post(
            context,
            entry_date,
            notes or "Cash income",
            ReferenceType.INCOME,
            [
                LineSpec.debit_line(roles[AccountRole.CASH], amount, note=notes),
                LineSpec.credit_line(roles[AccountRole.DEFAULT_REVENUE], amount, note=notes),
            ],
        )

    def create_cash_expense(
        self,
        context: TenantContext,
        amount: Decimal,
        entry_date: date,
        notes: str | None = None,
    ) -> UUID:
        """Dr general expense / Cr cash."""
        amount = _positive("amount", amount)
        roles = self._roles(context, AccountRole.GENERAL_EXPENSE, AccountRole.CASH)
        return self._post(
            context,
            entry_date,
            notes or "Cash expense",
            ReferenceType.EXPENSE,
            [
                LineSpec.debit_line(roles[AccountRole.GENERAL_EXPENSE], amount, note=notes),
                LineSpec.credit_line(roles[AccountRole.CASH], amount, note=notes),
            ],
        )

    # =========================================================================
    # Invoices
    # =========================================================================

    def post_sales_invoice(
        self,
        context: TenantContext,
        invoice_id: str,
        invoice_date: date,
        subtotal: Decimal,
        tax: Decimal = ZERO,
        cost_of_goods: Decimal = ZERO,
        paid_in_cash: bool = False,
    ) -> UUID:
        """
        Dr receivable (cash-sales account when paid in cash) for the total,
        Cr revenue and tax payable.  When goods left stock, also
        Dr COGS / Cr inventory at cost.
        """
        subtotal = _positive("subtotal", subtotal)
        tax = _non_negative("tax", tax)
        cost_of_goods = _non_negative("cost_of_goods", cost_of_goods)

        debit_role = AccountRole.CASH_SALES if paid_in_cash else AccountRole.ACCOUNTS_RECEIVABLE
        needed = [debit_role, AccountRole.DEFAULT_REVENUE]
        if tax > ZERO:
            needed.append(AccountRole.TAX_PAYABLE)
        if cost_of_goods > ZERO:
            needed.extend([AccountRole.COGS, AccountRole.INVENTORY])
        roles = self._roles(context, *needed)

        note = f"Invoice {invoice_id}"
        lines = [
            LineSpec.debit_line(roles[debit_role], subtotal + tax, note=note),
            LineSpec.credit_line(roles[AccountRole.DEFAULT_REVENUE], subtotal, note=note),
        ]
        if tax > ZERO:
            lines.append(LineSpec.credit_line(roles[AccountRole.TAX_PAYABLE], tax, note=note))
        if cost_of_goods > ZERO:
            lines.append(LineSpec.debit_line(roles[AccountRole.COGS], cost_of_goods, note=note))
            lines.append(LineSpec.credit_line(roles[AccountRole.INVENTORY], cost_of_goods, note=note))

        return self._post(
            context,
            invoice_date,
            f"Sales invoice {invoice_id}",
            ReferenceType.SALE,
            lines,
            reference_id=invoice_id,
        )

    def post_purchase_invoice(
        self,
        context: TenantContext,
        invoice_id: str,
        invoice_date: date,
        subtotal: Decimal,
        tax: Decimal = ZERO,
        to_inventory: bool = True,
    ) -> UUID:
        """
        Dr inventory (default expense for non-stock purchases) and
        recoverable tax, Cr payable for the total.
        """
        subtotal = _positive("subtotal", subtotal)
        tax = _non_negative("tax", tax)

        debit_role = AccountRole.INVENTORY if to_inventory else AccountRole.DEFAULT_EXPENSE
        needed = [debit_role, AccountRole.ACCOUNTS_PAYABLE]
        if tax > ZERO:
            needed.append(AccountRole.TAX_PAYABLE)
        roles = self._roles(context, *needed)

        note = f"Bill {invoice_id}"
        lines = [LineSpec.debit_line(roles[debit_role], subtotal, note=note)]
        if tax > ZERO:
            lines.append(LineSpec.debit_line(roles[AccountRole.TAX_PAYABLE], tax, note=note))
        lines.append(
            LineSpec.credit_line(roles[AccountRole.ACCOUNTS_PAYABLE], subtotal + tax, note=note)
        )

        return self._post(
            context,
            invoice_date,
            f"Purchase invoice {invoice_id}",
            ReferenceType.PURCHASE,
            lines,
            reference_id=invoice_id,
        )

    # =========================================================================
    # Payroll and inventory
    # =========================================================================

    def post_payroll(
        self,
        context: TenantContext,
        payroll_id: str,
        period_end: date,
        gross_amount: Decimal,
    ) -> UUID:
        """Accrue salaries: Dr salaries expense / Cr salaries payable."""
        gross_amount = _positive("gross_amount", gross_amount)
        roles = self._roles(context, AccountRole.SALARIES_EXPENSE, AccountRole.SALARIES_PAYABLE)
        note = f"Payroll {payroll_id}"
        return self._post(
            context,
            period_end,
            f"Payroll accrual {payroll_id}",
            ReferenceType.PAYROLL,
            [
                LineSpec.debit_line(roles[AccountRole.SALARIES_EXPENSE], gross_amount, note=note),
                LineSpec.credit_line(roles[AccountRole.SALARIES_PAYABLE], gross_amount, note=note),
            ],
            reference_id=payroll_id,
        )

    def post_inventory_adjustment(
        self,
        context: TenantContext,
        adjustment_id: str,
        adjustment_date: date,
        value_change: Decimal,
    ) -> UUID:
        """
        Book a stocktake difference at cost.  A positive ``value_change``
        (surplus) debits inventory; a negative one (shrinkage) credits it.
        """
        value_change = to_decimal(value_change)
        if value_change == ZERO:
            raise ValueError("value_change must not be zero")
        roles = self._roles(context, AccountRole.INVENTORY, AccountRole.INVENTORY_ADJUSTMENT)

        amount = abs(value_change)
        note = f"Stock adjustment {adjustment_id}"
        if value_change > ZERO:
            lines = [
                LineSpec.debit_line(roles[AccountRole.INVENTORY], amount, note=note),
                LineSpec.credit_line(roles[AccountRole.INVENTORY_ADJUSTMENT], amount, note=note),
            ]
        else:
            lines = [
                LineSpec.debit_line(roles[AccountRole.INVENTORY_ADJUSTMENT], amount, note=note),
                LineSpec.credit_line(roles[AccountRole.INVENTORY], amount, note=note),
            ]
        return self._post(
            context,
            adjustment_date,
            f"Inventory adjustment {adjustment_id}",
            ReferenceType.INVENTORY_ADJUSTMENT,
            lines,
            reference_id=adjustment_id,
        )
