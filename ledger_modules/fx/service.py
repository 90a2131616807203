"""
FX Revaluation Module Service (``ledger_modules.fx.service``).

Responsibility
--------------
For an account held in a currency other than the tenant's base currency,
compares the base-currency book balance with the foreign balance
converted at a new rate, and posts the difference against a gain/loss
account.

Architecture position
---------------------
**Modules layer**.  Reads journal lines directly; writes only through
``JournalWriter``.

Invariants enforced
-------------------
* Balances are signed debit-minus-credit.  ``foreign_balance`` sums each
  line's ``amount_currency`` with the sign of its side; lines without an
  ``amount_currency`` (earlier revaluations) contribute zero.
* ``diff = foreign_balance * rate - book_balance_base``.
* A positive diff debits the revalued account and credits gain/loss; a
  negative diff credits the account and debits gain/loss.
* A diff below one minor unit of the base currency posts nothing.

Failure modes
-------------
* ``InvalidExchangeRateError`` for a rate <= 0.
* ``NotForeignCurrencyAccountError`` for a base-currency account.
* ``AccountNotFoundError`` for an unknown account.
* Posting errors propagate unchanged.

Audit relevance
---------------
``fx_revaluation_calculated`` and ``fx_revaluation_posted`` are logged with
the account, rate and diff.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import EntryDraft, LineSpec, RevaluationCalculation, TenantContext
from ledger_kernel.db.types import to_decimal
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    InvalidExchangeRateError,
    NotForeignCurrencyAccountError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalLine, ReferenceType
from ledger_kernel.services.journal_writer import JournalWriter

logger = get_logger("modules.fx.service")

ZERO = Decimal("0")


class FXRevaluationEngine:
    """
    Calculates and posts foreign-currency revaluations.

    Usage::

        engine = FXRevaluationEngine(session)
        calc = engine.calculate(context, usd_bank_id, Decimal("3.80"))
        engine.post(context, usd_bank_id, calc.diff, fx_gain_loss_id)
    """

    def __init__(
        self,
        session: Session,
        writer: JournalWriter | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._writer = writer or JournalWriter(session)
        self._clock = clock or SystemClock()

    def calculate(
        self,
        context: TenantContext,
        account_id: UUID,
        new_rate: Decimal,
    ) -> RevaluationCalculation:
        """Read-only: what the revaluation at ``new_rate`` would post."""
        rate = to_decimal(new_rate)
        if rate <= ZERO:
            raise InvalidExchangeRateError(rate)

        account = self._session.get(Account, account_id)
        if account is None or account.tenant_id != context.tenant_id:
            raise AccountNotFoundError(str(account_id))
        if account.currency == context.base_currency:
            raise NotForeignCurrencyAccountError(str(account_id), account.currency)

        signed_foreign = case(
            (JournalLine.debit > ZERO, func.coalesce(JournalLine.amount_currency, ZERO)),
            else_=-func.coalesce(JournalLine.amount_currency, ZERO),
        )
        foreign_balance, book_balance_base = self._session.execute(
            select(
                func.coalesce(func.sum(signed_foreign), ZERO),
                func.coalesce(func.sum(JournalLine.debit - JournalLine.credit), ZERO),
            ).where(
                JournalLine.tenant_id == context.tenant_id,
                JournalLine.account_id == account_id,
            )
        ).one()
        foreign_balance = Decimal(foreign_balance)
        book_balance_base = Decimal(book_balance_base)

        target = context.round(foreign_balance * rate)
        diff = target - context.round(book_balance_base)

        calculation = RevaluationCalculation(
            account_id=account_id,
            currency=account.currency,
            rate=rate,
            foreign_balance=foreign_balance,
            book_balance_base=book_balance_base,
            target_base_balance=target,
            diff=diff,
        )
        logger.info("fx_revaluation_calculated", extra={
            "account_id": str(account_id),
            "currency": account.currency,
            "rate": str(rate),
            "diff": str(diff),
        })
        return calculation

    def post(
        self,
        context: TenantContext,
        account_id: UUID,
        diff: Decimal,
        gain_loss_account_id: UUID,
        entry_date: date | None = None,
    ) -> UUID | None:
        """
        Post a revaluation difference.  Returns the entry id, or None when
        the unrounded difference is below one minor unit.
        """
        diff = to_decimal(diff)
        if abs(diff) < context.tolerance:
            logger.info("fx_revaluation_skipped", extra={
                "account_id": str(account_id),
                "diff": str(diff),
            })
            return None

        diff = context.round(diff)
        amount = abs(diff)
        if diff > ZERO:
            note = "FX revaluation gain"
            lines = (
                LineSpec.debit_line(account_id, amount, note=note),
                LineSpec.credit_line(gain_loss_account_id, amount, note=note),
            )
        else:
            note = "FX revaluation loss"
            lines = (
                LineSpec.debit_line(gain_loss_account_id, amount, note=note),
                LineSpec.credit_line(account_id, amount, note=note),
            )

        with LogContext.bind(tenant_id=context.tenant_id, actor=context.actor):
            entry_id = self._writer.post(
                context,
                EntryDraft(
                    entry_date=entry_date or self._clock.today(),
                    description="Foreign currency revaluation",
                    reference_type=ReferenceType.REVALUATION.value,
                    reference_id=str(account_id),
                    lines=lines,
                ),
            )
            logger.info("fx_revaluation_posted", extra={
                "account_id": str(account_id),
                "diff": str(diff),
                "entry_id": str(entry_id),
            })
        return entry_id

    def revalue(
        self,
        context: TenantContext,
        account_id: UUID,
        new_rate: Decimal,
        gain_loss_account_id: UUID,
        entry_date: date | None = None,
    ) -> tuple[RevaluationCalculation, UUID | None]:
        """Calculate and post in one call."""
        calculation = self.calculate(context, account_id, new_rate)
        entry_id = self.post(
            context, account_id, calculation.diff, gain_loss_account_id, entry_date=entry_date
        )
        return calculation, entry_id
