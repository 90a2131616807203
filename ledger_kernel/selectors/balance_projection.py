"""
Module: ledger_kernel.selectors.balance_projection
Responsibility: Balance-by-account and income-statement-by-account read
    models, plus trial balance totals.  Two interchangeable strategies:
    a view-backed one reading the ``vw_account_balances`` reporting view, and
    a ledger-lines one aggregating journal lines directly.
Architecture position: Kernel > Selectors.  May import from models/ and
    domain/ DTOs.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Strategy choice is an explicit capability probe: the view strategy is
      used when the view exists in the connected database, the ledger-lines
      strategy otherwise.  A failing view query is an error, not a signal to
      fall back.
    - Both strategies return the same AccountBalance rows for the same data.
    - Balances are debit-minus-credit, derived at query time.

Failure modes:
    - Storage errors propagate unchanged.

Audit relevance:
    Net income at year close and the auditor's trial balance both come from
    here.  The reporting view is expected to expose one row per account and
    entry date: tenant_id, account_id, entry_date, total_debit, total_credit.
"""

from datetime import date
from decimal import Decimal
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import Date, Numeric, column, func, inspect, select, table
from sqlalchemy.orm import Session

from ledger_kernel.db.base import UUIDString
from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.dtos import AccountBalance
from ledger_kernel.models.account import Account, PROFIT_AND_LOSS_TYPES
from ledger_kernel.models.journal import JournalEntry, JournalLine
from ledger_kernel.selectors.base import BaseSelector

ACCOUNT_BALANCES_VIEW = "vw_account_balances"

account_balances_view = table(
    ACCOUNT_BALANCES_VIEW,
    column("tenant_id", UUIDString()),
    column("account_id", UUIDString()),
    column("entry_date", Date()),
    column("total_debit", Numeric(38, 9)),
    column("total_credit", Numeric(38, 9)),
)

_PNL_TYPE_VALUES = [account_type.value for account_type in PROFIT_AND_LOSS_TYPES]


@runtime_checkable
class BalanceProjection(Protocol):
    """Read model of per-account balances for one tenant."""

    def balances_by_account(
        self, tenant_id: UUID, as_of: date | None = None
    ) -> list[AccountBalance]:
        ...

    def income_statement_by_account(
        self, tenant_id: UUID, start_date: date, end_date: date
    ) -> list[AccountBalance]:
        ...

    def trial_balance_totals(self, tenant_id: UUID) -> tuple[Decimal, Decimal]:
        ...


def _to_balances(rows) -> list[AccountBalance]:
    return [
        AccountBalance(
            account_id=row.account_id,
            account_number=row.account_number,
            name=row.name,
            account_type=row.account_type,
            total_debit=row.total_debit if row.total_debit is not None else ZERO,
            total_credit=row.total_credit if row.total_credit is not None else ZERO,
        )
        for row in rows
    ]


class _AggregatingProjection(BaseSelector[JournalLine]):
    """
    Shared query shape: a (tenant_id, account_id, entry_date, debit, credit)
    source grouped per account and joined to the chart of accounts.
    """

    def _source(self):
        raise NotImplementedError

    def _aggregate(self, tenant_id: UUID, *conditions) -> list[AccountBalance]:
        src = self._source()
        query = (
            select(
                Account.id.label("account_id"),
                Account.account_number,
                Account.name,
                Account.account_type,
                func.sum(src.c.debit).label("total_debit"),
                func.sum(src.c.credit).label("total_credit"),
            )
            .join(src, src.c.account_id == Account.id)
            .where(src.c.tenant_id == tenant_id, Account.tenant_id == tenant_id, *conditions)
            .group_by(Account.id, Account.account_number, Account.name, Account.account_type)
            .order_by(Account.account_number)
        )
        return _to_balances(self.session.execute(query).all())

    def balances_by_account(
        self, tenant_id: UUID, as_of: date | None = None
    ) -> list[AccountBalance]:
        src = self._source()
        conditions = [] if as_of is None else [src.c.entry_date <= as_of]
        return self._aggregate(tenant_id, *conditions)

    def income_statement_by_account(
        self, tenant_id: UUID, start_date: date, end_date: date
    ) -> list[AccountBalance]:
        src = self._source()
        return self._aggregate(
            tenant_id,
            Account.account_type.in_(_PNL_TYPE_VALUES),
            src.c.entry_date >= start_date,
            src.c.entry_date <= end_date,
        )

    def trial_balance_totals(self, tenant_id: UUID) -> tuple[Decimal, Decimal]:
        src = self._source()
        total_debit, total_credit = self.session.execute(
            select(
                func.coalesce(func.sum(src.c.debit), ZERO),
                func.coalesce(func.sum(src.c.credit), ZERO),
            ).where(src.c.tenant_id == tenant_id)
        ).one()
        return Decimal(total_debit), Decimal(total_credit)


class LedgerLinesProjection(_AggregatingProjection):
    """Aggregates journal_lines joined to their entry dates."""

    def _source(self):
        return (
            select(
                JournalLine.tenant_id.label("tenant_id"),
                JournalLine.account_id.label("account_id"),
                JournalEntry.entry_date.label("entry_date"),
                JournalLine.debit.label("debit"),
                JournalLine.credit.label("credit"),
            )
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .subquery("ledger_lines")
        )


class ViewBackedProjection(_AggregatingProjection):
    """Reads the pre-aggregated vw_account_balances reporting view."""

    def _source(self):
        view = account_balances_view
        return (
            select(
                view.c.tenant_id.label("tenant_id"),
                view.c.account_id.label("account_id"),
                view.c.entry_date.label("entry_date"),
                view.c.total_debit.label("debit"),
                view.c.total_credit.label("credit"),
            )
            .subquery("view_balances")
        )


def has_balance_view(session: Session) -> bool:
    """True when the connected database exposes vw_account_balances."""
    return ACCOUNT_BALANCES_VIEW in inspect(session.connection()).get_view_names()


def select_balance_projection(session: Session) -> BalanceProjection:
    """Pick the projection strategy for this database."""
    if has_balance_view(session):
        return ViewBackedProjection(session)
    return LedgerLinesProjection(session)
