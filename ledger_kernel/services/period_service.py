"""
PeriodService -- fiscal year lifecycle, posting-date gating and year close.

Responsibility:
    Manages the fiscal year lifecycle (OPEN -> LOCKED -> CLOSED, or
    OPEN -> CLOSED) and tells JournalWriter whether a date may receive
    postings.  Closing a year sweeps every revenue and expense balance into
    retained earnings with one closing entry.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by JournalWriter before every write to validate the entry date.
    Year close calls back into JournalWriter to post the closing entry.

Invariants enforced:
    - Period gating: no posting dated inside a LOCKED or CLOSED year.
      Closing entries may target a LOCKED year, never a CLOSED one.
    - Fiscal years of one tenant never overlap.
    - Transitions are forward only; CLOSED is terminal.
    - Returns frozen FiscalYearInfo DTOs, never ORM entities.
    - Flush-only: never commits or rolls back the session.

Failure modes:
    - PeriodClosedError: entry date inside a locked or closed year.
    - FiscalYearOverlapError: new date range overlaps an existing year.
    - InvalidPeriodTransitionError: lock of a non-open year, close of a
      closed year.
    - InsufficientDataError: no retained earnings account at year close.
      Nothing is written in that case.
    - FiscalYearNotFoundError: unknown year id for this tenant.

Audit relevance:
    fiscal_year_created, fiscal_year_locked and fiscal_year_closed are
    logged with the year name and dates.  Rejected postings are logged at
    WARNING.  fiscal_year_closed is also published to subscribers once
    the caller commits.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import (
    AccountBalance,
    EntryDraft,
    FiscalYearInfo,
    LineSpec,
    TenantContext,
)
from ledger_kernel.exceptions import (
    FiscalYearNotFoundError,
    FiscalYearOverlapError,
    InsufficientDataError,
    InvalidPeriodTransitionError,
    PeriodClosedError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account, AccountType
from ledger_kernel.models.account_map import AccountRole
from ledger_kernel.models.fiscal_year import FiscalYear, FiscalYearStatus
from ledger_kernel.models.journal import ReferenceType
from ledger_kernel.selectors.balance_projection import (
    BalanceProjection,
    select_balance_projection,
)
from ledger_kernel.services.account_mapping import AccountMappingResolver
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.event_dispatch import (
    FISCAL_YEAR_CLOSED,
    LedgerEvent,
    LedgerEventDispatcher,
)

logger = get_logger("services.period")


class PeriodService(BaseService[FiscalYear]):
    """
    Service for the fiscal year lifecycle.

    Contract:
        Lifecycle methods take a TenantContext and flush within the caller's
        transaction.  validate_posting_date() raises or returns None.

    Guarantees:
        - Status changes use SELECT ... FOR UPDATE on the year row.
        - close_fiscal_year() writes the closing entry and the CLOSED status
          in the caller's transaction, or nothing.

    Non-goals:
        - Does NOT reopen years.
        - Does NOT compute statements; net income comes from the balance
          projection.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        resolver: AccountMappingResolver | None = None,
        projection: BalanceProjection | None = None,
        dispatcher: LedgerEventDispatcher | None = None,
        retained_earnings_name_fallback: bool = False,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._resolver = resolver or AccountMappingResolver(session)
        self._projection = projection
        self._dispatcher = dispatcher or LedgerEventDispatcher()
        self._name_fallback = retained_earnings_name_fallback

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_fiscal_year(
        self,
        context: TenantContext,
        name: str,
        start_date: date,
        end_date: date,
    ) -> FiscalYearInfo:
        """
        Create a new OPEN fiscal year.

        Raises:
            ValueError: If start_date > end_date.
            FiscalYearOverlapError: If the range overlaps an existing year.
        """
        if start_date > end_date:
            raise ValueError(
                f"start_date ({start_date}) cannot be after end_date ({end_date})"
            )

        overlapping = self.session.execute(
            select(FiscalYear).where(
                FiscalYear.tenant_id == context.tenant_id,
                FiscalYear.start_date <= end_date,
                FiscalYear.end_date >= start_date,
            )
        ).scalars().first()
        if overlapping is not None:
            raise FiscalYearOverlapError(name, overlapping.name)

        year = FiscalYear(
            tenant_id=context.tenant_id,
            name=name,
            start_date=start_date,
            end_date=end_date,
            status=FiscalYearStatus.OPEN.value,
            created_by=context.actor,
        )
        self.session.add(year)
        self.session.flush()

        logger.info(
            "fiscal_year_created",
            extra={
                "fiscal_year": name,
                "start_date": str(start_date),
                "end_date": str(end_date),
            },
        )
        return FiscalYearInfo.from_model(year)

    def lock_period(self, context: TenantContext, year_id: UUID) -> FiscalYearInfo:
        """
        Lock an OPEN fiscal year.  Only closing entries may post into it.

        Raises:
            FiscalYearNotFoundError: Unknown year.
            InvalidPeriodTransitionError: Year is not OPEN.
        """
        year = self._get_year_for_update(context.tenant_id, year_id)
        current = FiscalYearStatus(year.status)
        if current != FiscalYearStatus.OPEN:
            raise InvalidPeriodTransitionError(
                year.name, current.value, FiscalYearStatus.LOCKED.value
            )

        year.status = FiscalYearStatus.LOCKED.value
        self.session.flush()

        logger.info("fiscal_year_locked", extra={"fiscal_year": year.name})
        return FiscalYearInfo.from_model(year)

    def close_fiscal_year(
        self,
        context: TenantContext,
        year_id: UUID,
        closing_date: date | None = None,
    ) -> FiscalYearInfo:
        """
        Close a fiscal year, sweeping P&L balances into retained earnings.

        Preconditions:
            - Year is OPEN or LOCKED.
            - closing_date (default: the year's end date) lies inside the year.

        Postconditions:
            - Every revenue and expense account has a zero balance over the
              year's range.
            - status is CLOSED; closed_at, closed_by, net_income and
              closing_entry_id are set.  closing_entry_id is None when every
              P&L balance was already zero.

        Raises:
            FiscalYearNotFoundError: Unknown year.
            InvalidPeriodTransitionError: Year is already CLOSED.
            ValueError: closing_date outside the year.
            InsufficientDataError: No retained earnings account.
        """
        year = self._get_year_for_update(context.tenant_id, year_id)
        if year.is_closed:
            raise InvalidPeriodTransitionError(
                year.name, FiscalYearStatus.CLOSED.value, FiscalYearStatus.CLOSED.value
            )

        closing_date = closing_date or year.end_date
        if not year.contains_date(closing_date):
            raise ValueError(
                f"closing_date {closing_date} is outside fiscal year {year.name} "
                f"[{year.start_date}..{year.end_date}]"
            )

        with LogContext.bind(tenant_id=context.tenant_id, actor=context.actor):
            retained_earnings_id = self._resolve_retained_earnings(context.tenant_id)

            projection = self._projection or select_balance_projection(self.session)
            pnl_balances = projection.income_statement_by_account(
                context.tenant_id, year.start_date, year.end_date
            )

            lines, net_income = self._build_closing_lines(
                context, pnl_balances, retained_earnings_id
            )

            closing_entry_id = None
            if lines:
                # Imported here: JournalWriter depends on this module.
                from ledger_kernel.services.journal_writer import JournalWriter

                writer = JournalWriter(self.session, period_service=self)
                closing_entry_id = writer.post(
                    context,
                    EntryDraft(
                        entry_date=closing_date,
                        description=f"Year-end closing: {year.name}",
                        reference_type=ReferenceType.CLOSING_ENTRY.value,
                        reference_id=str(year.id),
                        lines=tuple(lines),
                    ),
                )
            else:
                logger.info("fiscal_year_close_nothing_to_sweep", extra={"fiscal_year": year.name})

            year.status = FiscalYearStatus.CLOSED.value
            year.closed_at = self._clock.now()
            year.closed_by = context.actor
            year.net_income = net_income
            year.closing_entry_id = closing_entry_id
            self.session.flush()

            logger.info(
                "fiscal_year_closed",
                extra={
                    "fiscal_year": year.name,
                    "net_income": net_income,
                    "closing_entry_id": str(closing_entry_id) if closing_entry_id else None,
                    "line_count": len(lines),
                },
            )

        self._dispatcher.publish_on_commit(
            self.session,
            LedgerEvent(
                name=FISCAL_YEAR_CLOSED,
                tenant_id=str(context.tenant_id),
                payload={
                    "fiscal_year_id": str(year.id),
                    "fiscal_year": year.name,
                    "net_income": str(net_income),
                },
            )
        )
        return FiscalYearInfo.from_model(year)

    # ------------------------------------------------------------------
    # Posting-date gating
    # ------------------------------------------------------------------

    def validate_posting_date(
        self,
        tenant_id: UUID,
        entry_date: date,
        reference_type: str | None = None,
    ) -> None:
        """
        Reject a posting dated inside a locked or closed fiscal year.

        A date outside every fiscal year is accepted.  A LOCKED year accepts
        closing entries only.

        Raises:
            PeriodClosedError: If the date may not receive postings.
        """
        year = self._find_year_orm(tenant_id, entry_date)
        if year is None:
            return

        status = FiscalYearStatus(year.status)
        if status == FiscalYearStatus.OPEN:
            return
        if (
            status == FiscalYearStatus.LOCKED
            and getattr(reference_type, "value", reference_type)
            == ReferenceType.CLOSING_ENTRY.value
        ):
            return

        logger.warning(
            "posting_into_closed_period_rejected",
            extra={
                "entry_date": str(entry_date),
                "fiscal_year": year.name,
                "status": status.value,
            },
        )
        raise PeriodClosedError(entry_date, year.name, status.value)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_fiscal_year(self, tenant_id: UUID, year_id: UUID) -> FiscalYearInfo:
        """
        Raises:
            FiscalYearNotFoundError: Unknown year for this tenant.
        """
        year = self.session.execute(
            select(FiscalYear).where(
                FiscalYear.id == year_id,
                FiscalYear.tenant_id == tenant_id,
            )
        ).scalar_one_or_none()
        if year is None:
            raise FiscalYearNotFoundError(str(year_id))
        return FiscalYearInfo.from_model(year)

    def list_fiscal_years(self, tenant_id: UUID) -> list[FiscalYearInfo]:
        """All fiscal years of the tenant, most recent first."""
        years = self.session.execute(
            select(FiscalYear)
            .where(FiscalYear.tenant_id == tenant_id)
            .order_by(FiscalYear.start_date.desc())
        ).scalars()
        return [FiscalYearInfo.from_model(year) for year in years]

    def find_year_for_date(self, tenant_id: UUID, check_date: date) -> FiscalYearInfo | None:
        year = self._find_year_orm(tenant_id, check_date)
        return FiscalYearInfo.from_model(year) if year else None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _find_year_orm(self, tenant_id: UUID, check_date: date) -> FiscalYear | None:
        return self.session.execute(
            select(FiscalYear).where(
                FiscalYear.tenant_id == tenant_id,
                FiscalYear.start_date <= check_date,
                FiscalYear.end_date >= check_date,
            )
        ).scalars().first()

    def _get_year_for_update(self, tenant_id: UUID, year_id: UUID) -> FiscalYear:
        year = self.session.execute(
            select(FiscalYear)
            .where(
                FiscalYear.id == year_id,
                FiscalYear.tenant_id == tenant_id,
            )
            .with_for_update()
        ).scalar_one_or_none()
        if year is None:
            raise FiscalYearNotFoundError(str(year_id))
        return year

    def _resolve_retained_earnings(self, tenant_id: UUID) -> UUID:
        binding = self._resolver.lookup(tenant_id, AccountRole.DEFAULT_EQUITY)
        if binding.is_resolved:
            return binding.account_id

        if self._name_fallback:
            candidates = self.session.execute(
                select(Account).where(
                    Account.tenant_id == tenant_id,
                    Account.account_type == AccountType.EQUITY.value,
                    Account.is_placeholder.is_(False),
                    Account.name.ilike("%retained%"),
                )
            ).scalars().all()
            if len(candidates) == 1:
                logger.warning(
                    "retained_earnings_resolved_by_name",
                    extra={
                        "account_id": str(candidates[0].id),
                        "account_name": candidates[0].name,
                    },
                )
                return candidates[0].id

        logger.warning("retained_earnings_unresolved")
        raise InsufficientDataError(
            "no retained earnings account: bind the default_equity role"
        )

    def _build_closing_lines(
        self,
        context: TenantContext,
        pnl_balances: list[AccountBalance],
        retained_earnings_id: UUID,
    ) -> tuple[list[LineSpec], Decimal]:
        """
        Zeroing lines for every P&L account plus the retained earnings line.

        Balances are debit-minus-credit, so net income is the negated sum.
        """
        lines: list[LineSpec] = []
        total = ZERO
        for row in pnl_balances:
            balance = context.round(row.balance)
            if balance == ZERO:
                continue
            total += balance
            if balance > ZERO:
                lines.append(LineSpec.credit_line(row.account_id, balance, note="Year-end close"))
            else:
                lines.append(LineSpec.debit_line(row.account_id, -balance, note="Year-end close"))

        net_income = -total
        if not lines:
            return [], net_income

        if net_income > ZERO:
            lines.append(LineSpec.credit_line(retained_earnings_id, net_income, note="Net income"))
        elif net_income < ZERO:
            lines.append(LineSpec.debit_line(retained_earnings_id, -net_income, note="Net loss"))
        return lines, net_income
