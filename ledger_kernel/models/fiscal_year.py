"""
Module: ledger_kernel.models.fiscal_year
Responsibility: ORM persistence for the fiscal year lifecycle -- controls
    which date ranges accept postings.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - No journal entry may be posted with an entry_date inside a LOCKED or
      CLOSED year (PeriodService.validate_posting_date).  Year-end closing
      entries may still target a LOCKED year.
    - Fiscal years of one tenant never overlap.
    - CLOSED is terminal: ORM listeners reject any further change.

Failure modes:
    - PeriodClosedError when posting into a locked or closed year.
    - InvalidPeriodTransitionError on a backward or repeated transition.
    - ImmutabilityViolationError on modification of a closed year.

Audit relevance:
    A closed year records who closed it, when, the net income swept into
    retained earnings, and the closing entry.  Closed years guarantee that
    historical statements are stable.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Date, DateTime, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TenantScoped, TrackedBase, UUIDString


class FiscalYearStatus(str, Enum):
    """Lifecycle status of a fiscal year.

    Contract: Transitions are OPEN -> LOCKED -> CLOSED or OPEN -> CLOSED.
    Once CLOSED, the year cannot reopen.
    """

    OPEN = "open"
    LOCKED = "locked"
    CLOSED = "closed"


class FiscalYear(TenantScoped, TrackedBase):
    """
    A tenant's fiscal year and its posting status.

    Contract:
        start_date <= end_date.  Date ranges of one tenant do not overlap.

    Guarantees:
        - closed_at, closed_by, net_income and closing_entry_id are set
          together, exactly when status becomes CLOSED.
    """

    __tablename__ = "fiscal_years"

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_fiscal_year_tenant_name"),
        Index("idx_fiscal_year_tenant_dates", "tenant_id", "start_date", "end_date"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[FiscalYearStatus] = mapped_column(
        String(20),
        nullable=False,
        default=FiscalYearStatus.OPEN.value,
    )

    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    closed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    net_income: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    closing_entry_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return f"<FiscalYear {self.name} [{self.start_date}..{self.end_date}] {self.status}>"

    @property
    def is_open(self) -> bool:
        return FiscalYearStatus(self.status) == FiscalYearStatus.OPEN

    @property
    def is_closed(self) -> bool:
        return FiscalYearStatus(self.status) == FiscalYearStatus.CLOSED

    def contains_date(self, check_date: date) -> bool:
        return self.start_date <= check_date <= self.end_date

    def overlaps(self, start_date: date, end_date: date) -> bool:
        return self.start_date <= end_date and start_date <= self.end_date
