"""
Reconciliation ORM Models (``ledger_modules.reconciliation.orm``).

Reconciliation state lives beside the journal, one row per matched line,
so journal lines themselves are never updated.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TenantScoped, TrackedBase, UUIDString


class LineReconciliation(TenantScoped, TrackedBase):
    """
    ORM model marking one journal line as matched to a statement.

    Table: ``line_reconciliations``
    """

    __tablename__ = "line_reconciliations"

    __table_args__ = (
        UniqueConstraint("journal_line_id", name="uq_line_reconciliation_line"),
    )

    journal_line_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("journal_lines.id"), nullable=False,
    )
    statement_date: Mapped[date] = mapped_column(Date, nullable=False)
    reconciled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reconciled_by: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<LineReconciliation(journal_line_id={self.journal_line_id!r}, "
            f"statement_date={self.statement_date!r})>"
        )
