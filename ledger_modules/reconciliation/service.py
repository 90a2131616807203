"""
Reconciliation Module Service (``ledger_modules.reconciliation.service``).

Responsibility
--------------
``unreconciled_lines`` lists an account's journal lines dated on or before
a statement date that have no ``LineReconciliation`` row.
``mark_reconciled`` records the lines a user matched.

Invariants enforced
-------------------
* Only lines of the caller's tenant can be listed or marked.
* Marking is idempotent: an already reconciled line is skipped.

Failure modes
-------------
* ``ValueError`` -- a line id unknown to the tenant.  Nothing is written.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import TenantContext
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.journal import JournalEntry, JournalLine
from ledger_modules.reconciliation.models import ReconciliationLine
from ledger_modules.reconciliation.orm import LineReconciliation

logger = get_logger("modules.reconciliation.service")


class ReconciliationService:
    """Bank statement matching over immutable journal lines."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()

    def unreconciled_lines(
        self,
        context: TenantContext,
        account_id: UUID,
        date_to: date,
    ) -> list[ReconciliationLine]:
        reconciled = select(LineReconciliation.journal_line_id).where(
            LineReconciliation.tenant_id == context.tenant_id
        )
        rows = self._session.execute(
            select(JournalLine, JournalEntry.entry_date, JournalEntry.description)
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalLine.tenant_id == context.tenant_id,
                JournalLine.account_id == account_id,
                JournalEntry.entry_date <= date_to,
                JournalLine.id.not_in(reconciled),
            )
            .order_by(JournalEntry.entry_date, JournalLine.line_seq)
        ).all()

        return [
            ReconciliationLine(
                line_id=line.id,
                entry_id=line.journal_entry_id,
                entry_date=entry_date,
                description=description or line.note or "Transaction",
                amount=line.signed_amount,
            )
            for line, entry_date, description in rows
        ]

    def mark_reconciled(
        self,
        context: TenantContext,
        line_ids: Iterable[UUID],
        statement_date: date,
    ) -> int:
        """Mark lines reconciled.  Returns how many were newly marked."""
        line_ids = set(line_ids)
        if not line_ids:
            return 0

        known = set(
            self._session.execute(
                select(JournalLine.id).where(
                    JournalLine.tenant_id == context.tenant_id,
                    JournalLine.id.in_(line_ids),
                )
            ).scalars()
        )
        unknown = line_ids - known
        if unknown:
            raise ValueError(f"journal lines not found: {sorted(str(i) for i in unknown)}")

        already = set(
            self._session.execute(
                select(LineReconciliation.journal_line_id).where(
                    LineReconciliation.journal_line_id.in_(line_ids)
                )
            ).scalars()
        )

        now = self._clock.now()
        new_ids = sorted(line_ids - already, key=str)
        for line_id in new_ids:
            self._session.add(
                LineReconciliation(
                    tenant_id=context.tenant_id,
                    journal_line_id=line_id,
                    statement_date=statement_date,
                    reconciled_at=now,
                    reconciled_by=context.actor,
                    created_by=context.actor,
                )
            )
        self._session.flush()

        logger.info("lines_reconciled", extra={
            "marked": len(new_ids),
            "skipped": len(already),
            "statement_date": str(statement_date),
        })
        return len(new_ids)
