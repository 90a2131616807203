"""
JournalWriter -- atomic journal posting service.

Responsibility:
    Turns an EntryDraft into persisted JournalEntry and JournalLine rows.
    Every money-moving operation in the system (manual journals, business
    event auto-postings, depreciation, revaluation, year-end closing, tax
    settlement) goes through post().

Architecture position:
    Kernel > Services -- imperative shell.  Delegates posting-date gating
    to PeriodService and announces success through LedgerEventDispatcher.

Invariants enforced:
    - Line shape: at least one line; debit >= 0, credit >= 0, exactly one
      side non-zero.
    - Balance: |total_debit - total_credit| <= one minor unit of the tenant
      base currency.
    - Period gating: no entry dated inside a locked or closed fiscal year
      (closing entries may target a locked year, never a closed one).
    - Account validity: every account exists in the same tenant and is not
      a placeholder.
    - Atomicity: header and lines are written inside one SAVEPOINT.  A
      failure after the header insert rolls the savepoint back, which is the
      compensating removal of the header.

    All four validations run in that order, before any write.

Failure modes:
    - InvalidJournalLineError, ImbalancedEntryError, PeriodClosedError,
      InvalidAccountError: validation, nothing written.
    - CompensationFailedError: the savepoint rollback itself failed; chained
      to the rollback error.  Never swallowed.
    - Any storage error during the write is re-raised after compensation.

Audit relevance:
    journal_entry_posted is logged with the entry id, totals and line count
    when the entry is flushed, and published to subscribers once the
    caller commits.  Validation failures are logged at
    WARNING with the violated rule.

Non-goals:
    - Does NOT call session.commit() -- caller controls boundaries.
    - Does NOT resolve account roles; callers hand over concrete account
      ids (see AccountMappingResolver).
"""

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.dtos import EntryDraft, LineSpec, TenantContext
from ledger_kernel.exceptions import (
    CompensationFailedError,
    EntryNotFoundError,
    ImbalancedEntryError,
    InvalidAccountError,
    InvalidJournalLineError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry, JournalLine, ReferenceType
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.event_dispatch import (
    JOURNAL_ENTRY_POSTED,
    LedgerEvent,
    LedgerEventDispatcher,
)
from ledger_kernel.services.period_service import PeriodService

logger = get_logger("services.journal_writer")

_REFERENCE_TYPES = frozenset(member.value for member in ReferenceType)


class JournalWriter(BaseService[JournalEntry]):
    """
    Service for atomic journal posting.

    Contract:
        post() either returns the id of a fully written, balanced entry or
        raises a typed error having written nothing.

    Guarantees:
        - created_by is context.actor; tenant_id is context.tenant_id.
        - Lines keep the draft order as line_seq.
        - journal_entry_posted is published only after the savepoint is
          released.

    Usage:
        writer = JournalWriter(session, period_service)
        entry_id = writer.post(context, EntryDraft(
            entry_date=date(2024, 3, 1),
            description="Owner contribution",
            reference_type=ReferenceType.MANUAL_JOURNAL,
            lines=(
                LineSpec.debit_line(cash_id, Decimal("1000.00")),
                LineSpec.credit_line(equity_id, Decimal("1000.00")),
            ),
        ))
    """

    def __init__(
        self,
        session: Session,
        period_service: PeriodService | None = None,
        dispatcher: LedgerEventDispatcher | None = None,
    ):
        super().__init__(session)
        self._period_service = period_service or PeriodService(session)
        self._dispatcher = dispatcher or LedgerEventDispatcher()

    def post(self, context: TenantContext, draft: EntryDraft) -> UUID:
        """
        Validate and persist a journal entry.

        Preconditions:
            - context.tenant_id names an existing tenant.

        Postconditions:
            - On success the header and every line are flushed in the
              caller's transaction.
            - On failure nothing from this call remains in the session.

        Raises:
            InvalidJournalLineError: Bad line shape.
            ImbalancedEntryError: Debits and credits differ beyond tolerance.
            PeriodClosedError: Date inside a locked or closed fiscal year.
            InvalidAccountError: Unknown, foreign-tenant or placeholder account.
            CompensationFailedError: Rolling back a failed write failed.
        """
        self._validate_lines(draft)
        total_debit, total_credit = self._validate_balance(context, draft)
        self._period_service.validate_posting_date(
            context.tenant_id, draft.entry_date, reference_type=draft.reference_type
        )
        self._validate_accounts(context, draft)

        entry_id = uuid4()
        with LogContext.bind(tenant_id=context.tenant_id, actor=context.actor, entry_id=entry_id):
            savepoint = self.session.begin_nested()
            try:
                entry = self._create_entry(context, draft, entry_id, total_debit, total_credit)
                self._create_lines(context, entry, draft.lines)
            except Exception as exc:
                self._compensate(savepoint, entry_id, exc)
                raise
            savepoint.commit()

            logger.info(
                "journal_entry_posted",
                extra={
                    "reference_type": draft.reference_type,
                    "entry_date": draft.entry_date,
                    "total_debit": total_debit,
                    "total_credit": total_credit,
                    "line_count": len(draft.lines),
                },
            )

        self._dispatcher.publish_on_commit(
            self.session,
            LedgerEvent(
                name=JOURNAL_ENTRY_POSTED,
                tenant_id=str(context.tenant_id),
                payload={
                    "entry_id": str(entry_id),
                    "entry_date": draft.entry_date.isoformat(),
                    "reference_type": draft.reference_type,
                    "total_debit": str(total_debit),
                },
            )
        )
        return entry_id

    def reverse(
        self,
        context: TenantContext,
        entry_id: UUID,
        entry_date: date,
        description: str | None = None,
    ) -> UUID:
        """
        Post the mirror image of an existing entry.

        Posted entries are never edited; a correction swaps every line's
        debit and credit in a new ADJUSTMENT entry referencing the original.

        Raises:
            EntryNotFoundError: If the entry does not exist in this tenant.
        """
        original = self.session.execute(
            select(JournalEntry).where(
                JournalEntry.id == entry_id,
                JournalEntry.tenant_id == context.tenant_id,
            )
        ).scalar_one_or_none()
        if original is None:
            raise EntryNotFoundError(str(entry_id))

        lines = tuple(
            LineSpec(
                account_id=line.account_id,
                debit=line.credit,
                credit=line.debit,
                note=line.note,
                amount_currency=line.amount_currency,
            )
            for line in original.lines
        )
        return self.post(
            context,
            EntryDraft(
                entry_date=entry_date,
                description=description or f"Reversal of: {original.description}",
                reference_type=ReferenceType.ADJUSTMENT.value,
                reference_id=str(original.id),
                lines=lines,
            ),
        )

    # ------------------------------------------------------------------
    # Validation (no writes)
    # ------------------------------------------------------------------

    def _validate_lines(self, draft: EntryDraft) -> None:
        if draft.reference_type not in _REFERENCE_TYPES:
            self._reject_line(None, f"unknown reference type '{draft.reference_type}'")
        if not draft.lines:
            self._reject_line(None, "entry has no lines")

        for index, line in enumerate(draft.lines):
            if line.debit < ZERO or line.credit < ZERO:
                self._reject_line(index, "amounts must not be negative")
            if (line.debit > ZERO) == (line.credit > ZERO):
                self._reject_line(index, "exactly one of debit or credit must be non-zero")
            if line.amount_currency is not None and line.amount_currency < ZERO:
                self._reject_line(index, "amount_currency must not be negative")

    def _reject_line(self, index: int | None, reason: str) -> None:
        logger.warning(
            "journal_line_rejected",
            extra={"line_index": index, "reason": reason},
        )
        raise InvalidJournalLineError(index, reason)

    def _validate_balance(
        self, context: TenantContext, draft: EntryDraft
    ) -> tuple[Decimal, Decimal]:
        total_debit = draft.total_debit
        total_credit = draft.total_credit
        tolerance = context.balance_tolerance

        if abs(total_debit - total_credit) > tolerance:
            logger.warning(
                "unbalanced_entry_rejected",
                extra={
                    "total_debit": total_debit,
                    "total_credit": total_credit,
                    "tolerance": tolerance,
                },
            )
            raise ImbalancedEntryError(total_debit, total_credit, tolerance)

        return total_debit, total_credit

    def _validate_accounts(self, context: TenantContext, draft: EntryDraft) -> None:
        account_ids = {line.account_id for line in draft.lines}
        accounts = {
            account.id: account
            for account in self.session.execute(
                select(Account).where(Account.id.in_(account_ids))
            ).scalars()
        }

        for line in draft.lines:
            account = accounts.get(line.account_id)
            if account is None:
                reason = "account does not exist"
            elif account.tenant_id != context.tenant_id:
                reason = "account belongs to another tenant"
            elif account.is_placeholder:
                reason = "placeholder accounts cannot receive postings"
            else:
                continue
            logger.warning(
                "invalid_account_rejected",
                extra={"account_id": str(line.account_id), "reason": reason},
            )
            raise InvalidAccountError(str(line.account_id), reason)

    # ------------------------------------------------------------------
    # Writes (inside the savepoint)
    # ------------------------------------------------------------------

    def _create_entry(
        self,
        context: TenantContext,
        draft: EntryDraft,
        entry_id: UUID,
        total_debit: Decimal,
        total_credit: Decimal,
    ) -> JournalEntry:
        entry = JournalEntry(
            id=entry_id,
            tenant_id=context.tenant_id,
            entry_date=draft.entry_date,
            description=draft.description,
            reference_type=draft.reference_type,
            reference_id=draft.reference_id,
            total_debit=total_debit,
            total_credit=total_credit,
            created_by=context.actor,
        )
        self.session.add(entry)
        self.session.flush()
        return entry

    def _create_lines(
        self,
        context: TenantContext,
        entry: JournalEntry,
        lines: tuple[LineSpec, ...],
    ) -> None:
        for seq, line in enumerate(lines):
            self.session.add(
                JournalLine(
                    tenant_id=context.tenant_id,
                    entry=entry,
                    account_id=line.account_id,
                    debit=line.debit,
                    credit=line.credit,
                    amount_currency=line.amount_currency,
                    note=line.note,
                    line_seq=seq,
                    created_by=context.actor,
                )
            )
        self.session.flush()

    def _compensate(self, savepoint, entry_id: UUID, cause: Exception) -> None:
        """Roll back the header written inside this savepoint."""
        logger.warning(
            "journal_write_failed",
            extra={"error_type": type(cause).__name__},
        )
        try:
            savepoint.rollback()
        except Exception as rollback_error:
            logger.error(
                "journal_compensation_failed",
                exc_info=True,
                extra={"error_type": type(rollback_error).__name__},
            )
            raise CompensationFailedError(str(entry_id)) from rollback_error
        logger.info("journal_header_rolled_back")
