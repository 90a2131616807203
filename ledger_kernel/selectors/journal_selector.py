"""
Module: ledger_kernel.selectors.journal_selector
Responsibility: Read-only query access to journal entries and their lines.
    Converts ORM models to frozen JournalEntryRecord DTOs.
Architecture position: Kernel > Selectors.  May import from models/ and
    selectors/base.py.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only: no mutations performed on any queried data.
    - Tenant scoping: an entry of another tenant is indistinguishable from
      a missing one.
    - Lines are sorted by line_seq.

Failure modes:
    - Returns None or an empty page when nothing matches (never raises on
      absence of data).
"""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ledger_kernel.domain.dtos import JournalEntryRecord
from ledger_kernel.models.journal import JournalEntry
from ledger_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class JournalPage:
    """One page of a journal listing."""

    entries: tuple[JournalEntryRecord, ...]
    total: int
    page: int
    page_size: int

    @property
    def has_next(self) -> bool:
        return self.page * self.page_size < self.total


class JournalSelector(BaseSelector[JournalEntry]):
    """
    Selector for journal entry queries.

    Guarantees:
        - Eager loading: lines are loaded via selectinload.
        - Listings are newest first (entry_date, then created_at).
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def get_entry(self, tenant_id: UUID, entry_id: UUID) -> JournalEntryRecord | None:
        """Fetch one entry with its lines, or None."""
        entry = self.session.execute(
            select(JournalEntry)
            .options(selectinload(JournalEntry.lines))
            .where(
                JournalEntry.id == entry_id,
                JournalEntry.tenant_id == tenant_id,
            )
        ).scalar_one_or_none()

        if entry is None:
            return None
        return JournalEntryRecord.from_model(entry)

    def list_entries(
        self,
        tenant_id: UUID,
        search: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        reference_type: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> JournalPage:
        """
        Paginated journal listing.

        Args:
            search: Case-insensitive substring of the description.
            date_from / date_to: Inclusive entry_date bounds.
            reference_type: Exact reference type.
            page: 1-based page number.
            page_size: Entries per page.

        Raises:
            ValueError: page or page_size below 1.
        """
        if page < 1 or page_size < 1:
            raise ValueError("page and page_size must be >= 1")

        conditions = [JournalEntry.tenant_id == tenant_id]
        if search:
            conditions.append(JournalEntry.description.ilike(f"%{search}%"))
        if date_from is not None:
            conditions.append(JournalEntry.entry_date >= date_from)
        if date_to is not None:
            conditions.append(JournalEntry.entry_date <= date_to)
        if reference_type is not None:
            conditions.append(
                JournalEntry.reference_type == getattr(reference_type, "value", reference_type)
            )

        total = self.session.execute(
            select(func.count()).select_from(JournalEntry).where(*conditions)
        ).scalar_one()

        entries = self.session.execute(
            select(JournalEntry)
            .options(selectinload(JournalEntry.lines))
            .where(*conditions)
            .order_by(JournalEntry.entry_date.desc(), JournalEntry.created_at.desc())
            .limit(page_size)
            .offset((page - 1) * page_size)
        ).scalars().all()

        return JournalPage(
            entries=tuple(JournalEntryRecord.from_model(entry) for entry in entries),
            total=total,
            page=page,
            page_size=page_size,
        )
