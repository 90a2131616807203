"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for journal entries and journal lines -- the
    single source of financial truth in this system.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Balance: total_debit equals total_credit within the currency tolerance
      (checked by JournalWriter before any write; is_balanced is the
      read-side convenience).
    - Line shape: debit >= 0, credit >= 0, exactly one of them non-zero
      (checked by JournalWriter).
    - Immutability: ORM listeners in db/immutability.py reject UPDATE and
      DELETE of flushed entries and lines.  Corrections are new entries.

Failure modes:
    - ImmutabilityViolationError on UPDATE/DELETE of an entry or line.

Audit relevance:
    JournalEntry and JournalLine rows are the authoritative financial record.
    Every audit and reporting query ultimately derives from these rows.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TenantScoped, TrackedBase, UUIDString

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account


class ReferenceType(str, Enum):
    """Business event that produced a journal entry."""

    MANUAL_JOURNAL = "manual_journal"
    SALE = "sale"
    PURCHASE = "purchase"
    EXPENSE = "expense"
    INCOME = "income"
    PAYROLL = "payroll"
    DEPRECIATION = "depreciation"
    REVALUATION = "revaluation"
    ADJUSTMENT = "adjustment"
    TAX_RETURN = "tax_return"
    CLOSING_ENTRY = "closing_entry"
    INVENTORY_ADJUSTMENT = "inventory_adjustment"


class JournalEntry(TenantScoped, TrackedBase):
    """
    Header of a balanced, immutable journal entry.

    Contract:
        total_debit and total_credit are the sums of the lines, recorded at
        posting time.  created_by is the actor that posted the entry.

    Guarantees:
        - An entry always has at least one line.
        - No update path exists once flushed.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        Index("idx_journal_tenant_date", "tenant_id", "entry_date"),
        Index("idx_journal_tenant_reference", "tenant_id", "reference_type"),
    )

    entry_date: Mapped[date] = mapped_column(Date, nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False)

    reference_type: Mapped[ReferenceType] = mapped_column(String(40), nullable=False)

    # Id of the business document that produced the entry (invoice, asset run...)
    reference_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    total_debit: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    total_credit: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="JournalLine.line_seq",
    )

    def __repr__(self) -> str:
        return f"<JournalEntry {self.id} {self.entry_date} {self.reference_type}>"

    @property
    def is_balanced(self) -> bool:
        """Check the recorded header totals against each other."""
        return self.total_debit == self.total_credit

    def line_totals(self) -> tuple[Decimal, Decimal]:
        """Recompute (debits, credits) from the loaded lines."""
        debits = sum((line.debit for line in self.lines), Decimal("0"))
        credits = sum((line.credit for line in self.lines), Decimal("0"))
        return debits, credits


class JournalLine(TenantScoped, TrackedBase):
    """
    Individual debit or credit line within a journal entry.

    Contract:
        Each line belongs to exactly one JournalEntry, references exactly one
        non-placeholder Account of the same tenant, and carries a
        non-negative amount on exactly one side.

    Guarantees:
        - amount_currency, when set, is the amount in the account's own
          currency, on the same side as the base amount.
    """

    __tablename__ = "journal_lines"

    __table_args__ = (
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    debit: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False, default=Decimal("0"))

    credit: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False, default=Decimal("0"))

    # Foreign-currency amount for accounts not held in the base currency
    amount_currency: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    note: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Line sequence within entry (for deterministic ordering)
    line_seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")

    account: Mapped["Account"] = relationship(back_populates="journal_lines")

    def __repr__(self) -> str:
        return f"<JournalLine Dr {self.debit} Cr {self.credit}>"

    @property
    def is_debit(self) -> bool:
        return self.debit > 0

    @property
    def signed_amount(self) -> Decimal:
        """Debit-minus-credit in the base currency."""
        return self.debit - self.credit
