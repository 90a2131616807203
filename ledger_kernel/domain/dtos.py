"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that cross the service boundary:
    TenantContext (who is acting, for which tenant), LineSpec and EntryDraft
    (posting input), JournalEntryRecord (read side), RoleBinding (account
    mapping result), and the result objects of the depreciation run, FX
    revaluation and consistency audit.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods exist as boundary converters but are only
    invoked from the service and selector layers.

Invariants enforced:
    - Monetary fields are Decimal.  Floats are refused on construction.
    - Line shape and balance are NOT validated here; JournalWriter validates
      them in a fixed order so callers get the specific error.

Data flow:
    EntryDraft -> JournalWriter.post -> JournalEntry (ORM) -> JournalEntryRecord
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from ledger_kernel.db.types import ZERO, to_decimal
from ledger_kernel.domain.currency import CurrencyRegistry
from ledger_kernel.exceptions import MissingMappingError

if TYPE_CHECKING:
    from ledger_kernel.models.account_map import AccountRole
    from ledger_kernel.models.journal import JournalEntry as JournalEntryModel


@dataclass(frozen=True)
class TenantContext:
    """
    The acting user and tenant, passed explicitly into every operation.

    Contract:
        actor is the opaque identifier handed over by the identity provider.
        It ends up in created_by / closed_by columns and is never parsed.
    """

    tenant_id: UUID
    actor: str
    base_currency: str

    @property
    def tolerance(self) -> Decimal:
        """"Effectively zero" threshold: one minor unit of the base currency."""
        return CurrencyRegistry.get_rounding_tolerance(self.base_currency)

    @property
    def balance_tolerance(self) -> Decimal:
        """Per-entry debit/credit tolerance, never above 0.01."""
        return CurrencyRegistry.get_balance_tolerance(self.base_currency)

    def round(self, amount: Decimal) -> Decimal:
        return CurrencyRegistry.quantize(amount, self.base_currency)


@dataclass(frozen=True)
class LineSpec:
    """
    Specification for one journal line.

    Contract:
        Exactly one of debit/credit should be non-zero; JournalWriter rejects
        the line otherwise.  amount_currency is the amount in the account's
        own currency for foreign-currency accounts.
    """

    account_id: UUID
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    note: str | None = None
    amount_currency: Decimal | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "debit", to_decimal(self.debit))
        object.__setattr__(self, "credit", to_decimal(self.credit))
        if self.amount_currency is not None:
            object.__setattr__(self, "amount_currency", to_decimal(self.amount_currency))

    @classmethod
    def debit_line(
        cls,
        account_id: UUID,
        amount: Decimal,
        note: str | None = None,
        amount_currency: Decimal | None = None,
    ) -> LineSpec:
        return cls(account_id=account_id, debit=amount, note=note, amount_currency=amount_currency)

    @classmethod
    def credit_line(
        cls,
        account_id: UUID,
        amount: Decimal,
        note: str | None = None,
        amount_currency: Decimal | None = None,
    ) -> LineSpec:
        return cls(account_id=account_id, credit=amount, note=note, amount_currency=amount_currency)


@dataclass(frozen=True)
class EntryDraft:
    """
    A journal entry as proposed by a caller, before validation.

    Guarantees:
        - lines is a tuple (order is preserved as line_seq).
    """

    entry_date: date
    description: str
    reference_type: str
    lines: tuple[LineSpec, ...]
    reference_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))
        object.__setattr__(
            self, "reference_type", getattr(self.reference_type, "value", self.reference_type)
        )

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)


@dataclass(frozen=True)
class JournalLineRecord:
    """Read-side view of a posted journal line."""

    id: UUID
    account_id: UUID
    debit: Decimal
    credit: Decimal
    note: str | None
    line_seq: int
    amount_currency: Decimal | None = None


@dataclass(frozen=True)
class JournalEntryRecord:
    """
    A posted journal entry with its lines.

    Non-goals:
        - Does NOT re-validate balance (validated at posting time).
    """

    id: UUID
    tenant_id: UUID
    entry_date: date
    description: str
    reference_type: str
    reference_id: str | None
    created_by: str | None
    created_at: datetime | None
    total_debit: Decimal
    total_credit: Decimal
    lines: tuple[JournalLineRecord, ...]

    @classmethod
    def from_model(cls, model: JournalEntryModel) -> JournalEntryRecord:
        lines = tuple(
            JournalLineRecord(
                id=line.id,
                account_id=line.account_id,
                debit=line.debit,
                credit=line.credit,
                note=line.note,
                line_seq=line.line_seq,
                amount_currency=line.amount_currency,
            )
            for line in sorted(model.lines, key=lambda x: x.line_seq)
        )
        return cls(
            id=model.id,
            tenant_id=model.tenant_id,
            entry_date=model.entry_date,
            description=model.description,
            reference_type=getattr(model.reference_type, "value", model.reference_type),
            reference_id=model.reference_id,
            created_by=model.created_by,
            created_at=model.created_at,
            total_debit=model.total_debit,
            total_credit=model.total_credit,
            lines=lines,
        )


@dataclass(frozen=True)
class RoleBinding:
    """
    Result of looking up an account role: resolved or explicitly unresolved.

    Contract:
        An unresolved binding is a value, not an error.  Callers that cannot
        proceed without the account call require().
    """

    tenant_id: UUID
    role: AccountRole
    account_id: UUID | None

    @property
    def is_resolved(self) -> bool:
        return self.account_id is not None

    def require(self) -> UUID:
        """
        Raises:
            MissingMappingError: If the role is unresolved.
        """
        if self.account_id is None:
            raise MissingMappingError(str(self.tenant_id), self.role.value)
        return self.account_id


@dataclass(frozen=True)
class DepreciationRunResult:
    """Outcome of one monthly depreciation run."""

    count: int
    total_amount: Decimal
    entry_id: UUID | None = None


@dataclass(frozen=True)
class RevaluationCalculation:
    """
    Revaluation of one foreign-currency account at a new rate.

    Guarantees:
        - diff = target_base_balance - book_balance_base.
        - Balances are signed debit-minus-credit.
    """

    account_id: UUID
    currency: str
    rate: Decimal
    foreign_balance: Decimal
    book_balance_base: Decimal
    target_base_balance: Decimal
    diff: Decimal


class AuditSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class AuditIssue:
    """One finding of the consistency audit."""

    code: str
    severity: AuditSeverity
    title: str
    description: str
    count: int = 1
    action_label: str | None = None
    action_path: str | None = None


@dataclass(frozen=True)
class AuditReport:
    """
    Read-only health snapshot of a tenant's ledger.

    Guarantees:
        - 0 <= score <= 100.
        - issues are in check order.
    """

    tenant_id: UUID
    score: int
    is_balanced: bool
    total_debit: Decimal
    total_credit: Decimal
    checked_at: datetime
    issues: tuple[AuditIssue, ...] = field(default_factory=tuple)

    def issue_codes(self) -> list[str]:
        return [issue.code for issue in self.issues]


@dataclass(frozen=True)
class AccountBalance:
    """Aggregated debit/credit totals of one account."""

    account_id: UUID
    account_number: str
    name: str
    account_type: str
    total_debit: Decimal
    total_credit: Decimal

    @property
    def balance(self) -> Decimal:
        """Debit-minus-credit."""
        return self.total_debit - self.total_credit


@dataclass(frozen=True)
class AccountInfo:
    """Read-side view of a chart-of-accounts entry."""

    id: UUID
    tenant_id: UUID
    account_number: str
    name: str
    account_type: str
    currency: str
    is_placeholder: bool = False
    parent_id: UUID | None = None

    @classmethod
    def from_model(cls, model) -> AccountInfo:
        return cls(
            id=model.id,
            tenant_id=model.tenant_id,
            account_number=model.account_number,
            name=model.name,
            account_type=getattr(model.account_type, "value", model.account_type),
            currency=model.currency,
            is_placeholder=model.is_placeholder,
            parent_id=model.parent_id,
        )


@dataclass(frozen=True)
class FiscalYearInfo:
    """Read-side view of a fiscal year."""

    id: UUID
    tenant_id: UUID
    name: str
    start_date: date
    end_date: date
    status: str
    closed_at: datetime | None = None
    closed_by: str | None = None
    net_income: Decimal | None = None
    closing_entry_id: UUID | None = None

    @classmethod
    def from_model(cls, model) -> FiscalYearInfo:
        return cls(
            id=model.id,
            tenant_id=model.tenant_id,
            name=model.name,
            start_date=model.start_date,
            end_date=model.end_date,
            status=str(getattr(model.status, "value", model.status)),
            closed_at=model.closed_at,
            closed_by=model.closed_by,
            net_income=model.net_income,
            closing_entry_id=model.closing_entry_id,
        )

    def contains_date(self, check_date: date) -> bool:
        return self.start_date <= check_date <= self.end_date


@dataclass(frozen=True)
class ChartAccountSpec:
    """One account of a chart-of-accounts template."""

    account_number: str
    name: str
    account_type: str
    parent_number: str | None = None
    is_placeholder: bool = False
    currency: str | None = None


@dataclass(frozen=True)
class ChartTemplate:
    """
    A chart of accounts plus the role bindings to install with it.

    Contract:
        Parents appear before their children.  role_bindings maps an
        AccountRole value to an account_number of this template.
    """

    accounts: tuple[ChartAccountSpec, ...]
    role_bindings: dict[str, str] = field(default_factory=dict)
