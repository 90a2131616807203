"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every user-initiated posting must fail with the specific rule it broke, not
with a generic "save failed".  Callers therefore catch by TYPE and read
structured attributes; they never parse messages.

  1. Every error has a typed exception class.
  2. Every class has a CODE attribute (machine-readable, API-safe).
  3. Exceptions carry structured DATA (amounts, dates, roles, ids).

Example:
    try:
        writer.post(context, draft)
    except PeriodClosedError as e:
        show(f"{e.entry_date} falls in {e.fiscal_year_name} ({e.status})")
    except ImbalancedEntryError as e:
        show(f"Debits {e.total_debit} != credits {e.total_credit}")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerError (base)
    |
    +-- PostingError
    |   +-- ImbalancedEntryError
    |   +-- InvalidAccountError
    |   +-- InvalidJournalLineError
    |   +-- CompensationFailedError
    |
    +-- PeriodError
    |   +-- PeriodClosedError
    |   +-- FiscalYearOverlapError
    |   +-- InvalidPeriodTransitionError
    |
    +-- MappingError
    |   +-- MissingMappingError
    |
    +-- InsufficientDataError
    |
    +-- NotFoundError
    |   +-- TenantNotFoundError
    |   +-- AccountNotFoundError
    |   +-- EntryNotFoundError
    |   +-- FiscalYearNotFoundError
    |   +-- FixedAssetNotFoundError
    |
    +-- CurrencyError
    |   +-- InvalidCurrencyError
    |   +-- InvalidExchangeRateError
    |   +-- NotForeignCurrencyAccountError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- MissingTenantContextError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|----------------------------------------
Posting         | IMBALANCED_ENTRY              | |debits - credits| above tolerance
                | INVALID_ACCOUNT               | Unknown, foreign-tenant or placeholder account
                | INVALID_JOURNAL_LINE          | Negative amount, both/neither side set, no lines
                | COMPENSATION_FAILED           | Header rollback after a failed line insert failed
----------------|-------------------------------|----------------------------------------
Period          | PERIOD_CLOSED                 | Entry date inside a locked/closed fiscal year
                | FISCAL_YEAR_OVERLAP           | New year overlaps an existing one
                | INVALID_PERIOD_TRANSITION     | Backward or repeated lifecycle move
----------------|-------------------------------|----------------------------------------
Mapping         | MISSING_MAPPING               | Required role has no account
----------------|-------------------------------|----------------------------------------
Data            | INSUFFICIENT_DATA             | e.g. no retained-earnings account at close
----------------|-------------------------------|----------------------------------------
Lookup          | *_NOT_FOUND                   | Tenant/account/entry/year/asset missing
----------------|-------------------------------|----------------------------------------
Currency        | INVALID_CURRENCY              | Not a known ISO 4217 code
                | INVALID_EXCHANGE_RATE         | Rate is zero or negative
                | NOT_FOREIGN_CURRENCY_ACCOUNT  | Revaluing a base-currency account
----------------|-------------------------------|----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION        | Update/delete of a posted entry or closed year
----------------|-------------------------------|----------------------------------------
Context         | MISSING_TENANT_CONTEXT        | Operation invoked without a tenant

===============================================================================
PROPAGATION
===============================================================================

Validation errors (imbalance, closed period, invalid account, missing
mapping) are raised BEFORE any write, so callers never see partial effects
and nothing is retried automatically.  CompensationFailedError is fatal and
always surfaced.  The consistency auditor reports data-quality problems as
scored issues and raises only operational errors.
"""

from datetime import date
from decimal import Decimal


class LedgerError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_ERROR"


# Posting-related exceptions


class PostingError(LedgerError):
    """Base exception for posting errors."""

    code: str = "POSTING_ERROR"


class ImbalancedEntryError(PostingError):
    """Journal entry debits do not equal credits."""

    code: str = "IMBALANCED_ENTRY"

    def __init__(self, total_debit: Decimal, total_credit: Decimal, tolerance: Decimal):
        self.total_debit = str(total_debit)
        self.total_credit = str(total_credit)
        self.difference = str(total_debit - total_credit)
        self.tolerance = str(tolerance)
        super().__init__(
            f"Journal entry is not balanced: debits {total_debit} != "
            f"credits {total_credit} (difference {total_debit - total_credit})"
        )


class InvalidAccountError(PostingError):
    """Account cannot receive postings."""

    code: str = "INVALID_ACCOUNT"

    def __init__(self, account_id: str, reason: str):
        self.account_id = account_id
        self.reason = reason
        super().__init__(f"Invalid account {account_id}: {reason}")


class InvalidJournalLineError(PostingError):
    """Journal line shape is invalid."""

    code: str = "INVALID_JOURNAL_LINE"

    def __init__(self, line_index: int | None, reason: str):
        self.line_index = line_index
        self.reason = reason
        where = f"line {line_index}" if line_index is not None else "entry"
        super().__init__(f"Invalid journal {where}: {reason}")


class CompensationFailedError(PostingError):
    """
    Rolling back a partially written entry failed.

    The header may still be present in storage.  This is never swallowed.
    """

    code: str = "COMPENSATION_FAILED"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(
            f"Failed to roll back journal entry header {entry_id} "
            f"after line insertion failed"
        )


# Period-related exceptions


class PeriodError(LedgerError):
    """Base exception for fiscal period errors."""

    code: str = "PERIOD_ERROR"


class PeriodClosedError(PeriodError):
    """Posting date falls inside a locked or closed fiscal year."""

    code: str = "PERIOD_CLOSED"

    def __init__(self, entry_date: date, fiscal_year_name: str, status: str):
        self.entry_date = str(entry_date)
        self.fiscal_year_name = fiscal_year_name
        self.status = status
        super().__init__(
            f"Cannot post on {entry_date}: fiscal year '{fiscal_year_name}' is {status}"
        )


class FiscalYearOverlapError(PeriodError):
    """New fiscal year date range overlaps an existing year."""

    code: str = "FISCAL_YEAR_OVERLAP"

    def __init__(self, new_name: str, existing_name: str):
        self.new_name = new_name
        self.existing_name = existing_name
        super().__init__(
            f"Fiscal year '{new_name}' overlaps existing fiscal year '{existing_name}'"
        )


class InvalidPeriodTransitionError(PeriodError):
    """Requested lifecycle move is not allowed from the current status."""

    code: str = "INVALID_PERIOD_TRANSITION"

    def __init__(self, fiscal_year_name: str, current_status: str, requested_status: str):
        self.fiscal_year_name = fiscal_year_name
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Fiscal year '{fiscal_year_name}' cannot move from "
            f"{current_status} to {requested_status}"
        )


# Mapping-related exceptions


class MappingError(LedgerError):
    """Base exception for account mapping errors."""

    code: str = "MAPPING_ERROR"


class MissingMappingError(MappingError):
    """A required account role is not mapped for the tenant."""

    code: str = "MISSING_MAPPING"

    def __init__(self, tenant_id: str, role: str):
        self.tenant_id = tenant_id
        self.role = role
        super().__init__(
            f"Account role '{role}' is not mapped for tenant {tenant_id}"
        )


class InsufficientDataError(LedgerError):
    """The operation cannot proceed with the data available."""

    code: str = "INSUFFICIENT_DATA"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


# Lookup exceptions


class NotFoundError(LedgerError):
    """Base exception for lookup misses."""

    code: str = "NOT_FOUND"
    entity: str = "record"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} not found: {entity_id}")


class TenantNotFoundError(NotFoundError):
    code: str = "TENANT_NOT_FOUND"
    entity: str = "Tenant"


class AccountNotFoundError(NotFoundError):
    code: str = "ACCOUNT_NOT_FOUND"
    entity: str = "Account"


class EntryNotFoundError(NotFoundError):
    code: str = "ENTRY_NOT_FOUND"
    entity: str = "Journal entry"


class FiscalYearNotFoundError(NotFoundError):
    code: str = "FISCAL_YEAR_NOT_FOUND"
    entity: str = "Fiscal year"


class FixedAssetNotFoundError(NotFoundError):
    code: str = "FIXED_ASSET_NOT_FOUND"
    entity: str = "Fixed asset"


# Currency exceptions


class CurrencyError(LedgerError):
    """Base exception for currency errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    """Currency code is not a known ISO 4217 code."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: '{currency}'")


class InvalidExchangeRateError(CurrencyError):
    """Exchange rate is zero or negative."""

    code: str = "INVALID_EXCHANGE_RATE"

    def __init__(self, rate: Decimal):
        self.rate = str(rate)
        super().__init__(f"Exchange rate must be positive, got {rate}")


class NotForeignCurrencyAccountError(CurrencyError):
    """Revaluation requested for an account held in the base currency."""

    code: str = "NOT_FOREIGN_CURRENCY_ACCOUNT"

    def __init__(self, account_id: str, currency: str):
        self.account_id = account_id
        self.currency = currency
        super().__init__(
            f"Account {account_id} is held in the base currency {currency}"
        )


# Immutability exceptions


class ImmutabilityError(LedgerError):
    """Base exception for immutability errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an immutable record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )


class MissingTenantContextError(LedgerError):
    """Operation invoked without an active tenant."""

    code: str = "MISSING_TENANT_CONTEXT"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"No active tenant for {operation}")
