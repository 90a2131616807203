"""
Pure domain layer.

Immutable DTOs, the currency registry and the clock abstraction, with no
dependency on the ORM or the database.
"""

from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from ledger_kernel.domain.dtos import (
    AccountBalance,
    AccountInfo,
    AuditIssue,
    AuditReport,
    AuditSeverity,
    ChartAccountSpec,
    ChartTemplate,
    DepreciationRunResult,
    EntryDraft,
    FiscalYearInfo,
    JournalEntryRecord,
    JournalLineRecord,
    LineSpec,
    RevaluationCalculation,
    RoleBinding,
    TenantContext,
)

__all__ = [
    "AccountBalance",
    "AccountInfo",
    "AuditIssue",
    "AuditReport",
    "AuditSeverity",
    "ChartAccountSpec",
    "ChartTemplate",
    "Clock",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DepreciationRunResult",
    "DeterministicClock",
    "EntryDraft",
    "FiscalYearInfo",
    "JournalEntryRecord",
    "JournalLineRecord",
    "LineSpec",
    "RevaluationCalculation",
    "RoleBinding",
    "SystemClock",
    "TenantContext",
]
