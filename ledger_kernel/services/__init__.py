"""Services for the ledger kernel (write side)."""

from ledger_kernel.services.account_mapping import AccountMappingResolver
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.consistency_auditor import ConsistencyAuditor, PendingDepreciation
from ledger_kernel.services.event_dispatch import LedgerEvent, LedgerEventDispatcher
from ledger_kernel.services.journal_writer import JournalWriter
from ledger_kernel.services.period_service import PeriodService
from ledger_kernel.services.tenant_service import TenantService

__all__ = [
    "AccountMappingResolver",
    "AccountService",
    "ConsistencyAuditor",
    "JournalWriter",
    "LedgerEvent",
    "LedgerEventDispatcher",
    "PendingDepreciation",
    "PeriodService",
    "TenantService",
]
