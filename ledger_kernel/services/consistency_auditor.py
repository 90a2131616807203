"""
ConsistencyAuditor -- read-only health score of a tenant's ledger.

Responsibility:
    Walks ledger, mapping, inventory, fiscal year and fixed-asset state and
    reports integrity problems as scored issues.  Runs on demand, after the
    fact, over the same storage the posting engine writes.

Architecture position:
    Kernel > Services, but read-only: it never adds, flushes or deletes.
    Inventory levels and pending depreciation come in through protocols so
    the kernel stays independent of the modules that own that data.

Invariants enforced:
    Scoring is a deterministic deduction from 100, clamped to [0, 100]:

        1. trial balance |debit - credit| >= 0.1        -40   critical
        2. AccountMap absent                             -20   warning
           else each missing critical role               -5    warning (one per role)
        3. any negative stock level                      -10   warning
        4. each unbalanced entry in the recent window    -10   critical
        5. no fiscal year covering today                 -10   warning
        6. active assets not depreciated this month      -5    info

    Checks run independently and deductions accumulate.

Failure modes:
    - Data-quality problems never raise; they become issues.
    - MissingTenantContextError, TenantNotFoundError and storage errors are
      the only exceptions.

Audit relevance:
    audit_completed is logged with the score and the issue codes.
"""

from datetime import date
from decimal import Decimal
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.currency import CurrencyRegistry
from ledger_kernel.domain.dtos import AuditIssue, AuditReport, AuditSeverity
from ledger_kernel.exceptions import TenantNotFoundError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account_map import CRITICAL_ROLES
from ledger_kernel.models.fiscal_year import FiscalYear
from ledger_kernel.models.journal import JournalEntry, JournalLine
from ledger_kernel.models.tenant import Tenant
from ledger_kernel.selectors.balance_projection import (
    BalanceProjection,
    select_balance_projection,
)
from ledger_kernel.selectors.inventory import InventoryLevels, StockLevelSelector
from ledger_kernel.services.account_mapping import AccountMappingResolver
from ledger_kernel.services.base import require_tenant

logger = get_logger("services.consistency_auditor")

PERFECT_SCORE = 100
UNBALANCED_TRIAL_BALANCE_PENALTY = 40
MISSING_ACCOUNT_MAP_PENALTY = 20
MISSING_ROLE_PENALTY = 5
NEGATIVE_INVENTORY_PENALTY = 10
UNBALANCED_ENTRY_PENALTY = 10
NO_CURRENT_FISCAL_YEAR_PENALTY = 10
PENDING_DEPRECIATION_PENALTY = 5


@runtime_checkable
class PendingDepreciation(Protocol):
    """Counts active assets with no depreciation since month_start."""

    def count_pending(self, tenant_id: UUID, month_start: date) -> int:
        ...


class ConsistencyAuditor:
    """
    Runs the six ledger health checks for one tenant.

    Contract:
        run_audit() is read-only and deterministic for a fixed snapshot and
        clock.  pending_depreciation is required; the fixed asset register
        lives outside the kernel.

    Usage:
        auditor = ConsistencyAuditor(session, pending_depreciation=scheduler, clock=clock)
        report = auditor.run_audit(tenant_id)
    """

    def __init__(
        self,
        session: Session,
        *,
        pending_depreciation: PendingDepreciation,
        clock: Clock | None = None,
        resolver: AccountMappingResolver | None = None,
        projection: BalanceProjection | None = None,
        inventory: InventoryLevels | None = None,
        audit_entry_window: int | None = 50,
        trial_balance_tolerance: Decimal = Decimal("0.1"),
    ):
        self.session = session
        self._clock = clock or SystemClock()
        self._resolver = resolver or AccountMappingResolver(session)
        self._projection = projection
        self._inventory = inventory or StockLevelSelector(session)
        self._pending_depreciation = pending_depreciation
        self._entry_window = audit_entry_window
        self._trial_balance_tolerance = trial_balance_tolerance

    def run_audit(self, tenant_id: UUID | None) -> AuditReport:
        """
        Score the tenant's ledger.

        Raises:
            MissingTenantContextError: tenant_id is None.
            TenantNotFoundError: Unknown tenant.
        """
        tenant_id = require_tenant(tenant_id, "run_audit")
        tenant = self.session.get(Tenant, tenant_id)
        if tenant is None:
            raise TenantNotFoundError(str(tenant_id))

        with LogContext.bind(tenant_id=tenant_id):
            issues: list[AuditIssue] = []
            deductions = 0

            total_debit, total_credit, is_balanced, penalty = self._check_trial_balance(
                tenant_id, issues
            )
            deductions += penalty
            deductions += self._check_account_map(tenant_id, issues)
            deductions += self._check_negative_inventory(tenant_id, issues)
            deductions += self._check_unbalanced_entries(tenant, issues)
            deductions += self._check_current_fiscal_year(tenant_id, issues)
            deductions += self._check_pending_depreciation(tenant_id, issues)

            score = max(0, min(PERFECT_SCORE, PERFECT_SCORE - deductions))
            report = AuditReport(
                tenant_id=tenant_id,
                score=score,
                is_balanced=is_balanced,
                total_debit=total_debit,
                total_credit=total_credit,
                checked_at=self._clock.now(),
                issues=tuple(issues),
            )

            logger.info(
                "audit_completed",
                extra={
                    "score": score,
                    "is_balanced": is_balanced,
                    "issue_codes": report.issue_codes(),
                },
            )
        return report

    # ------------------------------------------------------------------
    # Checks.  Each appends its issues and returns its deduction.
    # ------------------------------------------------------------------

    def _check_trial_balance(
        self, tenant_id: UUID, issues: list[AuditIssue]
    ) -> tuple[Decimal, Decimal, bool, int]:
        projection = self._projection or select_balance_projection(self.session)
        total_debit, total_credit = projection.trial_balance_totals(tenant_id)
        is_balanced = abs(total_debit - total_credit) < self._trial_balance_tolerance
        if is_balanced:
            return total_debit, total_credit, True, 0

        issues.append(
            AuditIssue(
                code="unbalanced-trial-balance",
                severity=AuditSeverity.CRITICAL,
                title="Trial balance is not balanced",
                description=(
                    f"Total debits ({total_debit}) do not equal total credits ({total_credit})."
                ),
                action_label="Review journal entries",
                action_path="/accounting/journal",
            )
        )
        return total_debit, total_credit, False, UNBALANCED_TRIAL_BALANCE_PENALTY

    def _check_account_map(self, tenant_id: UUID, issues: list[AuditIssue]) -> int:
        if not self._resolver.has_map(tenant_id):
            issues.append(
                AuditIssue(
                    code="account-map-missing",
                    severity=AuditSeverity.WARNING,
                    title="Account mapping is not configured",
                    description="No default accounts are mapped; automatic postings will fail.",
                    action_label="Settings",
                    action_path="/settings/accounts",
                )
            )
            return MISSING_ACCOUNT_MAP_PENALTY

        missing = self._resolver.missing_roles(tenant_id, CRITICAL_ROLES)
        for role in missing:
            issues.append(
                AuditIssue(
                    code=f"missing-mapping:{role.value}",
                    severity=AuditSeverity.WARNING,
                    title="Default account not mapped",
                    description=f"The '{role.value}' role has no account.",
                    action_label="Settings",
                    action_path="/settings/accounts",
                )
            )
        return MISSING_ROLE_PENALTY * len(missing)

    def _check_negative_inventory(self, tenant_id: UUID, issues: list[AuditIssue]) -> int:
        count = self._inventory.count_negative(tenant_id)
        if count == 0:
            return 0
        issues.append(
            AuditIssue(
                code="negative-inventory",
                severity=AuditSeverity.WARNING,
                title="Negative inventory",
                description=f"{count} products have a stock level below zero.",
                count=count,
                action_label="Inventory",
                action_path="/inventory",
            )
        )
        return NEGATIVE_INVENTORY_PENALTY

    def _check_unbalanced_entries(self, tenant: Tenant, issues: list[AuditIssue]) -> int:
        """Recompute each recent entry's totals from its lines."""
        recent = (
            select(JournalEntry.id)
            .where(JournalEntry.tenant_id == tenant.id, JournalEntry.total_debit != ZERO)
            .order_by(JournalEntry.created_at.desc(), JournalEntry.entry_date.desc())
        )
        if self._entry_window is not None:
            recent = recent.limit(self._entry_window)
        recent = recent.subquery()

        rows = self.session.execute(
            select(
                JournalLine.journal_entry_id,
                func.coalesce(func.sum(JournalLine.debit), ZERO),
                func.coalesce(func.sum(JournalLine.credit), ZERO),
            )
            .where(JournalLine.journal_entry_id.in_(select(recent.c.id)))
            .group_by(JournalLine.journal_entry_id)
        ).all()

        tolerance = CurrencyRegistry.get_balance_tolerance(tenant.base_currency)
        unbalanced = [
            entry_id for entry_id, debit, credit in rows if abs(debit - credit) > tolerance
        ]
        if not unbalanced:
            return 0

        scope = "recent" if self._entry_window is not None else "all"
        issues.append(
            AuditIssue(
                code="unbalanced-journal",
                severity=AuditSeverity.CRITICAL,
                title="Unbalanced journal entries",
                description=f"{len(unbalanced)} of the {scope} journal entries are unbalanced.",
                count=len(unbalanced),
                action_label="Journal entries",
                action_path="/accounting/journal",
            )
        )
        return UNBALANCED_ENTRY_PENALTY * len(unbalanced)

    def _check_current_fiscal_year(self, tenant_id: UUID, issues: list[AuditIssue]) -> int:
        today = self._clock.today()
        current = self.session.execute(
            select(func.count())
            .select_from(FiscalYear)
            .where(
                FiscalYear.tenant_id == tenant_id,
                FiscalYear.start_date <= today,
                FiscalYear.end_date >= today,
            )
        ).scalar_one()
        if current:
            return 0
        issues.append(
            AuditIssue(
                code="no-current-fiscal-year",
                severity=AuditSeverity.WARNING,
                title="No current fiscal year",
                description=f"No fiscal year covers {today.isoformat()}.",
                action_label="Fiscal years",
                action_path="/accounting/fiscal-years",
            )
        )
        return NO_CURRENT_FISCAL_YEAR_PENALTY

    def _check_pending_depreciation(self, tenant_id: UUID, issues: list[AuditIssue]) -> int:
        month_start = self._clock.today().replace(day=1)
        count = self._pending_depreciation.count_pending(tenant_id, month_start)
        if count == 0:
            return 0
        issues.append(
            AuditIssue(
                code="pending-depreciation",
                severity=AuditSeverity.INFO,
                title="Depreciation not run this month",
                description=f"{count} active assets have not been depreciated this month.",
                count=count,
                action_label="Fixed assets",
                action_path="/accounting/fixed-assets",
            )
        )
        return PENDING_DEPRECIATION_PENALTY
