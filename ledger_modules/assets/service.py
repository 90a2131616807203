"""
Fixed Assets Module Service (``ledger_modules.assets.service``).

Responsibility
--------------
Keeps the fixed asset register and runs the monthly straight-line
depreciation: one compound journal entry per run, one debit/credit line
pair per asset.

Architecture position
---------------------
**Modules layer** -- thin glue.  Pure arithmetic lives in ``helpers.py``,
journal persistence in ``ledger_kernel.services.journal_writer``.

Invariants enforced
-------------------
* Depreciation never takes an asset's book value below salvage value.
* Idempotency: an asset whose ``last_depreciation_date`` is on or after
  the first day of the run month is not a candidate.  Candidate rows are
  read ``FOR UPDATE`` where the database supports it, so concurrent runs
  serialize instead of double-posting.
* Asset state changes only after the journal entry is written.  A posting
  failure leaves every asset untouched.
* Flush-only: never commits.

Failure modes
-------------
* Kernel posting errors (``PeriodClosedError``, ``InvalidAccountError`` ...)
  propagate unchanged.
* ``InvalidAccountError`` on registering an asset against a foreign or
  placeholder account.
* ``FixedAssetNotFoundError`` on an unknown asset id.

Audit relevance
---------------
``depreciation_run_completed`` is logged with the asset count, the total
charge and the entry id.

Usage::

    scheduler = DepreciationScheduler(session)
    result = scheduler.run_monthly_depreciation(context, date(2024, 3, 31))
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import to_decimal
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import DepreciationRunResult, EntryDraft, LineSpec, TenantContext
from ledger_kernel.exceptions import FixedAssetNotFoundError, InvalidAccountError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import ReferenceType
from ledger_kernel.services.journal_writer import JournalWriter
from ledger_modules.assets.helpers import month_start, monthly_depreciation
from ledger_modules.assets.models import AssetStatus, DepreciationMethod, FixedAssetInfo
from ledger_modules.assets.orm import FixedAsset

logger = get_logger("modules.assets.service")

ZERO = Decimal("0")


class DepreciationScheduler:
    """
    Fixed asset register and monthly depreciation run.

    Contract
    --------
    * ``run_monthly_depreciation`` returns ``count == 0`` and no entry when
      nothing is due, including a second run in the same month.
    * ``count_pending`` answers the consistency auditor's
      pending-depreciation question with the same candidate rule.
    """

    def __init__(
        self,
        session: Session,
        writer: JournalWriter | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._writer = writer or JournalWriter(session)
        self._clock = clock or SystemClock()

    # =========================================================================
    # Register
    # =========================================================================

    def register_asset(
        self,
        context: TenantContext,
        name: str,
        asset_number: str,
        purchase_date: date,
        cost: Decimal,
        useful_life_months: int,
        asset_account_id: UUID,
        accumulated_depreciation_account_id: UUID,
        depreciation_expense_account_id: UUID,
        salvage_value: Decimal = ZERO,
    ) -> FixedAssetInfo:
        """
        Add an active asset; its book value starts at cost.  Cost and salvage
        value are rounded to the base currency.

        Raises:
            ValueError: Non-positive cost or life, or salvage outside [0, cost].
            InvalidAccountError: An account is unknown, foreign or a placeholder.
        """
        cost = context.round(to_decimal(cost))
        salvage_value = context.round(to_decimal(salvage_value))
        if cost <= ZERO:
            raise ValueError("cost must be positive")
        if useful_life_months <= 0:
            raise ValueError("useful_life_months must be positive")
        if salvage_value < ZERO or salvage_value > cost:
            raise ValueError("salvage_value must be between 0 and cost")

        for account_id in (
            asset_account_id,
            accumulated_depreciation_account_id,
            depreciation_expense_account_id,
        ):
            self._require_postable_account(context.tenant_id, account_id)

        asset = FixedAsset(
            tenant_id=context.tenant_id,
            name=name,
            asset_number=asset_number,
            purchase_date=purchase_date,
            cost=cost,
            salvage_value=salvage_value,
            useful_life_months=useful_life_months,
            depreciation_method=DepreciationMethod.STRAIGHT_LINE.value,
            status=AssetStatus.ACTIVE.value,
            asset_account_id=asset_account_id,
            accumulated_depreciation_account_id=accumulated_depreciation_account_id,
            depreciation_expense_account_id=depreciation_expense_account_id,
            current_book_value=cost,
            total_depreciated=ZERO,
            created_by=context.actor,
        )
        self._session.add(asset)
        self._session.flush()

        logger.info("fixed_asset_registered", extra={
            "asset_id": str(asset.id),
            "asset_number": asset_number,
            "cost": str(cost),
            "useful_life_months": useful_life_months,
        })
        return asset.to_dto()

    def retire_asset(
        self,
        context: TenantContext,
        asset_id: UUID,
        status: AssetStatus | str = AssetStatus.DISPOSED,
    ) -> FixedAssetInfo:
        """
        Take an asset out of service (``sold`` or ``disposed``).

        Raises:
            FixedAssetNotFoundError: Unknown asset.
            ValueError: status is ``active`` or the asset is already retired.
        """
        status = AssetStatus(status)
        if status == AssetStatus.ACTIVE:
            raise ValueError("retirement status must be sold or disposed")

        asset = self._get_asset_orm(context.tenant_id, asset_id)
        if not asset.is_active:
            raise ValueError(f"asset {asset.asset_number} is already {asset.status}")

        asset.status = status.value
        self._session.flush()

        logger.info("fixed_asset_retired", extra={
            "asset_id": str(asset_id),
            "status": status.value,
        })
        return asset.to_dto()

    def get_asset(self, tenant_id: UUID, asset_id: UUID) -> FixedAssetInfo:
        return self._get_asset_orm(tenant_id, asset_id).to_dto()

    def list_assets(self, tenant_id: UUID) -> list[FixedAssetInfo]:
        assets = self._session.execute(
            select(FixedAsset)
            .where(FixedAsset.tenant_id == tenant_id)
            .order_by(FixedAsset.purchase_date.desc())
        ).scalars()
        return [asset.to_dto() for asset in assets]

    # =========================================================================
    # Depreciation
    # =========================================================================

    def calculate_monthly_depreciation(self, asset: FixedAsset | FixedAssetInfo) -> Decimal:
        """Unrounded charge for one month; zero for inactive assets."""
        if AssetStatus(asset.status) != AssetStatus.ACTIVE:
            return ZERO
        return monthly_depreciation(
            asset.cost,
            asset.salvage_value,
            asset.useful_life_months,
            asset.current_book_value,
        )

    def run_monthly_depreciation(
        self,
        context: TenantContext,
        as_of_date: date | None = None,
    ) -> DepreciationRunResult:
        """
        Depreciate every due asset in one compound entry dated ``as_of_date``.

        Postconditions:
            - For each depreciated asset: book value down by the charge,
              total_depreciated up by it, last_depreciation_date = as_of_date.
        """
        as_of_date = as_of_date or self._clock.today()
        run_month = month_start(as_of_date)

        with LogContext.bind(tenant_id=context.tenant_id, actor=context.actor):
            candidates = self._session.execute(
                self._due_assets_query(context.tenant_id, run_month, as_of_date)
                .order_by(FixedAsset.asset_number)
                .with_for_update()
            ).scalars().all()

            charges: list[tuple[FixedAsset, Decimal]] = []
            lines: list[LineSpec] = []
            for asset in candidates:
                amount = min(
                    context.round(self.calculate_monthly_depreciation(asset)),
                    asset.current_book_value - asset.salvage_value,
                )
                if amount <= context.tolerance:
                    continue
                note = f"Depreciation: {asset.name} ({asset.asset_number})"
                lines.append(LineSpec.debit_line(asset.depreciation_expense_account_id, amount, note=note))
                lines.append(LineSpec.credit_line(asset.accumulated_depreciation_account_id, amount, note=note))
                charges.append((asset, amount))

            if not charges:
                logger.info("depreciation_run_nothing_due", extra={
                    "as_of_date": str(as_of_date),
                    "candidates": len(candidates),
                })
                return DepreciationRunResult(count=0, total_amount=ZERO)

            total = sum((amount for _, amount in charges), ZERO)
            entry_id = self._writer.post(
                context,
                EntryDraft(
                    entry_date=as_of_date,
                    description=f"Monthly depreciation run - {as_of_date:%B %Y}",
                    reference_type=ReferenceType.DEPRECIATION.value,
                    reference_id=run_month.isoformat(),
                    lines=tuple(lines),
                ),
            )

            for asset, amount in charges:
                asset.current_book_value = asset.current_book_value - amount
                asset.total_depreciated = asset.total_depreciated + amount
                asset.last_depreciation_date = as_of_date
            self._session.flush()

            logger.info("depreciation_run_completed", extra={
                "as_of_date": str(as_of_date),
                "asset_count": len(charges),
                "total_amount": str(total),
                "entry_id": str(entry_id),
            })
        return DepreciationRunResult(count=len(charges), total_amount=total, entry_id=entry_id)

    def count_pending(self, tenant_id: UUID, month_start_date: date) -> int:
        """Active assets with no depreciation since ``month_start_date``."""
        return self._session.execute(
            select(func.count()).select_from(
                self._due_assets_query(tenant_id, month_start_date).subquery()
            )
        ).scalar_one()

    # =========================================================================
    # Internals
    # =========================================================================

    def _due_assets_query(self, tenant_id: UUID, run_month: date, as_of_date: date | None = None):
        query = select(FixedAsset).where(
            FixedAsset.tenant_id == tenant_id,
            FixedAsset.status == AssetStatus.ACTIVE.value,
            or_(
                FixedAsset.last_depreciation_date.is_(None),
                FixedAsset.last_depreciation_date < run_month,
            ),
        )
        if as_of_date is not None:
            query = query.where(FixedAsset.purchase_date <= as_of_date)
        return query

    def _get_asset_orm(self, tenant_id: UUID, asset_id: UUID) -> FixedAsset:
        asset = self._session.get(FixedAsset, asset_id)
        if asset is None or asset.tenant_id != tenant_id:
            raise FixedAssetNotFoundError(str(asset_id))
        return asset

    def _require_postable_account(self, tenant_id: UUID, account_id: UUID) -> None:
        account = self._session.get(Account, account_id)
        if account is None or account.tenant_id != tenant_id:
            raise InvalidAccountError(str(account_id), "account not found in tenant")
        if account.is_placeholder:
            raise InvalidAccountError(str(account_id), "placeholder accounts cannot receive postings")
