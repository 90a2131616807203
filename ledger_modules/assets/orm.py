"""
Fixed Assets ORM Models (``ledger_modules.assets.orm``).

Responsibility
--------------
SQLAlchemy persistence for the fixed asset register: cost, salvage value,
useful life, the three accounts an asset posts to, and the running
depreciation state.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``ledger_kernel.db.base``.
MUST NOT be imported by ``ledger_kernel``.

Invariants enforced
-------------------
* ``current_book_value >= salvage_value`` at all times.
* ``total_depreciated + current_book_value == cost``.
* Only ``DepreciationScheduler`` moves the depreciation state.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TenantScoped, TrackedBase, UUIDString
from ledger_modules.assets.models import AssetStatus, DepreciationMethod, FixedAssetInfo


class FixedAsset(TenantScoped, TrackedBase):
    """
    ORM model for a fixed asset.

    Table: ``fixed_assets``
    """

    __tablename__ = "fixed_assets"

    __table_args__ = (
        UniqueConstraint("tenant_id", "asset_number", name="uq_fixed_asset_number"),
        Index("idx_fixed_asset_tenant_status", "tenant_id", "status"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    asset_number: Mapped[str] = mapped_column(String(100), nullable=False)
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)

    cost: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    salvage_value: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0"),
    )
    useful_life_months: Mapped[int] = mapped_column(Integer, nullable=False)
    depreciation_method: Mapped[str] = mapped_column(
        String(30), nullable=False, default=DepreciationMethod.STRAIGHT_LINE.value,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AssetStatus.ACTIVE.value,
    )

    asset_account_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("accounts.id"), nullable=False,
    )
    accumulated_depreciation_account_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("accounts.id"), nullable=False,
    )
    depreciation_expense_account_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("accounts.id"), nullable=False,
    )

    current_book_value: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    total_depreciated: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0"),
    )
    last_depreciation_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    @property
    def is_active(self) -> bool:
        return AssetStatus(self.status) == AssetStatus.ACTIVE

    def __repr__(self) -> str:
        return (
            f"<FixedAsset(asset_number={self.asset_number!r}, "
            f"book_value={self.current_book_value}, status={self.status!r})>"
        )

    def to_dto(self) -> FixedAssetInfo:
        return FixedAssetInfo(
            id=self.id,
            tenant_id=self.tenant_id,
            name=self.name,
            asset_number=self.asset_number,
            purchase_date=self.purchase_date,
            cost=self.cost,
            salvage_value=self.salvage_value,
            useful_life_months=self.useful_life_months,
            depreciation_method=self.depreciation_method,
            status=self.status,
            asset_account_id=self.asset_account_id,
            accumulated_depreciation_account_id=self.accumulated_depreciation_account_id,
            depreciation_expense_account_id=self.depreciation_expense_account_id,
            current_book_value=self.current_book_value,
            total_depreciated=self.total_depreciated,
            last_depreciation_date=self.last_depreciation_date,
        )
