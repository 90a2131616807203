"""
Fixed Assets Domain Models.

The nouns of fixed assets: lifecycle status, depreciation method, and the
read-side view of an asset.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class AssetStatus(str, Enum):
    """Asset lifecycle states."""
    ACTIVE = "active"
    SOLD = "sold"
    DISPOSED = "disposed"


class DepreciationMethod(str, Enum):
    """Supported depreciation methods."""
    STRAIGHT_LINE = "straight_line"


@dataclass(frozen=True)
class FixedAssetInfo:
    """A fixed asset and its depreciation state."""
    id: UUID
    tenant_id: UUID
    name: str
    asset_number: str
    purchase_date: date
    cost: Decimal
    salvage_value: Decimal
    useful_life_months: int
    depreciation_method: str
    status: str
    asset_account_id: UUID
    accumulated_depreciation_account_id: UUID
    depreciation_expense_account_id: UUID
    current_book_value: Decimal
    total_depreciated: Decimal
    last_depreciation_date: date | None = None
