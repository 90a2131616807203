"""
Fixed Assets Module (``ledger_modules.assets``).

Fixed asset register and monthly straight-line depreciation.  The
scheduler doubles as the consistency auditor's pending-depreciation source.
"""

from ledger_modules.assets.models import AssetStatus, DepreciationMethod, FixedAssetInfo
from ledger_modules.assets.orm import FixedAsset
from ledger_modules.assets.service import DepreciationScheduler

__all__ = [
    "AssetStatus",
    "DepreciationMethod",
    "DepreciationScheduler",
    "FixedAsset",
    "FixedAssetInfo",
]
