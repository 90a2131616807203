"""
FX Revaluation Module (``ledger_modules.fx``).

Restates foreign-currency account balances in the base currency at a new
exchange rate and posts the unrealized gain or loss.
"""

from ledger_modules.fx.service import FXRevaluationEngine

__all__ = ["FXRevaluationEngine"]
