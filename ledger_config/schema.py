"""
Ledger settings schema.

The process-wide settings are a frozen dataclass.  YAML files are parsed
into it by ``ledger_config.loader``; the kernel never sees this type and
receives individual values through ``ledger_config.bridges``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

DEFAULT_DATABASE_URL = "sqlite:///ledger.db"


@dataclass(frozen=True)
class LedgerSettings:
    """Deployment settings for the ledger."""

    database_url: str = DEFAULT_DATABASE_URL
    default_base_currency: str = "USD"
    trial_balance_tolerance: Decimal = Decimal("0.1")
    # None audits every entry instead of the most recent window
    audit_entry_window: int | None = 50
    retained_earnings_name_fallback: bool = False
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.trial_balance_tolerance < 0:
            raise ValueError("trial_balance_tolerance must not be negative")
        if self.audit_entry_window is not None and self.audit_entry_window < 1:
            raise ValueError("audit_entry_window must be positive or null")
