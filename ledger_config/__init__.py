"""
ledger_config -- deployment settings and the default chart of accounts.

Responsibility:
    Owns the process-wide ``LedgerSettings`` through
    ``get_active_settings()`` / ``set_active_settings()``.  Nothing else
    reads settings files or ``LEDGER_*`` environment variables.

Architecture position:
    Configuration -- sits above ``ledger_kernel``.  The kernel MUST NEVER
    import from ``ledger_config``; ``bridges`` hands it plain values.

Failure modes:
    - ``FileNotFoundError`` -- the settings file named by
      ``LEDGER_SETTINGS_FILE`` does not exist.
    - ``ValueError`` -- unknown keys or invalid values.
"""

from __future__ import annotations

import os
import threading

from ledger_config.loader import load_settings
from ledger_config.schema import LedgerSettings
from ledger_kernel.logging_config import get_logger

logger = get_logger("config")

ENV_SETTINGS_FILE = "LEDGER_SETTINGS_FILE"

_active: LedgerSettings | None = None
_lock = threading.Lock()


def get_active_settings() -> LedgerSettings:
    """
    Return the process-wide settings, loading them on first use.

    The file named by ``LEDGER_SETTINGS_FILE`` is read if set; otherwise
    the defaults apply, with environment overrides either way.
    """
    global _active
    with _lock:
        if _active is None:
            _active = load_settings(os.environ.get(ENV_SETTINGS_FILE))
            logger.info(
                "ledger_settings_loaded",
                extra={
                    "settings_file": os.environ.get(ENV_SETTINGS_FILE),
                    "default_base_currency": _active.default_base_currency,
                    "audit_entry_window": _active.audit_entry_window,
                },
            )
        return _active


def set_active_settings(settings: LedgerSettings | None) -> None:
    """Replace the process-wide settings; None forces a reload on next use."""
    global _active
    with _lock:
        _active = settings


__all__ = [
    "LedgerSettings",
    "get_active_settings",
    "load_settings",
    "set_active_settings",
]
