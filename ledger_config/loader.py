"""
Settings Loader (``ledger_config.loader``).

Responsibility
--------------
Loads a YAML settings file with PyYAML into ``LedgerSettings`` and applies
environment overrides.

Invariants enforced
-------------------
* Unknown keys are rejected; a typo never falls back to a default silently.
* Money-like values are parsed as ``Decimal`` from their string form.
* ``LEDGER_DATABASE_URL`` and ``LEDGER_LOG_LEVEL`` override the file.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key or bad value  -> ``ValueError``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import LedgerSettings

ENV_DATABASE_URL = "LEDGER_DATABASE_URL"
ENV_LOG_LEVEL = "LEDGER_LOG_LEVEL"

_FIELD_NAMES = frozenset(f.name for f in fields(LedgerSettings))


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, key: str) -> Decimal:
    if isinstance(value, float):
        # YAML reads 0.1 as a float; its repr is the literal the user wrote.
        value = repr(value)
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{key}: cannot parse decimal from {value!r}") from exc


def parse_settings(data: Mapping[str, Any]) -> LedgerSettings:
    """Build ``LedgerSettings`` from a parsed mapping."""
    unknown = set(data) - _FIELD_NAMES
    if unknown:
        raise ValueError(f"Unknown settings keys: {sorted(unknown)}")

    values: dict[str, Any] = dict(data)
    if "trial_balance_tolerance" in values:
        values["trial_balance_tolerance"] = parse_decimal(
            values["trial_balance_tolerance"], "trial_balance_tolerance"
        )
    if values.get("audit_entry_window") is not None:
        values["audit_entry_window"] = int(values["audit_entry_window"])
    if "retained_earnings_name_fallback" in values:
        values["retained_earnings_name_fallback"] = bool(values["retained_earnings_name_fallback"])
    if "default_base_currency" in values:
        values["default_base_currency"] = str(values["default_base_currency"]).upper()
    if "log_level" in values:
        values["log_level"] = str(values["log_level"]).upper()
    return LedgerSettings(**values)


def apply_env_overrides(
    data: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    environ = os.environ if environ is None else environ
    merged = dict(data)
    if environ.get(ENV_DATABASE_URL):
        merged["database_url"] = environ[ENV_DATABASE_URL]
    if environ.get(ENV_LOG_LEVEL):
        merged["log_level"] = environ[ENV_LOG_LEVEL]
    return merged


def load_settings(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> LedgerSettings:
    """
    Load settings from ``path`` (defaults only when None), then environment.

    Args:
        path: YAML file with a flat mapping of ``LedgerSettings`` fields.
        environ: Environment to read overrides from; ``os.environ`` if None.
    """
    data = load_yaml_file(Path(path)) if path is not None else {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return parse_settings(apply_env_overrides(data, environ))
