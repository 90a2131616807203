"""
Config -> Kernel Bridges.

Functions that turn ``LedgerSettings`` and the bundled chart template into
kernel inputs.  They live here because the kernel must NEVER import
``ledger_config``.

Usage:
    from ledger_config.bridges import build_consistency_auditor, load_default_chart

    settings = get_active_settings()
    auditor = build_consistency_auditor(session, settings, DepreciationScheduler(session))
    AccountService(session).seed_default_chart(context, load_default_chart())
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy.orm import Session

from ledger_config.loader import load_yaml_file
from ledger_config.schema import LedgerSettings
from ledger_kernel.db.engine import init_engine_from_url
from ledger_kernel.domain.dtos import ChartAccountSpec, ChartTemplate
from ledger_kernel.logging_config import configure_logging
from ledger_kernel.models.account import AccountType
from ledger_kernel.models.account_map import AccountRole
from ledger_kernel.services.consistency_auditor import ConsistencyAuditor, PendingDepreciation
from ledger_kernel.services.period_service import PeriodService

DEFAULT_CHART_PATH = Path(__file__).parent / "default_chart.yaml"


def auditor_kwargs(settings: LedgerSettings) -> dict[str, Any]:
    return {
        "audit_entry_window": settings.audit_entry_window,
        "trial_balance_tolerance": settings.trial_balance_tolerance,
    }


def period_service_kwargs(settings: LedgerSettings) -> dict[str, Any]:
    return {"retained_earnings_name_fallback": settings.retained_earnings_name_fallback}


def build_consistency_auditor(
    session: Session,
    settings: LedgerSettings,
    pending_depreciation: PendingDepreciation,
    **overrides: Any,
) -> ConsistencyAuditor:
    """ConsistencyAuditor with thresholds from settings; other collaborators via overrides."""
    return ConsistencyAuditor(
        session,
        pending_depreciation=pending_depreciation,
        **{**auditor_kwargs(settings), **overrides},
    )


def build_period_service(
    session: Session,
    settings: LedgerSettings,
    **overrides: Any,
) -> PeriodService:
    return PeriodService(session, **{**period_service_kwargs(settings), **overrides})


def init_from_settings(settings: LedgerSettings):
    """Configure kernel logging and the module-level engine."""
    configure_logging(level=settings.log_level)
    return init_engine_from_url(settings.database_url)


def parse_chart(data: dict[str, Any]) -> ChartTemplate:
    """
    Parse a chart template mapping.

    Raises:
        KeyError: An account lacks ``number``, ``name`` or ``type``.
        ValueError: Unknown account type or role.
    """
    accounts = []
    for item in data.get("accounts", ()):
        account_type = AccountType(item["type"])
        accounts.append(
            ChartAccountSpec(
                account_number=str(item["number"]),
                name=item["name"],
                account_type=account_type.value,
                parent_number=str(item["parent"]) if item.get("parent") is not None else None,
                is_placeholder=bool(item.get("placeholder", False)),
                currency=item.get("currency"),
            )
        )

    role_bindings = {
        AccountRole(role).value: str(number)
        for role, number in (data.get("roles") or {}).items()
    }
    return ChartTemplate(accounts=tuple(accounts), role_bindings=role_bindings)


def load_default_chart(path: Path | str | None = None) -> ChartTemplate:
    """Load the bundled chart of accounts, or the one at ``path``."""
    return parse_chart(load_yaml_file(Path(path) if path is not None else DEFAULT_CHART_PATH))
