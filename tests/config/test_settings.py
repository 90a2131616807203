"""
Settings and bridge tests.

Verifies:
- YAML settings load with Decimal tolerances and environment overrides
- Unknown keys and invalid values are rejected
- Bridges hand settings values to kernel services
- The bundled chart template parses and seeds
"""

from datetime import date
from decimal import Decimal

import pytest
import yaml

from ledger_config import get_active_settings, set_active_settings
from ledger_config.bridges import (
    build_consistency_auditor,
    load_default_chart,
    parse_chart,
    period_service_kwargs,
)
from ledger_config.loader import load_settings
from ledger_config.schema import LedgerSettings
from ledger_kernel.models.account_map import CRITICAL_ROLES, AccountRole
from ledger_modules.assets import DepreciationScheduler


@pytest.fixture
def settings_file(tmp_path):
    def _write(data):
        path = tmp_path / "ledger.yaml"
        path.write_text(yaml.safe_dump(data))
        return path

    return _write


@pytest.fixture
def _reset_active_settings():
    set_active_settings(None)
    yield
    set_active_settings(None)


class TestLoadSettings:

    def test_defaults_without_file(self):
        settings = load_settings(environ={})

        assert settings == LedgerSettings()
        assert settings.trial_balance_tolerance == Decimal("0.1")
        assert settings.audit_entry_window == 50

    def test_file_values(self, settings_file):
        path = settings_file({
            "default_base_currency": "sar",
            "trial_balance_tolerance": 0.5,
            "audit_entry_window": 200,
            "retained_earnings_name_fallback": True,
            "log_level": "debug",
        })

        settings = load_settings(path, environ={})

        assert settings.default_base_currency == "SAR"
        assert settings.trial_balance_tolerance == Decimal("0.5")
        assert isinstance(settings.trial_balance_tolerance, Decimal)
        assert settings.audit_entry_window == 200
        assert settings.retained_earnings_name_fallback is True
        assert settings.log_level == "DEBUG"

    def test_null_window_means_exhaustive(self, settings_file):
        settings = load_settings(settings_file({"audit_entry_window": None}), environ={})
        assert settings.audit_entry_window is None

    def test_environment_overrides_file(self, settings_file):
        path = settings_file({"database_url": "sqlite:///file.db", "log_level": "INFO"})

        settings = load_settings(
            path,
            environ={
                "LEDGER_DATABASE_URL": "postgresql+psycopg://ledger@db/ledger",
                "LEDGER_LOG_LEVEL": "warning",
            },
        )

        assert settings.database_url == "postgresql+psycopg://ledger@db/ledger"
        assert settings.log_level == "WARNING"

    def test_unknown_key_rejected(self, settings_file):
        with pytest.raises(ValueError, match="trial_balance_tolerence"):
            load_settings(settings_file({"trial_balance_tolerence": "0.1"}), environ={})

    @pytest.mark.parametrize("data", [
        {"trial_balance_tolerance": "-1"},
        {"trial_balance_tolerance": "abc"},
        {"audit_entry_window": 0},
    ])
    def test_invalid_values_rejected(self, settings_file, data):
        with pytest.raises(ValueError):
            load_settings(settings_file(data), environ={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml", environ={})


class TestActiveSettings:

    def test_loaded_once_from_environment(self, monkeypatch, settings_file, _reset_active_settings):
        monkeypatch.setenv("LEDGER_SETTINGS_FILE", str(settings_file({"audit_entry_window": 7})))
        monkeypatch.delenv("LEDGER_DATABASE_URL", raising=False)
        monkeypatch.delenv("LEDGER_LOG_LEVEL", raising=False)

        first = get_active_settings()

        assert first.audit_entry_window == 7
        assert get_active_settings() is first

    def test_explicit_settings_win(self, _reset_active_settings):
        settings = LedgerSettings(default_base_currency="EUR")
        set_active_settings(settings)
        assert get_active_settings() is settings


class _UnevenTotals:
    def trial_balance_totals(self, tenant_id):
        return Decimal("100.00"), Decimal("99.50")


class TestBridges:

    def test_auditor_uses_configured_tolerance(
        self, session, deterministic_clock, tenant_context, chart, fiscal_year_2024
    ):
        scheduler = DepreciationScheduler(session)
        strict = build_consistency_auditor(
            session,
            LedgerSettings(),
            scheduler,
            clock=deterministic_clock,
            projection=_UnevenTotals(),
        )
        lenient = build_consistency_auditor(
            session,
            LedgerSettings(trial_balance_tolerance=Decimal("1")),
            scheduler,
            clock=deterministic_clock,
            projection=_UnevenTotals(),
        )

        assert not strict.run_audit(tenant_context.tenant_id).is_balanced
        assert lenient.run_audit(tenant_context.tenant_id).is_balanced

    def test_auditor_counts_undepreciated_assets(
        self, session, journal_writer, deterministic_clock, tenant_context, chart,
        fiscal_year_2024,
    ):
        scheduler = DepreciationScheduler(session, writer=journal_writer, clock=deterministic_clock)
        scheduler.register_asset(
            tenant_context, "Pallet racking", "FA-21", date(2024, 1, 10), Decimal("4800.00"), 48,
            chart["1500"], chart["1510"], chart["5500"],
        )
        auditor = build_consistency_auditor(
            session, LedgerSettings(), scheduler, clock=deterministic_clock
        )

        report = auditor.run_audit(tenant_context.tenant_id)

        assert report.score == 95
        assert report.issue_codes() == ["pending-depreciation"]

    def test_auditor_requires_depreciation_source(self, session):
        with pytest.raises(TypeError):
            build_consistency_auditor(session, LedgerSettings())

    def test_period_service_kwargs(self):
        settings = LedgerSettings(retained_earnings_name_fallback=True)
        assert period_service_kwargs(settings) == {"retained_earnings_name_fallback": True}


class TestChartTemplate:

    def test_default_chart(self):
        template = load_default_chart()
        numbers = [spec.account_number for spec in template.accounts]

        assert len(template.role_bindings) == 15
        assert template.role_bindings[AccountRole.CASH_SALES.value] == "1100"
        for spec in template.accounts:
            if spec.parent_number is not None:
                assert numbers.index(spec.parent_number) < numbers.index(spec.account_number)

    def test_default_chart_binds_every_critical_role(self, resolver, tenant_context, chart):
        assert resolver.missing_roles(tenant_context.tenant_id, CRITICAL_ROLES) == []

    def test_parse_chart(self):
        template = parse_chart({
            "accounts": [
                {"number": 1000, "name": "Assets", "type": "asset", "placeholder": True},
                {"number": 1010, "name": "Petty Cash", "type": "asset", "parent": 1000},
            ],
            "roles": {"cash": 1010},
        })

        assert template.accounts[1].parent_number == "1000"
        assert template.accounts[0].is_placeholder
        assert template.role_bindings == {"cash": "1010"}

    @pytest.mark.parametrize("data", [
        {"accounts": [{"number": "1", "name": "X", "type": "income"}]},
        {"accounts": [], "roles": {"petty_cash": "1"}},
    ])
    def test_parse_chart_rejects_unknown_names(self, data):
        with pytest.raises(ValueError):
            parse_chart(data)
