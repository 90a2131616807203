"""
Tests for currency validation and precision-derived tolerances.

- Currency codes are validated and normalized at the domain boundary.
- The balance tolerance is one minor unit of the currency, never a fixed
  decimal.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from ledger_kernel.domain.dtos import TenantContext
from ledger_kernel.exceptions import InvalidCurrencyError


class TestValidation:

    def test_valid_codes_accepted(self):
        for code in ["USD", "EUR", "SAR", "JPY", "KWD"]:
            assert CurrencyRegistry.is_valid(code)
            assert CurrencyRegistry.validate(code) == code

    def test_codes_normalized(self):
        assert CurrencyRegistry.validate("sar") == "SAR"
        assert CurrencyRegistry.validate(" EUR ") == "EUR"

    @pytest.mark.parametrize("code", ["", None, "XXX", "US", "DOLLARS", 840])
    def test_invalid_codes_rejected(self, code):
        assert not CurrencyRegistry.is_valid(code)
        with pytest.raises(InvalidCurrencyError):
            CurrencyRegistry.validate(code)


class TestPrecision:

    @pytest.mark.parametrize("code,places,tolerance", [
        ("USD", 2, Decimal("0.01")),
        ("JPY", 0, Decimal("1")),
        ("KWD", 3, Decimal("0.001")),
    ])
    def test_tolerance_is_one_minor_unit(self, code, places, tolerance):
        assert CurrencyRegistry.get_decimal_places(code) == places
        assert CurrencyRegistry.get_rounding_tolerance(code) == tolerance

    @pytest.mark.parametrize("code, tolerance", [
        ("USD", Decimal("0.01")),
        ("JPY", Decimal("0.01")),
        ("KWD", Decimal("0.001")),
    ])
    def test_balance_tolerance_never_exceeds_a_cent(self, code, tolerance):
        assert CurrencyRegistry.get_balance_tolerance(code) == tolerance

    def test_quantize_rounds_half_up(self):
        assert CurrencyRegistry.quantize(Decimal("10.005"), "USD") == Decimal("10.01")
        assert CurrencyRegistry.quantize(Decimal("10.5"), "JPY") == Decimal("11")
        assert CurrencyRegistry.quantize(Decimal("1.0004"), "KWD") == Decimal("1.000")

    def test_unknown_code_falls_back_to_two_places(self):
        info = CurrencyRegistry.get_info("zzz")
        assert info == CurrencyInfo("ZZZ", 2, "ZZZ")

    def test_tenant_context_uses_base_currency(self):
        context = TenantContext(tenant_id=uuid4(), actor="user-1", base_currency="JPY")

        assert context.tolerance == Decimal("1")
        assert context.balance_tolerance == Decimal("0.01")
        assert context.round(Decimal("1249.5")) == Decimal("1250")
