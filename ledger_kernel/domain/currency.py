"""Currency -- ISO 4217 registry and precision-derived tolerances.

The "effectively zero" thresholds of depreciation and FX revaluation are
one minor unit of the tenant's base currency: 0.01 for two-decimal
currencies, 1 for zero-decimal ones, 0.001 for three-decimal ones.  The
per-entry balance tolerance is the smaller of 0.01 and one minor unit.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import ClassVar

from ledger_kernel.exceptions import InvalidCurrencyError

MAX_BALANCE_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str

    @property
    def minor_unit(self) -> Decimal:
        """Smallest representable amount, also the zero tolerance."""
        return Decimal(1).scaleb(-self.decimal_places)

    def quantize(self, amount: Decimal) -> Decimal:
        """Round half-up to this currency's precision."""
        return amount.quantize(self.minor_unit, rounding=ROUND_HALF_UP)


class CurrencyRegistry:
    """Registry of ISO 4217 currencies with their decimal places."""

    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        info.code: info
        for info in (
            # Two decimal currencies
            CurrencyInfo("USD", 2, "US Dollar"),
            CurrencyInfo("EUR", 2, "Euro"),
            CurrencyInfo("GBP", 2, "Pound Sterling"),
            CurrencyInfo("CHF", 2, "Swiss Franc"),
            CurrencyInfo("CAD", 2, "Canadian Dollar"),
            CurrencyInfo("AUD", 2, "Australian Dollar"),
            CurrencyInfo("NZD", 2, "New Zealand Dollar"),
            CurrencyInfo("SAR", 2, "Saudi Riyal"),
            CurrencyInfo("AED", 2, "UAE Dirham"),
            CurrencyInfo("QAR", 2, "Qatari Riyal"),
            CurrencyInfo("EGP", 2, "Egyptian Pound"),
            CurrencyInfo("MAD", 2, "Moroccan Dirham"),
            CurrencyInfo("TRY", 2, "Turkish Lira"),
            CurrencyInfo("INR", 2, "Indian Rupee"),
            CurrencyInfo("PKR", 2, "Pakistani Rupee"),
            CurrencyInfo("CNY", 2, "Chinese Yuan"),
            CurrencyInfo("HKD", 2, "Hong Kong Dollar"),
            CurrencyInfo("SGD", 2, "Singapore Dollar"),
            CurrencyInfo("MYR", 2, "Malaysian Ringgit"),
            CurrencyInfo("IDR", 2, "Indonesian Rupiah"),
            CurrencyInfo("PHP", 2, "Philippine Peso"),
            CurrencyInfo("THB", 2, "Thai Baht"),
            CurrencyInfo("ZAR", 2, "South African Rand"),
            CurrencyInfo("NGN", 2, "Nigerian Naira"),
            CurrencyInfo("KES", 2, "Kenyan Shilling"),
            CurrencyInfo("BRL", 2, "Brazilian Real"),
            CurrencyInfo("MXN", 2, "Mexican Peso"),
            CurrencyInfo("SEK", 2, "Swedish Krona"),
            CurrencyInfo("NOK", 2, "Norwegian Krone"),
            CurrencyInfo("DKK", 2, "Danish Krone"),
            CurrencyInfo("PLN", 2, "Polish Zloty"),
            CurrencyInfo("CZK", 2, "Czech Koruna"),
            # Zero decimal currencies
            CurrencyInfo("JPY", 0, "Japanese Yen"),
            CurrencyInfo("KRW", 0, "South Korean Won"),
            CurrencyInfo("CLP", 0, "Chilean Peso"),
            CurrencyInfo("ISK", 0, "Icelandic Krona"),
            CurrencyInfo("VND", 0, "Vietnamese Dong"),
            CurrencyInfo("XAF", 0, "Central African CFA Franc"),
            CurrencyInfo("XOF", 0, "West African CFA Franc"),
            # Three decimal currencies
            CurrencyInfo("BHD", 3, "Bahraini Dinar"),
            CurrencyInfo("IQD", 3, "Iraqi Dinar"),
            CurrencyInfo("JOD", 3, "Jordanian Dinar"),
            CurrencyInfo("KWD", 3, "Kuwaiti Dinar"),
            CurrencyInfo("LYD", 3, "Libyan Dinar"),
            CurrencyInfo("OMR", 3, "Omani Rial"),
            CurrencyInfo("TND", 3, "Tunisian Dinar"),
        )
    }

    @classmethod
    def is_valid(cls, code: str) -> bool:
        if not code or not isinstance(code, str):
            return False
        return code.upper().strip() in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo:
        """
        Currency information by code.

        Unknown codes fall back to a two-decimal currency so amounts stored
        before a registry update still round sensibly.
        """
        normalized = (code or "").upper().strip()
        info = cls._CURRENCIES.get(normalized)
        if info is None:
            return CurrencyInfo(normalized, cls.DEFAULT_DECIMAL_PLACES, normalized)
        return info

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        return cls.get_info(code).decimal_places

    @classmethod
    def get_rounding_tolerance(cls, code: str) -> Decimal:
        """One minor unit of the currency."""
        return cls.get_info(code).minor_unit

    @classmethod
    def get_balance_tolerance(cls, code: str) -> Decimal:
        """Largest debit/credit difference an entry may carry."""
        return min(MAX_BALANCE_TOLERANCE, cls.get_info(code).minor_unit)

    @classmethod
    def quantize(cls, amount: Decimal, code: str) -> Decimal:
        return cls.get_info(code).quantize(amount)

    @classmethod
    def validate(cls, code: str) -> str:
        """
        Validate and normalize a currency code.

        Raises:
            InvalidCurrencyError: If the code is not a known ISO 4217 code.
        """
        if not code or not isinstance(code, str):
            raise InvalidCurrencyError(repr(code))
        normalized = code.upper().strip()
        if normalized not in cls._CURRENCIES:
            raise InvalidCurrencyError(code)
        return normalized

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        return frozenset(cls._CURRENCIES)
