"""
Module: ledger_kernel.db.types
Responsibility: Annotated type aliases and utility functions for financial-grade
    values.  Centralizes precision and rounding so that every model and service
    uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere in the ledger.  All monetary amounts use Decimal with
      explicit precision.
    - round_money() is the only sanctioned rounding function for financial
      values.

Failure modes:
    - decimal.InvalidOperation on a non-numeric string passed to money_from_str().
    - TypeError from to_decimal() when handed a float.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated

from sqlalchemy import Numeric, String


# 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# 38 digits total, 18 decimal places for rate calculations
Rate = Annotated[Decimal, Numeric(38, 18)]

# ISO 4217 currency code (e.g., "USD", "SAR")
Currency = Annotated[str, String(3)]

MONEY_DECIMAL_PLACES = 9
RATE_DECIMAL_PLACES = 18
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")


def money_from_str(value: str) -> Decimal:
    """Create a Money value from its string form (not rounded)."""
    return Decimal(value)


def to_decimal(value: Decimal | int | str | None) -> Decimal:
    """
    Normalize an amount coming from the caller or from the database.

    None becomes zero.  Floats are refused: a float has already lost the
    exact value the caller meant.

    Raises:
        TypeError: If value is a float.
    """
    if value is None:
        return ZERO
    if isinstance(value, float):
        raise TypeError("Monetary amounts must be Decimal, int or str, not float")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


def round_money(
    value: Decimal,
    decimal_places: int = 2,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to.
        rounding: Rounding mode (default: ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    if decimal_places == 0:
        return value.quantize(Decimal("1"), rounding=rounding)
    quantize_str = "0." + "0" * decimal_places
    return value.quantize(Decimal(quantize_str), rounding=rounding)
