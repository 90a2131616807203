"""
Fixed Assets Helpers (``ledger_modules.assets.helpers``).

Responsibility
--------------
Pure depreciation arithmetic.  No session, no clock, no rounding policy:
the scheduler rounds to the tenant's base currency.

Invariants enforced
-------------------
* All numeric inputs and outputs use ``Decimal`` -- NEVER ``float``.
* The monthly charge never takes the book value below salvage value.

Failure modes
-------------
* Zero or negative useful life  -> returns ``Decimal("0")``.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

ZERO = Decimal("0")


def straight_line(
    cost: Decimal,
    salvage_value: Decimal,
    useful_life_months: int,
) -> Decimal:
    """
    Monthly straight-line charge: ``(cost - salvage) / life``.

    Returns ``Decimal("0")`` if ``useful_life_months`` <= 0.
    """
    if useful_life_months <= 0:
        return ZERO
    return (cost - salvage_value) / useful_life_months


def monthly_depreciation(
    cost: Decimal,
    salvage_value: Decimal,
    useful_life_months: int,
    current_book_value: Decimal,
) -> Decimal:
    """
    Charge for one month, capped at the remaining depreciable amount.

    Postconditions:
        - ``0 <= result <= max(0, current_book_value - salvage_value)``.
        - ``result <= straight_line(cost, salvage_value, useful_life_months)``
          when that charge is non-negative.
    """
    remaining = max(ZERO, current_book_value - salvage_value)
    charge = straight_line(cost, salvage_value, useful_life_months)
    return max(ZERO, min(charge, remaining))


def month_start(as_of: date) -> date:
    """First day of ``as_of``'s month."""
    return as_of.replace(day=1)
