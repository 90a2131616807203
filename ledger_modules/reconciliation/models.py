"""
Reconciliation Domain Models.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class ReconciliationLine:
    """An unreconciled journal line as shown against a bank statement."""
    line_id: UUID
    entry_id: UUID
    entry_date: date
    description: str
    amount: Decimal  # debit minus credit
