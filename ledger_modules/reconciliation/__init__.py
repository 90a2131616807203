"""
Bank Reconciliation Module (``ledger_modules.reconciliation``).

Lists the journal lines of a bank or cash account not yet matched to a
statement, and records the matches.
"""

from ledger_modules.reconciliation.models import ReconciliationLine
from ledger_modules.reconciliation.orm import LineReconciliation
from ledger_modules.reconciliation.service import ReconciliationService

__all__ = ["LineReconciliation", "ReconciliationLine", "ReconciliationService"]
