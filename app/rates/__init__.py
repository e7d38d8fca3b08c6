"""Rate computation core.

Fee-schedule ingestion, the RVU reimbursement formula, per-group year series,
Addendum B payment loading and the reconciliation of both series.
"""

from .calculator import calculate_rate, calculate_reimbursement_rate, round_cents
from .changes import percentage_change
from .reconcile import CombinedRates, reconcile

__all__ = [
    "CombinedRates",
    "calculate_rate",
    "calculate_reimbursement_rate",
    "percentage_change",
    "reconcile",
    "round_cents",
]
