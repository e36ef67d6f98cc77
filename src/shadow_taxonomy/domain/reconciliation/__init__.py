"""Batch reconciliation between records and their mirror taxonomy nodes.

Layered flow of one pass:
1) scan candidate records and nodes page by page
2) classify each into at most one planned action
3) re-classify against fresh state and apply (skipped in dry-run)
4) report planned/applied/skipped/failed counts
"""

from __future__ import annotations

from .check import CheckResult, CheckStatus, CheckTarget, check_node, check_pair, check_record
from .engine import DEFAULT_BATCH_SIZE, ReconciliationEngine
from .plan import (
    ACTIONS_BY_MODE,
    PlannedAction,
    ReconcileAction,
    ReconcileMode,
    ReconcileReport,
)

__all__ = [
    "ACTIONS_BY_MODE",
    "DEFAULT_BATCH_SIZE",
    "CheckResult",
    "CheckStatus",
    "CheckTarget",
    "PlannedAction",
    "ReconcileAction",
    "ReconcileMode",
    "ReconcileReport",
    "ReconciliationEngine",
    "check_node",
    "check_pair",
    "check_record",
]
