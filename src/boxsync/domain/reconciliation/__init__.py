"""Catalog reconciliation: plan and apply box/version changes.

Flow per box:
1) fetch the box (create it when missing)
2) plan prune and add actions from the discovered version identifiers
3) apply the prune pass, then the add pass (create version, create provider, release)
"""

from __future__ import annotations

from .engine import ReconcileResult, ReleaseReconciler
from .plan import ActionKind, PlannedAction, ReconcilePlan, plan_reconciliation
from .policy import PrunePolicy, ReconcileOptions
from .selector import sync_release

__all__ = [
    "ActionKind",
    "PlannedAction",
    "PrunePolicy",
    "ReconcileOptions",
    "ReconcilePlan",
    "ReconcileResult",
    "ReleaseReconciler",
    "plan_reconciliation",
    "sync_release",
]
