"""Reconciliation services."""

from scopesync.services.reaper import ReapResult, StaleResourceReaper
from scopesync.services.reconciler import ReconcileResult, ScopeTemplateReconciler
from scopesync.services.synchronizer import ClusterRoleSynchronizer, SyncResult

__all__ = [
    "ClusterRoleSynchronizer",
    "ReapResult",
    "ReconcileResult",
    "ScopeTemplateReconciler",
    "StaleResourceReaper",
    "SyncResult",
]
