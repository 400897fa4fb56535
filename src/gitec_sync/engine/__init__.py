"""
Sync engine for reconciling the remote catalog into the local product store.
"""

from .progress import ProgressTracker
from .reconciler import Reconciler, ReconcileReport
from .sync import SyncEngine

__all__ = [
    "ProgressTracker",
    "Reconciler",
    "ReconcileReport",
    "SyncEngine",
]
