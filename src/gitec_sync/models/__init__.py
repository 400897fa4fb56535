"""
Models for the Gitec sync system.
"""

from .catalog import RemoteProductRecord, LocalProductEntity, StockStatus
from .config import SyncSettings, SyncInterval
from .sync import (
    ChangeRecord, ChangeType, LogEntry, LogStatus, ReconcileOutcome,
    RunResult, StartResult, SyncStatus, SyncType
)

__all__ = [
    # Catalog models
    "RemoteProductRecord",
    "LocalProductEntity",
    "StockStatus",

    # Configuration
    "SyncSettings",
    "SyncInterval",

    # Sync run models
    "ChangeRecord",
    "ChangeType",
    "LogEntry",
    "LogStatus",
    "ReconcileOutcome",
    "RunResult",
    "StartResult",
    "SyncStatus",
    "SyncType",
]
