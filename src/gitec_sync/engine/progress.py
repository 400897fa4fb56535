"""
Process-wide sync progress cell, shared by the sync engine (the only writer)
and whatever polls for progress.
"""

import logging
import threading
from typing import Optional

from ..exceptions import StorageError
from ..models.sync import SyncStatus
from ..services.recorders import StatusStore

logger = logging.getLogger(__name__)

STARTING_MESSAGE = "Sync starting..."
IN_PROGRESS_MESSAGE = "Sync in progress..."


def percent_complete(processed: int, total: int) -> int:
    """round(processed / total * 100), half-up, 0 when total is 0."""
    if total <= 0:
        return 0
    percent = (processed * 200 + total) // (2 * total)
    return max(0, min(100, percent))


class ProgressTracker:
    """
    Holds the latest SyncStatus. Every mutation swaps in a new immutable
    snapshot under a lock, so readers never see a torn state.
    """

    def __init__(self, status_store: Optional[StatusStore] = None):
        self._lock = threading.Lock()
        self._status = SyncStatus()
        self._status_store = status_store

        if status_store is not None:
            try:
                persisted = status_store.load_status()
            except StorageError as e:
                logger.warning(f"Could not load persisted sync status: {e}")
                persisted = None
            # A run cannot survive a restart, so a persisted "running" state is stale
            if persisted is not None and not persisted.is_running:
                self._status = persisted

    def _publish(self, status: SyncStatus) -> SyncStatus:
        with self._lock:
            self._status = status
        if self._status_store is not None:
            try:
                self._status_store.save_status(status)
            except StorageError as e:
                logger.warning(f"Failed to persist sync status: {e}")
        return status

    def reset(self, total: int = 0, message: str = STARTING_MESSAGE) -> SyncStatus:
        """Mark a run as started."""
        return self._publish(SyncStatus(
            is_running=True,
            progress_percent=0,
            processed=0,
            total=total,
            message=message,
        ))

    def advance(self, processed: int, message: str = IN_PROGRESS_MESSAGE, total: Optional[int] = None) -> SyncStatus:
        """Record progress after a processed record."""
        if total is None:
            total = self.snapshot().total
        return self._publish(SyncStatus(
            is_running=True,
            progress_percent=percent_complete(processed, total),
            processed=processed,
            total=total,
            message=message,
        ))

    def complete(self, final_message: str, progress_percent: Optional[int] = 100) -> SyncStatus:
        """
        Mark the run as finished.

        Args:
            final_message: Message shown to pollers
            progress_percent: Final percentage; None keeps the last reported value
        """
        current = self.snapshot()
        if progress_percent is None:
            progress_percent = current.progress_percent
        return self._publish(SyncStatus(
            is_running=False,
            progress_percent=progress_percent,
            processed=current.processed,
            total=current.total,
            message=final_message,
        ))

    def fail(self, message: str) -> SyncStatus:
        """Mark the run as terminated early, keeping the last progress value."""
        return self.complete(message, progress_percent=None)

    def snapshot(self) -> SyncStatus:
        with self._lock:
            return self._status

    @property
    def is_running(self) -> bool:
        return self.snapshot().is_running
