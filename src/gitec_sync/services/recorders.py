"""
Append-only recorders for change history, the operational log and the
persisted sync status, with in-memory implementations.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, List, Optional

from ..exceptions import StorageError
from ..models.config import DEFAULT_HISTORY_RETENTION, DEFAULT_LOG_RETENTION
from ..models.sync import ChangeRecord, ChangeType, LogEntry, LogStatus, SyncStatus

logger = logging.getLogger(__name__)

_LEVELS = {
    LogStatus.INFO: logging.INFO,
    LogStatus.SUCCESS: logging.INFO,
    LogStatus.ERROR: logging.ERROR,
}


class ChangeHistorySink(ABC):
    """Receives one ChangeRecord per audited mutation."""

    @abstractmethod
    def record_change(self, change: ChangeRecord) -> None:
        """Append a change record. Must raise if the record was not stored."""
        pass

    @abstractmethod
    def list_changes(
        self,
        change_type: Optional[ChangeType] = None,
        page: int = 1,
        per_page: int = 50
    ) -> List[ChangeRecord]:
        """List change records, newest first."""
        pass

    @abstractmethod
    def count_changes(self, change_type: Optional[ChangeType] = None) -> int:
        """Count change records, optionally of a single type."""
        pass


class OperationalLog(ABC):
    """User-facing operational log. Entries are mirrored to the process logger."""

    @abstractmethod
    def record_log(self, entry: LogEntry) -> None:
        pass

    @abstractmethod
    def list_logs(self, limit: int = 100) -> List[LogEntry]:
        """List log entries, newest first."""
        pass

    @abstractmethod
    def clear_logs(self) -> int:
        """Delete all log entries. Returns how many were removed."""
        pass

    def log(self, message: str, status: LogStatus = LogStatus.INFO) -> None:
        """Record a message. Failures to store it are logged, never raised."""
        logger.log(_LEVELS[status], message)
        try:
            self.record_log(LogEntry(message=message, status=status))
        except StorageError as e:
            logger.error(f"Failed to record operational log entry: {e}")

    def info(self, message: str) -> None:
        self.log(message, LogStatus.INFO)

    def success(self, message: str) -> None:
        self.log(message, LogStatus.SUCCESS)

    def error(self, message: str) -> None:
        self.log(message, LogStatus.ERROR)


class StatusStore(ABC):
    """Persists the single overwritten SyncStatus record."""

    @abstractmethod
    def save_status(self, status: SyncStatus) -> None:
        pass

    @abstractmethod
    def load_status(self) -> Optional[SyncStatus]:
        pass


class InMemoryChangeHistory(ChangeHistorySink):
    """Change history kept in process memory, capped at ``max_records``."""

    def __init__(self, max_records: int = DEFAULT_HISTORY_RETENTION):
        self._lock = threading.Lock()
        self._changes: Deque[ChangeRecord] = deque(maxlen=max_records)

    def record_change(self, change: ChangeRecord) -> None:
        with self._lock:
            self._changes.append(change)

    def _filtered(self, change_type: Optional[ChangeType]) -> List[ChangeRecord]:
        with self._lock:
            changes = list(self._changes)
        if change_type:
            changes = [c for c in changes if c.change_type == change_type]
        return changes

    def list_changes(
        self,
        change_type: Optional[ChangeType] = None,
        page: int = 1,
        per_page: int = 50
    ) -> List[ChangeRecord]:
        changes = list(reversed(self._filtered(change_type)))
        offset = (max(1, page) - 1) * per_page
        return changes[offset:offset + per_page]

    def count_changes(self, change_type: Optional[ChangeType] = None) -> int:
        return len(self._filtered(change_type))

    @property
    def changes(self) -> List[ChangeRecord]:
        """All records in insertion order."""
        with self._lock:
            return list(self._changes)


class InMemoryOperationalLog(OperationalLog):
    """Operational log kept in process memory, capped at ``max_entries``."""

    def __init__(self, max_entries: int = DEFAULT_LOG_RETENTION):
        self._lock = threading.Lock()
        self._entries: Deque[LogEntry] = deque(maxlen=max_entries)

    def record_log(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def list_logs(self, limit: int = 100) -> List[LogEntry]:
        with self._lock:
            return list(reversed(self._entries))[:limit]

    def clear_logs(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        return removed

    @property
    def entries(self) -> List[LogEntry]:
        """All entries in insertion order."""
        with self._lock:
            return list(self._entries)


class InMemoryStatusStore(StatusStore):
    """Keeps the last published status in memory."""

    def __init__(self):
        self._status: Optional[SyncStatus] = None

    def save_status(self, status: SyncStatus) -> None:
        self._status = status

    def load_status(self) -> Optional[SyncStatus]:
        return self._status
