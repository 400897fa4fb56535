"""
Services for the Gitec sync.
"""

from .firestore import FirestoreService
from .media import DirectoryImageIngestor, ImageIngestor, WordPressMediaIngestor
from .recorders import (
    ChangeHistorySink, InMemoryChangeHistory, InMemoryOperationalLog,
    InMemoryStatusStore, OperationalLog, StatusStore
)
from .scheduler import SchedulerService

__all__ = [
    "FirestoreService",
    "SchedulerService",
    "ImageIngestor",
    "DirectoryImageIngestor",
    "WordPressMediaIngestor",
    "ChangeHistorySink",
    "OperationalLog",
    "StatusStore",
    "InMemoryChangeHistory",
    "InMemoryOperationalLog",
    "InMemoryStatusStore",
]
