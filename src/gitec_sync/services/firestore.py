"""
Firestore service for change history, the operational log and the sync status.
"""

import logging
from typing import List, Optional
from google.cloud import firestore
from google.auth import default

from ..exceptions import StorageError
from ..models.sync import ChangeRecord, ChangeType, LogEntry, SyncStatus
from .recorders import ChangeHistorySink, OperationalLog, StatusStore

logger = logging.getLogger(__name__)


class FirestoreService(ChangeHistorySink, OperationalLog, StatusStore):
    """
    Persists sync audit data in Firestore.

    Collections:
        sync_history: one document per ChangeRecord
        sync_logs: one document per operational log entry
        sync_state/status: the single SyncStatus document
    """

    def __init__(self, project_id: Optional[str] = None, client: Optional[firestore.Client] = None):
        """
        Initialize Firestore service.

        Args:
            project_id: Google Cloud project ID. If None, uses default from environment.
            client: Pre-built Firestore client
        """
        try:
            if client is not None:
                self.db = client
            elif project_id:
                self.db = firestore.Client(project=project_id)
            else:
                # Use application default credentials
                credentials, project = default()
                self.db = firestore.Client(project=project, credentials=credentials)

            self.history_collection = "sync_history"
            self.logs_collection = "sync_logs"
            self.state_collection = "sync_state"
            self.status_document = "status"

            logger.info(f"Firestore service initialized for project: {self.db.project}")

        except Exception as e:
            logger.error(f"Failed to initialize Firestore: {e}")
            raise

    # Change History

    def record_change(self, change: ChangeRecord) -> None:
        """
        Append a change record.

        Args:
            change: Record to store

        Raises:
            StorageError: If the write fails
        """
        try:
            self.db.collection(self.history_collection).add(change.to_firestore())
        except Exception as e:
            logger.error(f"Failed to record {change.change_type.value} for {change.sku}: {e}")
            raise StorageError(f"Failed to record change for {change.sku}: {e}") from e

    def _history_query(self, change_type: Optional[ChangeType]):
        query = self.db.collection(self.history_collection)
        if change_type:
            query = query.where("change_type", "==", change_type.value)
        return query

    def list_changes(
        self,
        change_type: Optional[ChangeType] = None,
        page: int = 1,
        per_page: int = 50
    ) -> List[ChangeRecord]:
        """
        List change records, newest first.

        Args:
            change_type: Only return records of this type
            page: 1-based page number
            per_page: Records per page

        Returns:
            Change records on the requested page
        """
        try:
            query = self._history_query(change_type)
            query = query.order_by("timestamp", direction=firestore.Query.DESCENDING)
            query = query.offset((max(1, page) - 1) * per_page).limit(per_page)

            return [ChangeRecord.from_firestore(doc.to_dict()) for doc in query.stream()]

        except Exception as e:
            logger.error(f"Failed to list change history: {e}")
            raise StorageError(f"Failed to list change history: {e}") from e

    def count_changes(self, change_type: Optional[ChangeType] = None) -> int:
        """Count change records using a Firestore aggregation query."""
        try:
            results = self._history_query(change_type).count(alias="total").get()
            return int(results[0][0].value) if results else 0
        except Exception as e:
            logger.error(f"Failed to count change history: {e}")
            raise StorageError(f"Failed to count change history: {e}") from e

    # Operational Log

    def record_log(self, entry: LogEntry) -> None:
        try:
            self.db.collection(self.logs_collection).add(entry.to_firestore())
        except Exception as e:
            raise StorageError(f"Failed to record log entry: {e}") from e

    def list_logs(self, limit: int = 100) -> List[LogEntry]:
        """List the most recent log entries."""
        try:
            query = (self.db.collection(self.logs_collection)
                     .order_by("timestamp", direction=firestore.Query.DESCENDING)
                     .limit(limit))
            return [LogEntry.from_firestore(doc.to_dict()) for doc in query.stream()]
        except Exception as e:
            logger.error(f"Failed to list logs: {e}")
            raise StorageError(f"Failed to list logs: {e}") from e

    def clear_logs(self) -> int:
        """
        Delete every operational log entry.

        Returns:
            Number of deleted entries
        """
        try:
            deleted = 0
            for doc in self.db.collection(self.logs_collection).stream():
                doc.reference.delete()
                deleted += 1

            logger.info(f"Cleared {deleted} operational log entries")
            return deleted

        except Exception as e:
            logger.error(f"Failed to clear logs: {e}")
            raise StorageError(f"Failed to clear logs: {e}") from e

    # Sync Status

    def save_status(self, status: SyncStatus) -> None:
        try:
            doc_ref = self.db.collection(self.state_collection).document(self.status_document)
            doc_ref.set(status.to_firestore())
        except Exception as e:
            raise StorageError(f"Failed to save sync status: {e}") from e

    def load_status(self) -> Optional[SyncStatus]:
        try:
            doc = self.db.collection(self.state_collection).document(self.status_document).get()
            if doc.exists:
                return SyncStatus.from_firestore(doc.to_dict())
            return None
        except Exception as e:
            logger.error(f"Failed to load sync status: {e}")
            raise StorageError(f"Failed to load sync status: {e}") from e
