"""
Main sync engine that orchestrates catalog synchronization runs.
"""

import gc
import logging
import threading
import time
from datetime import datetime
from typing import Any, Dict, Iterator, List, Sequence

from ..exceptions import FetchError, ReconcileError
from ..integrations.gitec.client import GitecClient
from ..models.config import DEFAULT_BATCH_SIZE, MAX_BATCH_SIZE, MIN_BATCH_SIZE
from ..models.sync import ReconcileOutcome, RunResult, SyncType
from ..services.recorders import OperationalLog
from .progress import IN_PROGRESS_MESSAGE, ProgressTracker
from .reconciler import Reconciler

logger = logging.getLogger(__name__)


def chunked(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    """Split items into contiguous slices of at most size elements."""
    for start in range(0, len(items), size):
        yield items[start:start + size]


class SyncEngine:
    """
    Runs catalog syncs, one at a time.

    A run fetches the whole remote catalog, reconciles it batch by batch and
    publishes progress after every record. Manual and automatic runs share
    this code path and differ only in the sync type tagged on change records.
    """

    def __init__(
        self,
        fetcher: GitecClient,
        reconciler: Reconciler,
        tracker: ProgressTracker,
        oplog: OperationalLog,
        batch_size: int = DEFAULT_BATCH_SIZE,
        record_delay: float = 0.1,
        batch_cooldown: float = 2.0
    ):
        """
        Initialize the sync engine.

        Args:
            fetcher: Remote catalog client
            reconciler: Per-record reconciler
            tracker: Shared progress cell
            oplog: Operational log
            batch_size: Records per batch, clamped to 10-100
            record_delay: Pause after each record in seconds
            batch_cooldown: Pause between batches in seconds
        """
        self.fetcher = fetcher
        self.reconciler = reconciler
        self.tracker = tracker
        self.oplog = oplog
        self.batch_size = max(MIN_BATCH_SIZE, min(MAX_BATCH_SIZE, batch_size))
        self.record_delay = record_delay
        self.batch_cooldown = batch_cooldown

        self._guard = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._guard.locked()

    def try_acquire(self) -> bool:
        """
        Take the single-flight guard and mark a run as starting.

        Returns:
            False if a run is already in progress
        """
        if not self._guard.acquire(blocking=False):
            return False
        self.tracker.reset(0)
        return True

    def run(self, sync_type: SyncType = SyncType.MANUAL) -> RunResult:
        """
        Execute a sync run unless one is already in progress.

        Args:
            sync_type: What triggered this run

        Returns:
            RunResult with aggregated counts; ``started`` is False when
            another run was already in progress
        """
        if not self.try_acquire():
            logger.info(f"Skipping {sync_type.value} sync: a sync is already running")
            return RunResult.already_running(sync_type)
        return self.run_acquired(sync_type)

    def run_acquired(self, sync_type: SyncType = SyncType.MANUAL) -> RunResult:
        """Execute a run whose guard was taken with try_acquire(), then release it."""
        try:
            return self._execute(sync_type)
        finally:
            self.release()

    def release(self) -> None:
        """Give back a guard taken with try_acquire() without running."""
        self._guard.release()

    def _execute(self, sync_type: SyncType) -> RunResult:
        result = RunResult(sync_type=sync_type)
        self.oplog.info(f"Sync started ({sync_type.value})")

        try:
            records = self.fetcher.fetch_all()
        except Exception as e:
            if not isinstance(e, FetchError):
                logger.exception("Unexpected error while fetching products")
            message = f"Failed to fetch products: {e}"
            self.tracker.fail(message)
            self.oplog.error(message)
            result.message = message
            result.error = f"fetch:{getattr(e, 'kind', 'unexpected')}"
            result.completed_at = datetime.utcnow()
            return result

        try:
            self._process(records, sync_type, result)
        except Exception as e:
            logger.exception("Sync run failed")
            message = f"Sync failed: {e}"
            self.tracker.fail(message)
            self.oplog.error(message)
            result.message = message
            result.error = "run"
            result.completed_at = datetime.utcnow()
            return result

        result.succeeded = True
        result.message = result.get_summary()
        result.completed_at = datetime.utcnow()
        self.tracker.complete(result.message)
        self.oplog.success(result.message)
        return result

    def _process(self, records: List[Dict[str, Any]], sync_type: SyncType, result: RunResult) -> None:
        total = len(records)
        result.total = total
        self.tracker.reset(total, IN_PROGRESS_MESSAGE)

        batches = list(chunked(records, self.batch_size))
        for batch_index, batch in enumerate(batches, start=1):
            self.oplog.info(f"Processing batch {batch_index} / {len(batches)}")

            for record in batch:
                self._process_record(record, sync_type, result)
                result.processed += 1
                self.tracker.advance(result.processed, IN_PROGRESS_MESSAGE, total=total)
                self._pause(self.record_delay)

            if batch_index < len(batches):
                self._pause(self.batch_cooldown)
                gc.collect()

    def _process_record(self, record: Dict[str, Any], sync_type: SyncType, result: RunResult) -> None:
        try:
            report = self.reconciler.reconcile(record, sync_type)
        except ReconcileError as e:
            result.failed += 1
            self.oplog.error(f"Error processing product ({e.sku}): {e.reason}")
            return

        if report.outcome == ReconcileOutcome.CREATED:
            result.created += 1
        elif report.outcome == ReconcileOutcome.UPDATED:
            result.updated += 1
        else:
            result.unchanged += 1

        if report.price_changed:
            result.price_changes += 1
        if report.stock_changed:
            result.stock_changes += 1

    @staticmethod
    def _pause(seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)
