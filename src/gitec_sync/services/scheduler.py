"""
Scheduler service mapping on-demand and recurring triggers onto sync runs.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from ..models.config import SyncInterval
from ..models.sync import RunResult, StartResult, SyncType

if TYPE_CHECKING:
    from ..engine.sync import SyncEngine

logger = logging.getLogger(__name__)


class RecurringTimer(threading.Thread):
    """Calls a function every interval seconds until stopped."""

    def __init__(self, interval: float, function: Callable[[], Any], name: str = "gitec-auto-sync"):
        super().__init__(name=name, daemon=True)
        self.interval = interval
        self.function = function
        self.next_run_at = datetime.utcnow() + timedelta(seconds=interval)
        self._stopped = threading.Event()

    def run(self) -> None:
        while not self._stopped.wait(self.interval):
            try:
                self.function()
            except Exception:
                logger.exception("Scheduled sync raised")
            self.next_run_at = datetime.utcnow() + timedelta(seconds=self.interval)

    def cancel(self) -> None:
        self._stopped.set()


class SchedulerService:
    """
    Turns trigger events into sync runs.

    On-demand runs are spawned on a background worker and acknowledged
    immediately. Automatic runs fire on a recurring timer; at most one timer
    is active and a run already in progress makes a trigger a no-op.
    """

    def __init__(self, engine: "SyncEngine", interval: SyncInterval = SyncInterval.HOURLY):
        """
        Initialize the scheduler service.

        Args:
            engine: Sync engine to drive
            interval: Interval used when the schedule is enabled without one
        """
        self.engine = engine
        self.interval = interval
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="gitec-sync")
        self._schedule_lock = threading.Lock()
        self._timer: Optional[RecurringTimer] = None
        self.current_run: Optional[Future] = None

        logger.info("Scheduler service initialized")

    # Triggers

    def _spawn(self, sync_type: SyncType) -> StartResult:
        if not self.engine.try_acquire():
            logger.info(f"{sync_type.value} sync requested while a sync is running")
            return StartResult.ALREADY_RUNNING

        try:
            self.current_run = self._executor.submit(self.engine.run_acquired, sync_type)
        except RuntimeError:
            # Executor already shut down; give the guard back
            self.engine.release()
            raise
        return StartResult.ACCEPTED

    def start_sync(self) -> StartResult:
        """Start a manual sync in the background."""
        return self._spawn(SyncType.MANUAL)

    def trigger_auto_sync(self) -> StartResult:
        """Start an automatic sync in the background (external cron hook)."""
        return self._spawn(SyncType.AUTO)

    def auto_sync(self) -> RunResult:
        """Run an automatic sync in the calling thread. Skipped if one is running."""
        result = self.engine.run(SyncType.AUTO)
        if not result.started:
            logger.info("Automatic sync skipped: a sync is already running")
        return result

    def check_progress(self) -> Dict[str, Any]:
        """Progress payload for polling clients."""
        return self.engine.tracker.snapshot().to_progress_response()

    # Recurring schedule

    def configure(self, enabled: bool, interval: Optional[SyncInterval] = None) -> Dict[str, Any]:
        """
        Enable, disable or change the recurring schedule.

        Changing the interval replaces the active timer; callers never observe
        two timers or none while the schedule is enabled.

        Args:
            enabled: Whether automatic syncs should run
            interval: New interval; keeps the current one if None

        Returns:
            The resulting schedule, as returned by get_schedule()
        """
        with self._schedule_lock:
            if interval is not None:
                self.interval = interval

            if not enabled:
                if self._timer is not None:
                    self._timer.cancel()
                    self._timer = None
                    logger.info("Automatic sync disabled")
                return self._describe()

            if self._timer is not None and self._timer.interval == self.interval.seconds:
                return self._describe()

            replacement = RecurringTimer(self.interval.seconds, self.auto_sync)
            replacement.start()
            previous, self._timer = self._timer, replacement
            if previous is not None:
                previous.cancel()
            logger.info(f"Automatic sync scheduled every {self.interval.seconds} seconds ({self.interval.value})")
            return self._describe()

    def get_schedule(self) -> Dict[str, Any]:
        with self._schedule_lock:
            return self._describe()

    def _describe(self) -> Dict[str, Any]:
        timer = self._timer
        return {
            "enabled": timer is not None,
            "interval": self.interval.value,
            "interval_seconds": self.interval.seconds,
            "next_run_at": timer.next_run_at.isoformat() if timer else None,
        }

    def shutdown(self, wait: bool = True) -> None:
        """Stop the recurring schedule and the background worker."""
        self.configure(enabled=False)
        self._executor.shutdown(wait=wait)
        logger.info("Scheduler service stopped")
