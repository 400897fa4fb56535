"""Explicit process initialization: wires stores, sinks, engine and scheduler."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..connectors import get_store
from ..connectors.base import ProductStore
from ..engine.progress import ProgressTracker
from ..engine.reconciler import Reconciler
from ..engine.sync import SyncEngine
from ..exceptions import ConfigurationError
from ..integrations.gitec.client import GitecClient
from ..models.config import SyncSettings
from ..services.firestore import FirestoreService
from ..services.media import DirectoryImageIngestor, ImageIngestor, WordPressMediaIngestor
from ..services.recorders import (
    ChangeHistorySink, InMemoryChangeHistory, InMemoryOperationalLog,
    InMemoryStatusStore, OperationalLog, StatusStore
)
from ..services.scheduler import SchedulerService

logger = logging.getLogger(__name__)


@dataclass
class SyncServices:
    """Everything a process needs to run and observe syncs."""
    settings: SyncSettings
    store: ProductStore
    history: ChangeHistorySink
    oplog: OperationalLog
    status_store: StatusStore
    tracker: ProgressTracker
    fetcher: GitecClient
    reconciler: Reconciler
    engine: SyncEngine
    scheduler: SchedulerService

    def shutdown(self, wait: bool = True) -> None:
        self.scheduler.shutdown(wait=wait)


def _store_config(settings: SyncSettings) -> Dict[str, Any]:
    if settings.store_backend == "woocommerce":
        return {
            "url": settings.wc_url,
            "consumer_key": settings.wc_consumer_key,
            "consumer_secret": settings.wc_consumer_secret,
        }
    return {}


def _image_ingestor(settings: SyncSettings) -> Optional[ImageIngestor]:
    """
    Pick the image ingestor matching the store backend.

    WooCommerce only accepts WordPress media ids as image references, so
    without WordPress credentials images are left alone entirely.
    """
    if settings.store_backend == "woocommerce":
        if not (settings.wp_username and settings.wp_app_password):
            logger.warning("WP_USERNAME / WP_APP_PASSWORD are not set; product images will not be synced")
            return None
        return WordPressMediaIngestor(
            site_url=settings.wc_url,
            username=settings.wp_username,
            app_password=settings.wp_app_password,
            verify_ssl=settings.verify_ssl,
        )
    return DirectoryImageIngestor(media_dir=settings.media_dir, verify_ssl=settings.verify_ssl)


def bootstrap(
    settings: SyncSettings,
    store: Optional[ProductStore] = None,
    images: Optional[ImageIngestor] = None,
    firestore: Optional[FirestoreService] = None
) -> SyncServices:
    """
    Build and wire all sync services.

    Args:
        settings: Sync settings
        store: Product store to use instead of the configured backend
        images: Image ingestor to use instead of the configured one
        firestore: Firestore service to use instead of creating one

    Returns:
        Wired services; the recurring schedule is installed when enabled

    Raises:
        ConfigurationError: If the configured backend cannot be created
    """
    if firestore is None and settings.firestore_enabled:
        firestore = FirestoreService(project_id=settings.google_cloud_project)

    if firestore is not None:
        history, oplog, status_store = firestore, firestore, firestore
    else:
        history = InMemoryChangeHistory(max_records=settings.history_retention)
        oplog = InMemoryOperationalLog(max_entries=settings.log_retention)
        status_store = InMemoryStatusStore()

    if store is None:
        try:
            store = get_store(settings.store_backend, **_store_config(settings))
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    if images is None:
        images = _image_ingestor(settings)

    tracker = ProgressTracker(status_store)
    fetcher = GitecClient.from_settings(settings, oplog)
    reconciler = Reconciler(store, history, oplog, images)
    engine = SyncEngine(
        fetcher,
        reconciler,
        tracker,
        oplog,
        batch_size=settings.batch_size,
        record_delay=settings.record_delay,
        batch_cooldown=settings.batch_cooldown,
    )
    scheduler = SchedulerService(engine, interval=settings.sync_interval)

    if settings.auto_sync_enabled:
        scheduler.configure(enabled=True, interval=settings.sync_interval)

    logger.info(f"Sync services initialized (store: {settings.store_backend}, "
                f"firestore: {firestore is not None})")

    return SyncServices(
        settings=settings,
        store=store,
        history=history,
        oplog=oplog,
        status_store=status_store,
        tracker=tracker,
        fetcher=fetcher,
        reconciler=reconciler,
        engine=engine,
        scheduler=scheduler,
    )
