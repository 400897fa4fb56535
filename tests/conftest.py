"""Pytest configuration and fixtures."""

import threading
from typing import Any, Callable, Dict, Iterator, List, Optional
from unittest.mock import Mock

import pytest

from gitec_sync.connectors.memory import InMemoryProductStore
from gitec_sync.engine.progress import ProgressTracker
from gitec_sync.engine.reconciler import Reconciler
from gitec_sync.engine.sync import SyncEngine
from gitec_sync.models.config import SyncSettings
from gitec_sync.services.media import ImageIngestor
from gitec_sync.services.recorders import (
    InMemoryChangeHistory, InMemoryOperationalLog, InMemoryStatusStore
)


class FakeFetcher:
    """Stands in for GitecClient: returns a fixed catalog or raises."""

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None, error: Optional[Exception] = None):
        self.records = records or []
        self.error = error
        self.calls = 0

    def fetch_all(self) -> List[Dict[str, Any]]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)


class BlockingFetcher(FakeFetcher):
    """Blocks inside fetch_all() until released, to hold a run open."""

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None):
        super().__init__(records)
        self.started = threading.Event()
        self.released = threading.Event()

    def fetch_all(self) -> List[Dict[str, Any]]:
        self.started.set()
        self.released.wait(timeout=5)
        return super().fetch_all()


@pytest.fixture
def settings() -> SyncSettings:
    """Settings with credentials and no pacing delays."""
    return SyncSettings(
        api_username="test-user",
        api_password="test-pass",
        batch_size=10,
        record_delay=0,
        batch_cooldown=0,
    )


@pytest.fixture
def make_payload() -> Callable[..., Dict[str, Any]]:
    """Factory for catalog records in the upstream JSON shape."""

    def _make(
        sku: Any = "SKU-1",
        price: Any = "10.00",
        quantity: Any = "5",
        name: str = "Widget",
        image_url: Optional[str] = None,
        **extra: Any
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "Sku": sku,
            "Name": name,
            "FullDescription": "",
            "ShortDescription": "",
            "ProductPrice": {"PriceValue": price},
            "CustomProperties": {},
            "DefaultPictureModel": {"FullSizeImageUrl": image_url or ""},
        }
        if quantity is not None:
            payload["CustomProperties"]["Avaliable Quantity"] = quantity
        payload.update(extra)
        return payload

    return _make


@pytest.fixture
def store() -> InMemoryProductStore:
    return InMemoryProductStore()


@pytest.fixture
def history() -> InMemoryChangeHistory:
    return InMemoryChangeHistory()


@pytest.fixture
def oplog() -> InMemoryOperationalLog:
    return InMemoryOperationalLog()


@pytest.fixture
def status_store() -> InMemoryStatusStore:
    return InMemoryStatusStore()


@pytest.fixture
def images() -> Mock:
    """Image ingestor that hands out sequential references."""
    ingestor = Mock(spec=ImageIngestor)
    ingestor.ingest.side_effect = lambda url: f"img-{ingestor.ingest.call_count}"
    return ingestor


@pytest.fixture
def tracker(status_store) -> ProgressTracker:
    return ProgressTracker(status_store)


@pytest.fixture
def reconciler(store, history, oplog, images) -> Reconciler:
    return Reconciler(store, history, oplog, images)


@pytest.fixture
def make_engine(reconciler, tracker, oplog) -> Callable[..., SyncEngine]:
    """Factory for a sync engine around a given fetcher."""

    def _make(fetcher: FakeFetcher, **kwargs: Any) -> SyncEngine:
        kwargs.setdefault("batch_size", 10)
        kwargs.setdefault("record_delay", 0)
        kwargs.setdefault("batch_cooldown", 0)
        return SyncEngine(fetcher, reconciler, tracker, oplog, **kwargs)

    return _make


@pytest.fixture
def make_fetcher() -> Callable[..., FakeFetcher]:
    return FakeFetcher


@pytest.fixture
def blocking_fetcher(make_payload) -> Iterator[BlockingFetcher]:
    fetcher = BlockingFetcher([make_payload("SKU-1"), make_payload("SKU-2")])
    yield fetcher
    fetcher.released.set()
