"""
Reconciles one remote catalog record against the local product store.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..connectors.base import ProductStore
from ..exceptions import ImageIngestionError, ReconcileError
from ..models.catalog import LocalProductEntity, RemoteProductRecord
from ..models.sync import ChangeRecord, ChangeType, ReconcileOutcome, SyncType
from ..services.media import ImageIngestor
from ..services.recorders import ChangeHistorySink, OperationalLog

logger = logging.getLogger(__name__)


def _as_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass
class ReconcileReport:
    """What reconciling a single record did."""
    sku: str
    outcome: ReconcileOutcome
    price_changed: bool = False
    stock_changed: bool = False
    image_failed: bool = False
    changes: List[ChangeRecord] = field(default_factory=list)


class Reconciler:
    """
    Applies the minimal set of changes that brings a local product in line
    with its remote record.

    Price and stock differences are audited: a ChangeRecord is written before
    the new value is applied. Name and descriptions are always overwritten
    and never audited. Products are created or updated, never deleted.
    """

    def __init__(
        self,
        store: ProductStore,
        history: ChangeHistorySink,
        oplog: OperationalLog,
        images: Optional[ImageIngestor] = None
    ):
        self.store = store
        self.history = history
        self.oplog = oplog
        self.images = images

    def reconcile(
        self,
        remote: Union[RemoteProductRecord, Dict[str, Any]],
        sync_type: SyncType = SyncType.MANUAL
    ) -> ReconcileReport:
        """
        Reconcile one remote record.

        Args:
            remote: Parsed record, or the raw upstream payload
            sync_type: Tag for the change records

        Returns:
            ReconcileReport describing the outcome

        Raises:
            ReconcileError: If anything about this record failed. Never
                raised for image ingestion failures.
        """
        sku = self._sku_of(remote)
        try:
            if not isinstance(remote, RemoteProductRecord):
                remote = RemoteProductRecord.from_api(remote)

            local = self.store.find_by_sku(remote.sku)
            if local is None:
                return self._create(remote, sync_type)
            return self._update(local, remote, sync_type)

        except ReconcileError:
            raise
        except Exception as e:
            logger.debug(f"Reconciling {sku} failed", exc_info=True)
            raise ReconcileError(sku, str(e)) from e

    @staticmethod
    def _sku_of(remote: Union[RemoteProductRecord, Dict[str, Any]]) -> str:
        if isinstance(remote, RemoteProductRecord):
            return remote.sku
        if isinstance(remote, dict) and remote.get("Sku"):
            return str(remote["Sku"])
        return "UNKNOWN"

    def _record(self, report: ReconcileReport, change_type: ChangeType, old: Any, new: Any, sync_type: SyncType) -> None:
        change = ChangeRecord(
            sku=report.sku,
            change_type=change_type,
            old_value=_as_str(old),
            new_value=_as_str(new),
            sync_type=sync_type,
        )
        self.history.record_change(change)
        report.changes.append(change)

    def _update(self, local: LocalProductEntity, remote: RemoteProductRecord, sync_type: SyncType) -> ReconcileReport:
        report = ReconcileReport(sku=remote.sku, outcome=ReconcileOutcome.UNCHANGED)
        product = local.model_copy(deep=True)
        changed = False

        if local.regular_price != remote.price:
            self._record(report, ChangeType.PRICE_UPDATE, local.regular_price, remote.price, sync_type)
            product.regular_price = remote.price
            report.price_changed = True
            changed = True

        # Absent quantity means stock is left alone
        if remote.available_quantity is not None and local.stock_quantity != remote.available_quantity:
            self._record(report, ChangeType.STOCK_UPDATE, local.stock_quantity, remote.available_quantity, sync_type)
            product.set_stock(remote.available_quantity)
            report.stock_changed = True
            changed = True

        product.name = remote.name
        product.full_description = remote.full_description
        product.short_description = remote.short_description
        if (product.name, product.full_description, product.short_description) != (
                local.name, local.full_description, local.short_description):
            changed = True

        if remote.image_url and remote.image_url != local.image_source_url:
            if self._attach_image(product, remote.image_url, report):
                changed = True

        if not changed:
            logger.debug(f"Product {remote.sku} is up to date")
            return report

        self.store.update(local.id, product)
        report.outcome = ReconcileOutcome.UPDATED
        self.oplog.success(f"Product updated: {remote.sku}")
        return report

    def _create(self, remote: RemoteProductRecord, sync_type: SyncType) -> ReconcileReport:
        report = ReconcileReport(sku=remote.sku, outcome=ReconcileOutcome.CREATED)
        self._record(report, ChangeType.NEW_PRODUCT, None, remote.name, sync_type)

        product = LocalProductEntity(
            sku=remote.sku,
            name=remote.name,
            full_description=remote.full_description,
            short_description=remote.short_description,
            regular_price=remote.price,
        )
        if remote.image_url:
            self._attach_image(product, remote.image_url, report)
        if remote.available_quantity is not None:
            product.set_stock(remote.available_quantity)

        self.store.create(product)
        self.oplog.success(f"New product created: {remote.sku}")
        return report

    def _attach_image(self, product: LocalProductEntity, url: str, report: ReconcileReport) -> bool:
        """Ingest an image onto the product. A failure leaves the product without it."""
        if self.images is None:
            return False
        try:
            product.image_ref = self.images.ingest(url)
            product.image_source_url = url
            return True
        except ImageIngestionError as e:
            report.image_failed = True
            self.oplog.error(f"Image ingestion failed for {report.sku}: {e}")
            return False
