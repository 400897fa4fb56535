"""
In-process product store, used for dry runs and tests.
"""

import logging
import threading
import uuid
from typing import Dict, List, Optional

from ..exceptions import StoreError
from ..models.catalog import LocalProductEntity
from .base import ProductStore

logger = logging.getLogger(__name__)


class InMemoryProductStore(ProductStore):
    """Thread-safe dictionary-backed product store keyed by id, indexed by SKU."""

    def __init__(self, products: Optional[List[LocalProductEntity]] = None, **kwargs):
        super().__init__(**kwargs)
        self._lock = threading.Lock()
        self._products: Dict[str, LocalProductEntity] = {}
        self._ids_by_sku: Dict[str, str] = {}

        for product in products or []:
            self.create(product)

    def find_by_sku(self, sku: str) -> Optional[LocalProductEntity]:
        with self._lock:
            product_id = self._ids_by_sku.get(sku)
            if product_id is None:
                return None
            # Hand out copies so callers cannot mutate stored state without update()
            return self._products[product_id].model_copy(deep=True)

    def create(self, entity: LocalProductEntity) -> str:
        with self._lock:
            if entity.sku in self._ids_by_sku:
                raise StoreError(f"Product with SKU {entity.sku} already exists")

            product_id = entity.id or str(uuid.uuid4())
            self._products[product_id] = entity.model_copy(update={"id": product_id}, deep=True)
            self._ids_by_sku[entity.sku] = product_id

        logger.debug(f"Created product {product_id} for SKU {entity.sku}")
        return product_id

    def update(self, product_id: str, entity: LocalProductEntity) -> None:
        with self._lock:
            existing = self._products.get(product_id)
            if existing is None:
                raise StoreError(f"Product {product_id} not found")
            if entity.sku != existing.sku:
                raise StoreError(f"Cannot change SKU of product {product_id}")

            self._products[product_id] = entity.model_copy(update={"id": product_id}, deep=True)

        logger.debug(f"Updated product {product_id} for SKU {entity.sku}")

    def all(self) -> List[LocalProductEntity]:
        """Snapshot of every stored product."""
        with self._lock:
            return [p.model_copy(deep=True) for p in self._products.values()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._products)
