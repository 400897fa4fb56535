"""
Base class for local product stores the sync engine writes to.
"""

from abc import ABC, abstractmethod
from typing import Optional
import logging

from ..models.catalog import LocalProductEntity

logger = logging.getLogger(__name__)


class ProductStore(ABC):
    """
    Key-value-by-SKU product store.

    Implementations must tolerate concurrent single-record reads and writes;
    the engine never holds a lock on the store.
    """

    def __init__(self, **kwargs):
        """
        Initialize the store.

        Args:
            **kwargs: Backend-specific configuration parameters
        """
        self.config = kwargs
        logger.info(f"Initialized {self.__class__.__name__} product store")

    @abstractmethod
    def find_by_sku(self, sku: str) -> Optional[LocalProductEntity]:
        """
        Look up a product by exact, case-sensitive SKU.

        Returns:
            The product, or None if no product has this SKU

        Raises:
            StoreError: If the lookup itself fails
        """
        pass

    @abstractmethod
    def create(self, entity: LocalProductEntity) -> str:
        """
        Create a product.

        Returns:
            Identifier assigned by the store

        Raises:
            StoreError: If the product could not be created
        """
        pass

    @abstractmethod
    def update(self, product_id: str, entity: LocalProductEntity) -> None:
        """
        Persist all fields of an existing product.

        Raises:
            StoreError: If the product could not be updated
        """
        pass

    def test_connection(self) -> bool:
        """Check the store is reachable."""
        return True
