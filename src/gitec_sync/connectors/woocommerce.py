"""
WooCommerce product store backed by the WooCommerce REST API (wc/v3).
"""

import logging
from typing import Any, Dict, Optional

from woocommerce import API

from ..exceptions import ConfigurationError, StoreError
from ..models.catalog import LocalProductEntity, StockStatus
from .base import ProductStore

logger = logging.getLogger(__name__)

IMAGE_SOURCE_META_KEY = "_gitec_image_url"


class WooCommerceProductStore(ProductStore):
    """Product store for a WooCommerce shop."""

    def __init__(
        self,
        url: Optional[str] = None,
        consumer_key: Optional[str] = None,
        consumer_secret: Optional[str] = None,
        timeout: int = 60,
        wcapi: Optional[API] = None,
        **kwargs
    ):
        """
        Initialize the WooCommerce store.

        Args:
            url: Shop URL
            consumer_key: REST API consumer key
            consumer_secret: REST API consumer secret
            timeout: Request timeout in seconds
            wcapi: Pre-built API client (overrides the credentials)
        """
        super().__init__(**kwargs)
        if wcapi is None:
            if not (url and consumer_key and consumer_secret):
                raise ConfigurationError("WooCommerce url, consumer key and consumer secret are required")
            wcapi = API(
                url=url,
                consumer_key=consumer_key,
                consumer_secret=consumer_secret,
                version="wc/v3",
                timeout=timeout,
            )
        self.wcapi = wcapi

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = getattr(self.wcapi, method)(path, **kwargs)
        except Exception as e:
            logger.error(f"WooCommerce {method.upper()} {path} failed: {e}")
            raise StoreError(f"WooCommerce request failed: {e}") from e

        if not response.ok:
            logger.error(f"WooCommerce {method.upper()} error on {path}: {response.status_code} - {response.text}")
            raise StoreError(f"WooCommerce API error ({response.status_code}): {response.text}")
        return response.json()

    def find_by_sku(self, sku: str) -> Optional[LocalProductEntity]:
        products = self._request("get", "products", params={"sku": sku, "per_page": 10})

        # WooCommerce can return fuzzy matches, only an exact SKU counts
        for product in products or []:
            if product.get("sku") == sku:
                return self._to_entity(product)
        return None

    def create(self, entity: LocalProductEntity) -> str:
        payload = self._to_payload(entity)
        payload["type"] = "simple"

        created = self._request("post", "products", data=payload)
        logger.info(f"Created WooCommerce product {created.get('id')} for SKU {entity.sku}")
        return str(created["id"])

    def update(self, product_id: str, entity: LocalProductEntity) -> None:
        self._request("put", f"products/{product_id}", data=self._to_payload(entity))
        logger.info(f"Updated WooCommerce product {product_id} for SKU {entity.sku}")

    def test_connection(self) -> bool:
        try:
            self._request("get", "products", params={"per_page": 1})
            return True
        except StoreError:
            return False

    @staticmethod
    def _to_entity(product: Dict[str, Any]) -> LocalProductEntity:
        images = product.get("images") or []
        meta = {m.get("key"): m.get("value") for m in product.get("meta_data") or []}

        return LocalProductEntity(
            id=str(product["id"]),
            sku=product.get("sku", ""),
            name=product.get("name") or "",
            full_description=product.get("description") or "",
            short_description=product.get("short_description") or "",
            regular_price=product.get("regular_price") or None,
            manage_stock=bool(product.get("manage_stock")),
            stock_quantity=product.get("stock_quantity"),
            stock_status=(StockStatus.IN_STOCK if product.get("stock_status") == "instock"
                          else StockStatus.OUT_OF_STOCK),
            image_ref=str(images[0]["id"]) if images and images[0].get("id") else None,
            image_source_url=meta.get(IMAGE_SOURCE_META_KEY) or None,
        )

    @staticmethod
    def _to_payload(entity: LocalProductEntity) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "sku": entity.sku,
            "name": entity.name,
            "description": entity.full_description,
            "short_description": entity.short_description,
            "regular_price": str(entity.regular_price) if entity.regular_price is not None else "",
            "manage_stock": entity.manage_stock,
            "stock_status": entity.stock_status.value,
        }
        if entity.manage_stock:
            payload["stock_quantity"] = entity.stock_quantity
        # Only WordPress media ids can be attached; the source URL is only
        # remembered alongside an attached image
        if entity.image_ref and entity.image_ref.isdigit():
            payload["images"] = [{"id": int(entity.image_ref)}]
            if entity.image_source_url:
                payload["meta_data"] = [{"key": IMAGE_SOURCE_META_KEY, "value": entity.image_source_url}]
        elif entity.image_ref:
            logger.warning(f"Ignoring image reference {entity.image_ref!r} for SKU {entity.sku}: not a media id")
        return payload
