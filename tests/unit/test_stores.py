"""Unit tests for product store backends."""

from decimal import Decimal
from unittest.mock import Mock

import pytest

from gitec_sync.connectors import STORE_REGISTRY, get_store
from gitec_sync.connectors.memory import InMemoryProductStore
from gitec_sync.connectors.woocommerce import IMAGE_SOURCE_META_KEY, WooCommerceProductStore
from gitec_sync.exceptions import ConfigurationError, StoreError
from gitec_sync.models.catalog import LocalProductEntity, StockStatus


def wc_response(data, ok=True, status_code=200):
    return Mock(ok=ok, status_code=status_code, text="", json=Mock(return_value=data))


class TestInMemoryProductStore:

    def test_create_and_find(self):
        store = InMemoryProductStore()

        product_id = store.create(LocalProductEntity(sku="A", regular_price="1.00"))

        found = store.find_by_sku("A")
        assert found.id == product_id
        assert store.find_by_sku("a") is None

    def test_duplicate_sku(self):
        store = InMemoryProductStore([LocalProductEntity(sku="A")])
        with pytest.raises(StoreError):
            store.create(LocalProductEntity(sku="A"))

    def test_returned_products_are_copies(self):
        store = InMemoryProductStore([LocalProductEntity(sku="A", name="Original")])

        store.find_by_sku("A").name = "Mutated"

        assert store.find_by_sku("A").name == "Original"

    def test_update(self):
        store = InMemoryProductStore([LocalProductEntity(sku="A")])
        product = store.find_by_sku("A")
        product.name = "Renamed"

        store.update(product.id, product)

        assert store.find_by_sku("A").name == "Renamed"

    def test_update_unknown_product(self):
        with pytest.raises(StoreError):
            InMemoryProductStore().update("missing", LocalProductEntity(sku="A"))

    def test_update_cannot_change_sku(self):
        store = InMemoryProductStore([LocalProductEntity(sku="A")])
        product = store.find_by_sku("A")
        with pytest.raises(StoreError):
            store.update(product.id, product.model_copy(update={"sku": "B"}))


class TestWooCommerceProductStore:

    def setup_method(self):
        self.wcapi = Mock()
        self.store = WooCommerceProductStore(wcapi=self.wcapi)

    def test_requires_credentials(self):
        with pytest.raises(ConfigurationError):
            WooCommerceProductStore(url="https://shop.example")

    def test_find_by_sku_requires_exact_match(self):
        self.wcapi.get.return_value = wc_response([
            {"id": 7, "sku": "A-1"},
            {
                "id": 8,
                "sku": "A",
                "name": "Widget",
                "regular_price": "10.5",
                "manage_stock": True,
                "stock_quantity": 3,
                "stock_status": "instock",
                "images": [{"id": 55, "src": "https://shop.example/w.png"}],
                "meta_data": [{"key": IMAGE_SOURCE_META_KEY, "value": "https://b2b.gitec.ge/w.png"}],
            },
        ])

        product = self.store.find_by_sku("A")

        self.wcapi.get.assert_called_once_with("products", params={"sku": "A", "per_page": 10})
        assert product.id == "8"
        assert product.regular_price == Decimal("10.50")
        assert product.stock_quantity == 3
        assert product.stock_status == StockStatus.IN_STOCK
        assert product.image_ref == "55"
        assert product.image_source_url == "https://b2b.gitec.ge/w.png"

    def test_find_by_sku_not_found(self):
        self.wcapi.get.return_value = wc_response([{"id": 7, "sku": "A-1"}])
        assert self.store.find_by_sku("A") is None

    def test_api_error(self):
        self.wcapi.get.return_value = wc_response({"message": "Unauthorized"}, ok=False, status_code=401)
        with pytest.raises(StoreError):
            self.store.find_by_sku("A")

    def test_transport_error(self):
        self.wcapi.get.side_effect = ConnectionError("refused")
        with pytest.raises(StoreError):
            self.store.find_by_sku("A")

    def test_create(self):
        self.wcapi.post.return_value = wc_response({"id": 15})
        product = LocalProductEntity(sku="N", name="New", regular_price="12.5", image_ref="99",
                                     image_source_url="https://b2b.gitec.ge/n.png")
        product.set_stock(0)

        assert self.store.create(product) == "15"

        path = self.wcapi.post.call_args.args[0]
        payload = self.wcapi.post.call_args.kwargs["data"]
        assert path == "products"
        assert payload["type"] == "simple"
        assert payload["regular_price"] == "12.50"
        assert payload["manage_stock"] is True
        assert payload["stock_quantity"] == 0
        assert payload["stock_status"] == "outofstock"
        assert payload["images"] == [{"id": 99}]
        assert payload["meta_data"] == [{"key": IMAGE_SOURCE_META_KEY, "value": "https://b2b.gitec.ge/n.png"}]

    def test_update_without_stock_management(self):
        self.wcapi.put.return_value = wc_response({"id": 8})

        self.store.update("8", LocalProductEntity(sku="A", regular_price="1.00"))

        path = self.wcapi.put.call_args.args[0]
        payload = self.wcapi.put.call_args.kwargs["data"]
        assert path == "products/8"
        assert "stock_quantity" not in payload
        assert "images" not in payload

    def test_non_numeric_image_ref_is_not_attached(self):
        self.wcapi.put.return_value = wc_response({"id": 8})
        product = LocalProductEntity(sku="A", regular_price="1.00", image_ref="3f2a9c.png",
                                     image_source_url="https://b2b.gitec.ge/a.png")

        self.store.update("8", product)

        payload = self.wcapi.put.call_args.kwargs["data"]
        assert "images" not in payload
        assert "meta_data" not in payload
        assert payload["regular_price"] == "1.00"

    def test_connection_check(self):
        self.wcapi.get.return_value = wc_response([], ok=False, status_code=500)
        assert self.store.test_connection() is False


def test_store_registry():
    assert set(STORE_REGISTRY) == {"memory", "woocommerce"}
    assert isinstance(get_store("memory"), InMemoryProductStore)
    with pytest.raises(ValueError):
        get_store("magento")
