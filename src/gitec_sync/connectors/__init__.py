"""
Product store framework for the Gitec sync.

This package contains the local product stores the sync engine can reconcile
the remote catalog into.
"""

from .base import ProductStore
from .memory import InMemoryProductStore
from .woocommerce import WooCommerceProductStore

__all__ = [
    "ProductStore",
    "InMemoryProductStore",
    "WooCommerceProductStore",
]

# Store registry for selecting a backend by name
STORE_REGISTRY = {
    "memory": InMemoryProductStore,
    "woocommerce": WooCommerceProductStore,
}

def get_store(backend: str, **config) -> ProductStore:
    """Create a product store instance by backend name."""
    if backend not in STORE_REGISTRY:
        raise ValueError(f"Unknown store backend: {backend}")
    return STORE_REGISTRY[backend](**config)
