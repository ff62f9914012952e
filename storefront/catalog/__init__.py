"""
Catalog — products, price and stock.

    from storefront import catalog as K

    store = K.ProductStore(session_factory)
    product = await store.add(K.NewProduct(name="Mug", price=12.5, stock=10))
    await store.decrement_stock(product.id, 3)    # atomic, never below zero
"""

from __future__ import annotations

from storefront.catalog._types import NewProduct, Product, discounted_price, effective_price
from storefront.catalog._store import ProductStore

__all__ = (
    "Product",
    "NewProduct",
    "discounted_price",
    "effective_price",
    "ProductStore",
)
