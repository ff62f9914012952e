"""
Catalog types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from storefront._types import ProductId


@dataclass(frozen=True, slots=True)
class Product:
    id: ProductId
    name: str
    price: float
    discount: float | None
    stock: int
    hidden: bool = False
    modifier_groups: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class NewProduct:
    name: str
    price: float
    stock: int = 0
    discount: float | None = None
    hidden: bool = False
    modifier_groups: list[dict[str, Any]] = field(default_factory=list)


def discounted_price(price: float, discount: float | None) -> float:
    """Apply a percentage discount. Not rounded; totals are compared with a tolerance."""
    if not discount or discount <= 0:
        return price
    return price - price * discount / 100


def effective_price(product: Product) -> float:
    return discounted_price(product.price, product.discount)


__all__ = ("Product", "NewProduct", "discounted_price", "effective_price")
