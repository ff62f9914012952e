"""
Totals and request-shape validation. Pure functions.

    subtotal = Σ (unit price + Σ modifier deltas) × quantity
    total    = subtotal + shipping − coupon discount
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from storefront.checkout._types import CheckoutRequest
from storefront.errors import ValidationFailed
from storefront.orders import LineItem

MAX_ITEMS = 50
MAX_QUANTITY = 1000
MAX_PRICE = 1_000_000
MAX_SHIPPING = 10_000
MAX_MODIFIER_DELTA = 100_000
MAX_COUPON_CODE = 50


def compute_subtotal(items: Iterable[LineItem]) -> float:
    return sum(item.line_total for item in items)


def expected_total(items: Iterable[LineItem], shipping: float = 0.0, discount: float = 0.0) -> float:
    return compute_subtotal(items) + shipping - discount


# ═══════════════════════════════════════════════════════════════════════════════
# Shape Validation
# ═══════════════════════════════════════════════════════════════════════════════


def validate_shape(request: CheckoutRequest) -> None:
    """Raise ValidationFailed on the first malformed field. No I/O."""
    if not request.items:
        raise ValidationFailed("At least one item required")
    if len(request.items) > MAX_ITEMS:
        raise ValidationFailed("Too many items")

    for item in request.items:
        _validate_item(item)

    if not _finite(request.total_amount) or request.total_amount <= 0:
        raise ValidationFailed("Total must be positive")
    if request.total_amount > MAX_PRICE:
        raise ValidationFailed("Total too high")

    if not _finite(request.shipping_cost) or request.shipping_cost < 0:
        raise ValidationFailed("Shipping cost cannot be negative")
    if request.shipping_cost > MAX_SHIPPING:
        raise ValidationFailed("Shipping cost too high")

    if not _finite(request.coupon_discount) or request.coupon_discount < 0:
        raise ValidationFailed("Coupon discount cannot be negative")
    if request.coupon_code is not None and len(request.coupon_code) > MAX_COUPON_CODE:
        raise ValidationFailed("Coupon code too long")

    _validate_address(request)


def _validate_item(item: LineItem) -> None:
    if not item.product_id:
        raise ValidationFailed("Invalid product ID")
    if not item.name or len(item.name) > 200:
        raise ValidationFailed("Product name required")
    if not _finite(item.price) or item.price <= 0:
        raise ValidationFailed("Price must be positive")
    if item.price > MAX_PRICE:
        raise ValidationFailed("Price too high")
    if isinstance(item.quantity, bool) or not isinstance(item.quantity, int):
        raise ValidationFailed("Quantity must be integer")
    if item.quantity < 1:
        raise ValidationFailed("Quantity must be positive")
    if item.quantity > MAX_QUANTITY:
        raise ValidationFailed("Quantity too high")

    for modifier in item.modifiers:
        if not _finite(modifier.price_adjustment):
            raise ValidationFailed("Price adjustment must be finite")
        if modifier.price_adjustment > MAX_MODIFIER_DELTA:
            raise ValidationFailed("Price adjustment too high")
        if modifier.price_adjustment < -MAX_MODIFIER_DELTA:
            raise ValidationFailed("Price adjustment too low")


_ADDRESS_LIMITS = (
    # field, min, max, label
    ("name", 2, 100, "Name"),
    ("address_line1", 5, 200, "Address"),
    ("city", 2, 100, "City"),
    ("state", 2, 100, "State"),
    ("zip", 3, 20, "ZIP code"),
    ("country", 2, 100, "Country"),
)


def _validate_address(request: CheckoutRequest) -> None:
    address = request.shipping_address
    for name, low, high, label in _ADDRESS_LIMITS:
        value = (getattr(address, name) or "").strip()
        if len(value) < low:
            raise ValidationFailed(f"{label} too short")
        if len(value) > high:
            raise ValidationFailed(f"{label} too long")

    if address.address_line2 and len(address.address_line2) > 200:
        raise ValidationFailed("Address too long")
    if address.email and ("@" not in address.email or len(address.email) > 254):
        raise ValidationFailed("Invalid email address")


def _finite(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


__all__ = (
    "MAX_ITEMS",
    "MAX_QUANTITY",
    "compute_subtotal",
    "expected_total",
    "validate_shape",
)
