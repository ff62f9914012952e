"""
Orders — records, status vocabulary and guarded transitions.

    from storefront import orders as O

    order = await store.create(O.NewOrder(items=..., total_amount=75.0, shipping_address=addr))
    await store.mark_paid(order.id)     # True once, False afterwards
"""

from __future__ import annotations

from storefront.orders._types import (
    OrderStatus,
    TRANSITIONS,
    can_transition,
    SelectedModifier,
    LineItem,
    ShippingAddress,
    NewOrder,
    Order,
    generate_order_number,
)
from storefront.orders._store import OrderStore, MUTABLE_FIELDS

__all__ = (
    "OrderStatus",
    "TRANSITIONS",
    "can_transition",
    "SelectedModifier",
    "LineItem",
    "ShippingAddress",
    "NewOrder",
    "Order",
    "generate_order_number",
    "OrderStore",
    "MUTABLE_FIELDS",
)
