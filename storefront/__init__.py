"""
storefront — a small crypto-paid web shop backend.

    from storefront import checkout as CO   # Order placement and settlement
    from storefront import coupons as C     # Coupon evaluation
    from storefront import shipping as SH   # Shipping cost resolution
    from storefront import notify as N      # Transactional email and the sweep
    from storefront import poller as P      # Invoice status polling

    storefront = await Storefront.open(Settings.from_env())
    result = await storefront.checkout.place_order(request)
    await storefront.checkout.settle(result.order.id)

The HTTP surface lives in storefront.wire (FastAPI).
"""

__version__ = "0.1.0"

from storefront import catalog
from storefront import coupons
from storefront import shipping
from storefront import orders
from storefront import gateway
from storefront import steps
from storefront import notify
from storefront import checkout
from storefront import poller
from storefront.cart import Cart, CartLine
from storefront.config import Settings
from storefront._container import Storefront
from storefront._types import (
    OrderId,
    ProductId,
    InvoiceId,
    Clock,
    utcnow,
    money_matches,
    round_money,
    format_money,
)

__all__ = (
    "catalog",
    "coupons",
    "shipping",
    "orders",
    "gateway",
    "steps",
    "notify",
    "checkout",
    "poller",
    "Cart",
    "CartLine",
    "Settings",
    "Storefront",
    "OrderId",
    "ProductId",
    "InvoiceId",
    "Clock",
    "utcnow",
    "money_matches",
    "round_money",
    "format_money",
)
