"""
Order types.

The stored status label is the state; there is no separate state object.

    pending ──► paid ──► shipped ──► delivered
       │          │
       └──────────┴──► cancelled
"""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from storefront._types import OrderId, ProductId

# ═══════════════════════════════════════════════════════════════════════════════
# Status
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStatus:
    """Recognized status labels. Anything else is stored and returned untouched."""

    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    ALL = (PENDING, PAID, SHIPPED, DELIVERED, CANCELLED)


TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


# ═══════════════════════════════════════════════════════════════════════════════
# Line Items
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SelectedModifier:
    group_id: str
    group_label: str
    option_id: str
    option_label: str
    price_adjustment: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "group_id": self.group_id,
            "group_label": self.group_label,
            "option_id": self.option_id,
            "option_label": self.option_label,
            "price_adjustment": self.price_adjustment,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> SelectedModifier:
        return SelectedModifier(
            group_id=str(data.get("group_id", "")),
            group_label=str(data.get("group_label", "")),
            option_id=str(data.get("option_id", "")),
            option_label=str(data.get("option_label", "")),
            price_adjustment=float(data.get("price_adjustment", 0)),
        )


@dataclass(frozen=True, slots=True)
class LineItem:
    product_id: ProductId
    name: str
    price: float
    quantity: int
    modifiers: tuple[SelectedModifier, ...] = ()

    @property
    def effective_price(self) -> float:
        """Unit price plus every selected modifier's delta."""
        return self.price + sum(m.price_adjustment for m in self.modifiers)

    @property
    def line_total(self) -> float:
        return self.effective_price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.product_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "selected_modifiers": [m.to_dict() for m in self.modifiers],
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> LineItem:
        return LineItem(
            product_id=str(data["id"]),
            name=str(data.get("name", "")),
            price=float(data.get("price", 0)),
            quantity=int(data.get("quantity", 0)),
            modifiers=tuple(
                SelectedModifier.from_dict(m) for m in data.get("selected_modifiers") or ()
            ),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Address
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ShippingAddress:
    name: str
    address_line1: str
    city: str
    state: str
    zip: str
    country: str
    address_line2: str | None = None
    email: str | None = None
    phone: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2,
            "city": self.city,
            "state": self.state,
            "zip": self.zip,
            "country": self.country,
            "email": self.email,
            "phone": self.phone,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ShippingAddress:
        return ShippingAddress(
            name=data.get("name", ""),
            address_line1=data.get("address_line1", ""),
            address_line2=data.get("address_line2"),
            city=data.get("city", ""),
            state=data.get("state", ""),
            zip=data.get("zip", ""),
            country=data.get("country", ""),
            email=data.get("email"),
            phone=data.get("phone"),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Order
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class NewOrder:
    """Validated fields for an order about to be inserted as pending."""

    items: tuple[LineItem, ...]
    total_amount: float
    shipping_address: ShippingAddress
    shipping_cost: float = 0.0
    coupon_code: str | None = None
    coupon_discount: float = 0.0


@dataclass(frozen=True, slots=True)
class Order:
    id: OrderId
    order_number: str
    status: str
    total_amount: float
    items: tuple[LineItem, ...]
    shipping_address: ShippingAddress
    created_at: datetime
    shipping_cost: float = 0.0
    coupon_code: str | None = None
    coupon_discount: float = 0.0
    btcpay_invoice_id: str | None = None
    tracking_number: str | None = None
    tracking_url: str | None = None
    shipped_at: datetime | None = None
    shipping_notification_scheduled_at: datetime | None = None
    shipping_notification_sent_at: datetime | None = None
    paid_at: datetime | None = None
    updated_at: datetime | None = field(default=None, compare=False)

    @property
    def email(self) -> str | None:
        return self.shipping_address.email


# ═══════════════════════════════════════════════════════════════════════════════
# Order Number
# ═══════════════════════════════════════════════════════════════════════════════

_BASE36 = string.digits + string.ascii_uppercase


def generate_order_number(now: datetime) -> str:
    """
    Human-legible order number: ORD-<epoch millis>-<7 base36 chars>.

    Unique in practice; not collision-checked beyond the column's UNIQUE.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    millis = int(now.timestamp() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(7))
    return f"ORD-{millis}-{suffix}"


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
)
