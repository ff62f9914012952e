"""
Checkout types.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from storefront.gateway import CreatedInvoice, CryptoPreference
from storefront.orders import LineItem, Order, ShippingAddress
from storefront.steps import EffectsReport, StepOutcome


@dataclass(frozen=True, slots=True)
class CheckoutRequest:
    """Everything the browser submits to place an order."""

    items: tuple[LineItem, ...]
    total_amount: float
    shipping_address: ShippingAddress
    shipping_cost: float = 0.0
    coupon_code: str | None = None
    coupon_discount: float = 0.0
    coupon_id: str | None = None
    preferred_crypto: CryptoPreference | None = None
    currency: str = "USD"


@dataclass(frozen=True, slots=True)
class CheckoutResult:
    """Steps 1-5 done: the order exists and has an invoice to pay."""

    order: Order
    invoice: CreatedInvoice
    link: StepOutcome[bool]
    coupon: StepOutcome[bool] | None = None

    @property
    def invoice_linked(self) -> bool:
        return self.link.ok


@dataclass(frozen=True, slots=True)
class SettlementResult:
    order_id: str
    already_settled: bool
    status: str
    effects: EffectsReport = field(default_factory=EffectsReport)
    confirmation_sent: bool = False


__all__ = ("CheckoutRequest", "CheckoutResult", "SettlementResult")
