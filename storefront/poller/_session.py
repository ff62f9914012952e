"""
Checkout session — the browser checkout flow, end to end.

    session = CheckoutSession(service, cart, address, preferred_crypto=CryptoPreference.BITCOIN)
    await session.submit()
    async with session.poller(gateway):
        ...  # on settlement: settle, clear cart, confirmation path set
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from storefront.cart import Cart
from storefront.checkout import CheckoutRequest, CheckoutResult, CheckoutService, SettlementResult
from storefront.coupons import Coupon
from storefront.errors import ValidationFailed
from storefront.gateway import CryptoPreference, InvoiceGateway
from storefront.orders import ShippingAddress
from storefront.poller._poller import PaymentPoller

logger = logging.getLogger(__name__)


class CheckoutSession:
    def __init__(
        self,
        service: CheckoutService,
        cart: Cart,
        address: ShippingAddress,
        *,
        shipping_cost: float = 0.0,
        coupon: Coupon | None = None,
        coupon_discount: float = 0.0,
        preferred_crypto: CryptoPreference | None = None,
        currency: str = "USD",
    ) -> None:
        self._service = service
        self.cart = cart
        self.address = address
        self.shipping_cost = shipping_cost
        self.coupon = coupon
        self.coupon_discount = coupon_discount if coupon else 0.0
        self.preferred_crypto = preferred_crypto
        self.currency = currency

        self.result: CheckoutResult | None = None
        self.settlement: SettlementResult | None = None
        self.confirmation_path: str | None = None
        self._payment_processed = False

    @property
    def order_id(self) -> str | None:
        return self.result.order.id if self.result else None

    def total(self) -> float:
        return self.cart.subtotal() + self.shipping_cost - self.coupon_discount

    def build_request(self) -> CheckoutRequest:
        return CheckoutRequest(
            items=self.cart.to_line_items(),
            total_amount=self.total(),
            shipping_address=self.address,
            shipping_cost=self.shipping_cost,
            coupon_code=self.coupon.code if self.coupon else None,
            coupon_discount=self.coupon_discount,
            coupon_id=self.coupon.id if self.coupon else None,
            preferred_crypto=self.preferred_crypto,
            currency=self.currency,
        )

    async def submit(self) -> CheckoutResult:
        if self.cart.is_empty:
            raise ValidationFailed("Your cart is empty")
        self.result = await self._service.place_order(self.build_request())
        return self.result

    async def on_payment_complete(self) -> str | None:
        """Settle, clear the cart, return the confirmation path. Runs once."""
        if self._payment_processed:
            return self.confirmation_path
        self._payment_processed = True

        if self.order_id is None:
            self.cart.clear()
            return None

        self.settlement = await self._service.settle(self.order_id)
        self.cart.clear()
        self.confirmation_path = f"/order-confirmation?orderId={quote(self.order_id, safe='')}"
        logger.info("Checkout complete, redirect to %s", self.confirmation_path)
        return self.confirmation_path

    def poller(self, gateway: InvoiceGateway, **options: Any) -> PaymentPoller:
        if self.result is None:
            raise RuntimeError("submit() must succeed before polling")
        return PaymentPoller(
            gateway,
            self.result.invoice.invoice_id,
            self.on_payment_complete,
            **options,
        )


__all__ = ("CheckoutSession",)
