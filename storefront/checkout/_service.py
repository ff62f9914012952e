"""
Checkout orchestrator.

Strictly sequential, no compensation:

    1. validate      stock, price, coupon   hard-fail
    2. create_order  insert as pending      hard-fail
    3. record_coupon usage counter + row    soft (logged)
    4. create_invoice                       raises InvoiceCreationFailed, order kept
    5. link_invoice  attach invoice id      soft (logged)
    ...
    7. settle        paid → stock → email   once per order
       confirm_payment checks the invoice with the gateway first

Step 6 (status polling) runs on the client, see storefront.poller.
"""

from __future__ import annotations

import logging

from storefront._types import Clock, money_matches, round_money, utcnow
from storefront.catalog import ProductStore, effective_price
from storefront.checkout._totals import compute_subtotal, expected_total, validate_shape
from storefront.checkout._types import CheckoutRequest, CheckoutResult, SettlementResult
from storefront.coupons import CouponService
from storefront.errors import (
    BusinessRuleError,
    CouponRejected,
    GatewayError,
    InsufficientStock,
    InvoiceCreationFailed,
    OrderNotFound,
    PaymentNotConfirmed,
    PriceMismatch,
    ProductNotFound,
    TotalMismatch,
)
from storefront.gateway import CreatedInvoice, CryptoPreference, InvoiceGateway, payment_methods_for
from storefront.log import SecurityEvent, log_security_event
from storefront.notify import NotificationDispatcher
from storefront.orders import NewOrder, Order, OrderStatus, OrderStore
from storefront.steps import StepOutcome, best_effort, run_each

logger = logging.getLogger(__name__)


class CheckoutService:
    def __init__(
        self,
        products: ProductStore,
        orders: OrderStore,
        coupons: CouponService,
        gateway: InvoiceGateway,
        notifications: NotificationDispatcher,
        clock: Clock = utcnow,
    ) -> None:
        self._products = products
        self._orders = orders
        self._coupons = coupons
        self._gateway = gateway
        self._notifications = notifications
        self._clock = clock

    # ═══════════════════════════════════════════════════════════════════════════
    # Steps 1-2 — hard-fail
    # ═══════════════════════════════════════════════════════════════════════════

    async def validate(self, request: CheckoutRequest) -> float:
        """
        Check shape, stock, prices, coupon and total. Returns the recomputed total.

        Unit prices must match the catalog's effective price, and a coupon
        discount must match what the coupon grants for this subtotal.
        Raises ValidationFailed, ProductNotFound, InsufficientStock,
        PriceMismatch, CouponRejected or TotalMismatch. Nothing is written.
        """
        validate_shape(request)

        for item in request.items:
            product = await self._products.get(item.product_id)
            if product is None:
                log_security_event(
                    SecurityEvent.SUSPICIOUS_INPUT,
                    "Order contains non-existent product",
                    product_id=item.product_id,
                )
                raise ProductNotFound(item.product_id, item.name)

            if item.quantity > product.stock:
                log_security_event(
                    SecurityEvent.SUSPICIOUS_INPUT,
                    "Insufficient stock for order",
                    product_id=item.product_id,
                    requested_quantity=item.quantity,
                    available_stock=product.stock,
                )
                raise InsufficientStock(item.product_id, item.name, item.quantity, product.stock)

            price = effective_price(product)
            if not money_matches(price, item.price):
                log_security_event(
                    SecurityEvent.SUSPICIOUS_INPUT,
                    "Order item price mismatch detected",
                    product_id=item.product_id,
                    catalog_price=round_money(price),
                    provided_price=item.price,
                )
                raise PriceMismatch(item.product_id, product.name, price, item.price)

        discount = await self._verify_coupon(request)

        expected = expected_total(request.items, request.shipping_cost, discount)
        if not money_matches(expected, request.total_amount):
            log_security_event(
                SecurityEvent.SUSPICIOUS_INPUT,
                "Order total mismatch detected",
                calculated_total=round_money(expected),
                provided_total=request.total_amount,
                coupon_discount=request.coupon_discount,
            )
            raise TotalMismatch(expected, request.total_amount)

        return expected

    async def _verify_coupon(self, request: CheckoutRequest) -> float:
        """The discount the coupon actually grants; 0 without a coupon code."""
        if not request.coupon_code:
            if request.coupon_discount > 0:
                log_security_event(
                    SecurityEvent.SUSPICIOUS_INPUT,
                    "Coupon discount without a coupon code",
                    coupon_discount=request.coupon_discount,
                )
                raise TotalMismatch(request.coupon_discount, 0.0)
            return 0.0

        coupon, discount = await self._coupons.validate(
            request.coupon_code,
            compute_subtotal(request.items),
            request.shipping_address.email,
            [item.product_id for item in request.items],
        )

        if request.coupon_id is not None and request.coupon_id != coupon.id:
            raise CouponRejected("Coupon does not match the code provided")

        if not money_matches(discount, request.coupon_discount):
            log_security_event(
                SecurityEvent.SUSPICIOUS_INPUT,
                "Coupon discount mismatch detected",
                coupon_code=coupon.code,
                calculated_discount=round_money(discount),
                provided_discount=request.coupon_discount,
            )
            raise TotalMismatch(discount, request.coupon_discount)

        return discount

    async def create_order(self, request: CheckoutRequest) -> Order:
        await self.validate(request)

        order = await self._orders.create(NewOrder(
            items=request.items,
            total_amount=request.total_amount,
            shipping_address=request.shipping_address,
            shipping_cost=request.shipping_cost,
            coupon_code=request.coupon_code,
            coupon_discount=request.coupon_discount,
        ))
        logger.info("Created order %s (%s)", order.order_number, order.id)
        return order

    # ═══════════════════════════════════════════════════════════════════════════
    # Steps 3-5 — soft-fail except invoice creation
    # ═══════════════════════════════════════════════════════════════════════════

    async def record_coupon(self, order: Order, request: CheckoutRequest) -> StepOutcome[bool]:
        if not request.coupon_id or not order.email:
            return StepOutcome.skipped("record coupon usage", "no coupon or no email")

        coupon_id, email = request.coupon_id, order.email

        async def record() -> bool:
            if not await self._coupons.store.record_usage(coupon_id, email, order.id):
                raise BusinessRuleError(f"Coupon {coupon_id} not found")
            return True

        return await best_effort("record coupon usage", record, order_id=order.id, coupon_id=coupon_id)

    async def create_invoice(
        self,
        order: Order,
        preferred_crypto: CryptoPreference | str | None = None,
        currency: str = "USD",
    ) -> CreatedInvoice:
        try:
            invoice = await self._gateway.create_invoice(
                order.total_amount,
                currency,
                order.id,
                order.email,
                payment_methods_for(preferred_crypto),
            )
        except GatewayError as e:
            logger.error("Invoice creation failed for order %s; order left pending", order.id)
            raise InvoiceCreationFailed(order.id, e) from e

        logger.info("Created invoice %s for order %s", invoice.invoice_id, order.id)
        return invoice

    async def link_invoice(self, order_id: str, invoice_id: str) -> StepOutcome[bool]:
        async def link() -> bool:
            if not await self._orders.attach_invoice(order_id, invoice_id):
                raise OrderNotFound(order_id)
            return True

        return await best_effort("link invoice", link, order_id=order_id, invoice_id=invoice_id)

    # ═══════════════════════════════════════════════════════════════════════════
    # Composite
    # ═══════════════════════════════════════════════════════════════════════════

    async def place_order(self, request: CheckoutRequest) -> CheckoutResult:
        """Steps 1-5 in order."""
        order = await self.create_order(request)
        coupon = await self.record_coupon(order, request)
        invoice = await self.create_invoice(order, request.preferred_crypto, request.currency)
        link = await self.link_invoice(order.id, invoice.invoice_id)
        return CheckoutResult(order=order, invoice=invoice, link=link, coupon=coupon)

    async def retry_invoice(
        self,
        order_id: str,
        preferred_crypto: CryptoPreference | str | None = None,
        currency: str = "USD",
    ) -> CheckoutResult:
        """Steps 4-5 again for an order still awaiting payment."""
        order = await self._orders.require(order_id)
        if order.status != OrderStatus.PENDING:
            raise BusinessRuleError("Order is no longer awaiting payment", code="ORDER_NOT_PENDING")

        invoice = await self.create_invoice(order, preferred_crypto, currency)
        link = await self.link_invoice(order.id, invoice.invoice_id)
        return CheckoutResult(order=order, invoice=invoice, link=link)

    # ═══════════════════════════════════════════════════════════════════════════
    # Step 7 — settlement
    # ═══════════════════════════════════════════════════════════════════════════

    async def settle(self, order_id: str) -> SettlementResult:
        """
        Mark paid, decrement stock, send the confirmation.

        The pending → paid transition is a conditional update; only the
        call that performs it touches stock, so repeated calls never
        decrement twice.
        """
        order = await self._orders.require(order_id)

        if not await self._orders.mark_paid(order_id, self._clock()):
            current = await self._orders.require(order_id)
            logger.info("Order %s already %s, settlement skipped", order_id, current.status)
            return SettlementResult(order_id=order_id, already_settled=True, status=current.status)

        async def decrement(product_id: str, quantity: int) -> bool:
            if not await self._products.decrement_stock(product_id, quantity):
                raise ProductNotFound(product_id)
            return True

        effects = await run_each([
            (
                "decrement stock",
                lambda pid=item.product_id, qty=item.quantity: decrement(pid, qty),
                {"order_id": order_id, "product_id": item.product_id},
            )
            for item in order.items
        ])

        paid = await self._orders.require(order_id)
        confirmation_sent = await self._notifications.send_order_confirmation(paid)

        logger.info(
            "Settled order %s: %d stock updates, %d failed, confirmation=%s",
            order.order_number, effects.run, effects.failed, confirmation_sent,
        )
        return SettlementResult(
            order_id=order_id,
            already_settled=False,
            status=paid.status,
            effects=effects,
            confirmation_sent=confirmation_sent,
        )

    async def confirm_payment(self, order_id: str) -> SettlementResult:
        """
        Settle only once the gateway reports the linked invoice as paid.

        Orders already past pending are handed straight to settle(), which
        reports them as already settled. Raises PaymentNotConfirmed when
        no invoice is linked or the invoice is not yet settled.
        """
        order = await self._orders.require(order_id)
        if order.status != OrderStatus.PENDING:
            return await self.settle(order_id)

        if order.btcpay_invoice_id is None:
            log_security_event(
                SecurityEvent.SUSPICIOUS_INPUT,
                "Payment confirmation for order without invoice",
                order_id=order_id,
            )
            raise PaymentNotConfirmed(order_id)

        invoice = await self._gateway.get_invoice(order.btcpay_invoice_id)
        if not invoice.status.is_settled:
            log_security_event(
                SecurityEvent.SUSPICIOUS_INPUT,
                "Payment confirmation before invoice settled",
                order_id=order_id,
                invoice_id=order.btcpay_invoice_id,
                invoice_status=str(invoice.status),
            )
            raise PaymentNotConfirmed(order_id, str(invoice.status))

        return await self.settle(order_id)


__all__ = ("CheckoutService",)
