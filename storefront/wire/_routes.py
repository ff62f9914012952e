"""
HTTP routes.

Public routes are rate limited per client; admin routes also require
the X-Admin-Token header.
"""

from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from storefront import __version__
from storefront import orders as O
from storefront.errors import (
    BusinessRuleError,
    CouponNotFound,
    OrderNotFound,
    StoreFailure,
    UpstreamError,
    ValidationFailed,
)
from storefront.gateway import CryptoPreference, payment_methods_for
from storefront.ratelimit import API, ORDER_CREATE, PUBLIC
from storefront.wire._codecs import (
    ActiveIn,
    CheckoutIn,
    CheckoutOut,
    CouponApplyIn,
    CouponIn,
    CouponOut,
    CouponValidateIn,
    CouponValidateOut,
    CreateInvoiceIn,
    CreateInvoiceOut,
    CreateOrderIn,
    CreateOrderOut,
    HealthOut,
    InvoiceOut,
    MarkPaidOut,
    OrderConfirmationIn,
    OrderIdIn,
    OrderOut,
    PaymentMethodOut,
    ProductIdIn,
    ProductIn,
    ProductOut,
    ShipIn,
    ShippingCalculateIn,
    ShippingCalculateOut,
    ShippingConfigIO,
    ShippingNotificationIn,
    StatusIn,
    StockIn,
    SuccessOut,
    TrackingOut,
    UpdateInvoiceIn,
    VisibilityOut,
)
from storefront.wire._deps import AdminDep, StorefrontDep, rate_limited

ORDER_LIMIT = Depends(
    rate_limited("orders", ORDER_CREATE, "Too many order creation attempts. Please wait before trying again.")
)
INVOICE_LIMIT = Depends(
    rate_limited("invoices", ORDER_CREATE, "Too many invoice creation attempts. Please wait before trying again.")
)
API_LIMIT = Depends(rate_limited("api", API))
PUBLIC_LIMIT = Depends(rate_limited("public", PUBLIC))

public = APIRouter()
admin = APIRouter(dependencies=[AdminDep])


# ═══════════════════════════════════════════════════════════════════════════════
# Orders & Checkout
# ═══════════════════════════════════════════════════════════════════════════════


@public.post("/api/orders/create", dependencies=[ORDER_LIMIT])
async def create_order(body: CreateOrderIn, storefront: StorefrontDep) -> CreateOrderOut:
    order = await storefront.checkout.create_order(body.to_domain())
    return CreateOrderOut.from_domain(order)


@public.post("/api/orders/update-invoice", dependencies=[API_LIMIT])
async def update_invoice(body: UpdateInvoiceIn, storefront: StorefrontDep) -> SuccessOut:
    if not await storefront.orders.attach_invoice(body.order_id, body.invoice_id):
        raise OrderNotFound(body.order_id)
    return SuccessOut()


@public.post("/api/orders/mark-paid", dependencies=[API_LIMIT])
async def mark_paid(body: OrderIdIn, storefront: StorefrontDep) -> MarkPaidOut:
    settlement = await storefront.checkout.confirm_payment(body.order_id)
    return MarkPaidOut.from_domain(settlement)


@public.get("/api/orders/{order_id}", dependencies=[PUBLIC_LIMIT])
async def track_order(order_id: str, storefront: StorefrontDep) -> TrackingOut:
    return TrackingOut.from_domain(await storefront.orders.require(order_id))


@public.post("/api/checkout", dependencies=[ORDER_LIMIT])
async def checkout(body: CheckoutIn, storefront: StorefrontDep) -> CheckoutOut:
    result = await storefront.checkout.place_order(body.to_domain())
    return CheckoutOut.from_domain(result)


@public.post("/api/orders/{order_id}/retry-invoice", dependencies=[INVOICE_LIMIT])
async def retry_invoice(
    order_id: str,
    storefront: StorefrontDep,
    preferred_crypto: Annotated[CryptoPreference | None, Query(alias="preferredCrypto")] = None,
) -> CheckoutOut:
    result = await storefront.checkout.retry_invoice(order_id, preferred_crypto)
    return CheckoutOut.from_domain(result)


# ═══════════════════════════════════════════════════════════════════════════════
# Payment Gateway
# ═══════════════════════════════════════════════════════════════════════════════


@public.post("/api/btcpay/create-invoice", dependencies=[INVOICE_LIMIT])
async def create_invoice(body: CreateInvoiceIn, storefront: StorefrontDep) -> CreateInvoiceOut:
    invoice = await storefront.gateway.create_invoice(
        body.amount,
        body.currency,
        body.order_id,
        body.buyer_email or None,
        payment_methods_for(body.preferred_crypto),
    )
    return CreateInvoiceOut.from_domain(invoice)


@public.get("/api/btcpay/invoice/{invoice_id}", dependencies=[PUBLIC_LIMIT])
async def get_invoice(invoice_id: str, storefront: StorefrontDep) -> InvoiceOut:
    return InvoiceOut.from_domain(await storefront.gateway.get_invoice(invoice_id))


@public.get("/api/btcpay/payment-methods/{invoice_id}", dependencies=[PUBLIC_LIMIT])
async def get_payment_methods(invoice_id: str, storefront: StorefrontDep) -> list[PaymentMethodOut]:
    methods = await storefront.gateway.get_payment_methods(invoice_id)
    return [PaymentMethodOut.from_domain(m) for m in methods]


# ═══════════════════════════════════════════════════════════════════════════════
# Coupons
# ═══════════════════════════════════════════════════════════════════════════════


@public.post("/api/coupons/validate", dependencies=[API_LIMIT])
async def validate_coupon(body: CouponValidateIn, storefront: StorefrontDep) -> CouponValidateOut:
    validated = await storefront.coupons.validate(
        body.code,
        body.order_total,
        body.customer_email or None,
        body.cart_product_ids,
    )
    return CouponValidateOut.from_domain(validated)


@public.post("/api/coupons/apply", dependencies=[API_LIMIT])
async def apply_coupon(body: CouponApplyIn, storefront: StorefrontDep) -> SuccessOut:
    if not await storefront.coupons.store.record_usage(body.coupon_id, body.customer_email, body.order_id):
        raise CouponNotFound(body.coupon_id)
    return SuccessOut()


# ═══════════════════════════════════════════════════════════════════════════════
# Shipping
# ═══════════════════════════════════════════════════════════════════════════════


@public.post("/api/shipping/calculate", dependencies=[PUBLIC_LIMIT])
async def calculate_shipping(body: ShippingCalculateIn, storefront: StorefrontDep) -> ShippingCalculateOut:
    cost = await storefront.shipping.quote(body.country)
    return ShippingCalculateOut(shipping_cost=cost, country=body.country.upper())


@public.get("/api/shipping/config", dependencies=[PUBLIC_LIMIT])
async def get_shipping_config(storefront: StorefrontDep) -> ShippingConfigIO:
    config = await storefront.shipping.store.get()
    if config is None:
        raise StoreFailure("Failed to fetch shipping configuration")
    return ShippingConfigIO.from_domain(config)


# ═══════════════════════════════════════════════════════════════════════════════
# Products
# ═══════════════════════════════════════════════════════════════════════════════


@public.get("/api/products", dependencies=[PUBLIC_LIMIT])
async def list_products(storefront: StorefrontDep) -> list[ProductOut]:
    return [ProductOut.from_domain(p) for p in await storefront.products.list()]


@public.get("/api/products/{product_id}", dependencies=[PUBLIC_LIMIT])
async def get_product(product_id: str, storefront: StorefrontDep) -> ProductOut:
    product = await storefront.products.get(product_id)
    if product is None or product.hidden:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductOut.from_domain(product)


# ═══════════════════════════════════════════════════════════════════════════════
# Email
# ═══════════════════════════════════════════════════════════════════════════════


@public.post("/api/email/order-confirmation", dependencies=[API_LIMIT])
async def send_order_confirmation(body: OrderConfirmationIn, storefront: StorefrontDep) -> SuccessOut:
    order = await storefront.orders.require(body.order_id)
    recipient = body.email or order.email
    if not recipient:
        raise ValidationFailed("Email address required")
    if not await storefront.notifications.send_order_confirmation(order, to=recipient):
        raise UpstreamError("Failed to send email")
    return SuccessOut()


@public.post("/api/email/shipping-notification", dependencies=[API_LIMIT])
async def send_shipping_notification(body: ShippingNotificationIn, storefront: StorefrontDep) -> SuccessOut:
    order = await storefront.orders.require(body.order_id)
    if not (order.tracking_number and order.tracking_url):
        raise ValidationFailed("Order has no tracking information")
    if not order.email:
        raise ValidationFailed("Email address required")
    if not await storefront.notifications.send_shipping_notice(order):
        raise UpstreamError("Failed to send email")
    # the scheduled sweep must not send it again
    await storefront.orders.mark_notification_sent(order.id, storefront.clock())
    return SuccessOut()


@public.get("/api/health")
async def health() -> HealthOut:
    return HealthOut(version=__version__)


# ═══════════════════════════════════════════════════════════════════════════════
# Admin
# ═══════════════════════════════════════════════════════════════════════════════


@admin.get("/api/admin/orders")
async def admin_list_orders(
    storefront: StorefrontDep,
    status: Annotated[str | None, Query()] = None,
) -> list[OrderOut]:
    return [OrderOut.from_domain(o) for o in await storefront.orders.list(status)]


@admin.post("/api/admin/orders/{order_id}/status")
async def admin_set_status(order_id: str, body: StatusIn, storefront: StorefrontDep) -> OrderOut:
    target = body.to_domain()
    if target not in O.OrderStatus.ALL:
        raise ValidationFailed(f"Unknown order status: {target}")

    if target == O.OrderStatus.PAID:
        # payment confirmed out of band: same side effects as the checkout flow
        order = await storefront.orders.require(order_id)
        if order.status != O.OrderStatus.PENDING:
            raise BusinessRuleError(
                f"Cannot change order status from {order.status} to {target}",
                code="INVALID_TRANSITION",
            )
        await storefront.checkout.settle(order_id)
        return OrderOut.from_domain(await storefront.orders.require(order_id))

    return OrderOut.from_domain(await storefront.orders.transition(order_id, target))


@admin.post("/api/admin/orders/{order_id}/ship")
async def admin_ship_order(order_id: str, body: ShipIn, storefront: StorefrontDep) -> OrderOut:
    now = storefront.clock()
    delay = timedelta(hours=storefront.settings.shipping_notification_delay_hours)
    order = await storefront.orders.mark_shipped(
        order_id,
        body.tracking_number.strip(),
        body.tracking_url.strip(),
        at=now,
        notify_at=now + delay,
    )
    return OrderOut.from_domain(order)


@admin.get("/api/admin/coupons")
async def admin_list_coupons(storefront: StorefrontDep) -> list[CouponOut]:
    return [CouponOut.from_domain(c) for c in await storefront.coupons.store.list()]


@admin.post("/api/admin/coupons", status_code=201)
async def admin_create_coupon(body: CouponIn, storefront: StorefrontDep) -> CouponOut:
    store = storefront.coupons.store
    if await store.get_by_code(body.code) is not None:
        raise BusinessRuleError("Coupon code already exists", code="COUPON_EXISTS")
    coupon = await store.add(body.to_domain(storefront.clock()))
    return CouponOut.from_domain(coupon)


@admin.post("/api/admin/coupons/{coupon_id}/active")
async def admin_set_coupon_active(coupon_id: str, body: ActiveIn, storefront: StorefrontDep) -> SuccessOut:
    if not await storefront.coupons.store.set_active(coupon_id, body.active):
        raise CouponNotFound(coupon_id)
    return SuccessOut()


@admin.delete("/api/admin/coupons/{coupon_id}")
async def admin_delete_coupon(coupon_id: str, storefront: StorefrontDep) -> SuccessOut:
    if not await storefront.coupons.store.delete(coupon_id):
        raise CouponNotFound(coupon_id)
    return SuccessOut()


@admin.post("/api/shipping/config")
async def admin_save_shipping_config(body: ShippingConfigIO, storefront: StorefrontDep) -> ShippingConfigIO:
    saved = await storefront.shipping.store.upsert(body.to_domain())
    return ShippingConfigIO.from_domain(saved)


@admin.post("/api/products/toggle-visibility")
async def admin_toggle_visibility(body: ProductIdIn, storefront: StorefrontDep) -> VisibilityOut:
    product = await storefront.products.get(body.product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    await storefront.products.set_hidden(product.id, not product.hidden)
    return VisibilityOut(hidden=not product.hidden)


@admin.post("/api/admin/products", status_code=201)
async def admin_create_product(body: ProductIn, storefront: StorefrontDep) -> ProductOut:
    return ProductOut.from_domain(await storefront.products.add(body.to_domain()))


@admin.post("/api/admin/products/{product_id}/stock")
async def admin_set_stock(product_id: str, body: StockIn, storefront: StorefrontDep) -> SuccessOut:
    if not await storefront.products.set_stock(product_id, body.stock):
        raise HTTPException(status_code=404, detail="Product not found")
    return SuccessOut()


__all__ = ("public", "admin")
