"""
Request/response codecs.

Request models implement `to_domain()`, response models `from_domain()`.
JSON field names are camelCase; Python attributes stay snake_case.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storefront import catalog as K
from storefront import checkout as CO
from storefront import coupons as C
from storefront import gateway as G
from storefront import orders as O
from storefront import shipping as SH


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SuccessOut(CamelModel):
    success: bool = True


# ═══════════════════════════════════════════════════════════════════════════════
# Line Items & Address
# ═══════════════════════════════════════════════════════════════════════════════


class SelectedModifierIO(CamelModel):
    group_id: str
    group_label: str = ""
    option_id: str
    option_label: str = ""
    price_adjustment: float = 0.0

    def to_domain(self) -> O.SelectedModifier:
        return O.SelectedModifier(
            group_id=self.group_id,
            group_label=self.group_label,
            option_id=self.option_id,
            option_label=self.option_label,
            price_adjustment=self.price_adjustment,
        )

    @classmethod
    def from_domain(cls, dom: O.SelectedModifier) -> SelectedModifierIO:
        return cls(
            group_id=dom.group_id,
            group_label=dom.group_label,
            option_id=dom.option_id,
            option_label=dom.option_label,
            price_adjustment=dom.price_adjustment,
        )


class LineItemIO(CamelModel):
    id: str
    name: str
    price: float
    quantity: int
    selected_modifiers: list[SelectedModifierIO] = Field(default_factory=list)

    def to_domain(self) -> O.LineItem:
        return O.LineItem(
            product_id=self.id,
            name=self.name,
            price=self.price,
            quantity=self.quantity,
            modifiers=tuple(m.to_domain() for m in self.selected_modifiers),
        )

    @classmethod
    def from_domain(cls, dom: O.LineItem) -> LineItemIO:
        return cls(
            id=dom.product_id,
            name=dom.name,
            price=dom.price,
            quantity=dom.quantity,
            selected_modifiers=[SelectedModifierIO.from_domain(m) for m in dom.modifiers],
        )


class ShippingAddressIO(CamelModel):
    name: str
    address_line1: str
    address_line2: str | None = None
    city: str
    state: str
    zip: str
    country: str
    email: str | None = None
    phone: str | None = None

    def to_domain(self) -> O.ShippingAddress:
        return O.ShippingAddress(
            name=self.name,
            address_line1=self.address_line1,
            address_line2=self.address_line2 or None,
            city=self.city,
            state=self.state,
            zip=self.zip,
            country=self.country,
            email=self.email or None,
            phone=self.phone or None,
        )

    @classmethod
    def from_domain(cls, dom: O.ShippingAddress) -> ShippingAddressIO:
        return cls(**dom.to_dict())


# ═══════════════════════════════════════════════════════════════════════════════
# Orders & Checkout
# ═══════════════════════════════════════════════════════════════════════════════


class CreateOrderIn(CamelModel):
    items: list[LineItemIO]
    total_amount: float
    shipping_address: ShippingAddressIO
    shipping_cost: float = 0.0
    coupon_code: str | None = None
    coupon_discount: float = 0.0

    def to_domain(self) -> CO.CheckoutRequest:
        return CO.CheckoutRequest(
            items=tuple(item.to_domain() for item in self.items),
            total_amount=self.total_amount,
            shipping_address=self.shipping_address.to_domain(),
            shipping_cost=self.shipping_cost,
            coupon_code=self.coupon_code or None,
            coupon_discount=self.coupon_discount,
        )


class CreateOrderOut(CamelModel):
    order_id: str
    order_number: str

    @classmethod
    def from_domain(cls, dom: O.Order) -> CreateOrderOut:
        return cls(order_id=dom.id, order_number=dom.order_number)


class CheckoutIn(CreateOrderIn):
    coupon_id: str | None = None
    preferred_crypto: G.CryptoPreference | None = None
    currency: str = "USD"

    def to_domain(self) -> CO.CheckoutRequest:
        base = super().to_domain()
        return CO.CheckoutRequest(
            items=base.items,
            total_amount=base.total_amount,
            shipping_address=base.shipping_address,
            shipping_cost=base.shipping_cost,
            coupon_code=base.coupon_code,
            coupon_discount=base.coupon_discount,
            coupon_id=self.coupon_id or None,
            preferred_crypto=self.preferred_crypto,
            currency=self.currency,
        )


class CheckoutOut(CamelModel):
    order_id: str
    order_number: str
    invoice_id: str
    checkout_link: str
    amount: str
    currency: str
    invoice_linked: bool

    @classmethod
    def from_domain(cls, dom: CO.CheckoutResult) -> CheckoutOut:
        return cls(
            order_id=dom.order.id,
            order_number=dom.order.order_number,
            invoice_id=dom.invoice.invoice_id,
            checkout_link=dom.invoice.checkout_link,
            amount=dom.invoice.amount,
            currency=dom.invoice.currency,
            invoice_linked=dom.invoice_linked,
        )


class UpdateInvoiceIn(CamelModel):
    order_id: str = Field(min_length=1)
    invoice_id: str = Field(min_length=1)


class OrderIdIn(CamelModel):
    order_id: str = Field(min_length=1)


class MarkPaidOut(CamelModel):
    success: bool = True
    message: str | None = None
    status: str

    @classmethod
    def from_domain(cls, dom: CO.SettlementResult) -> MarkPaidOut:
        message = "Order already marked as paid" if dom.already_settled else None
        return cls(message=message, status=dom.status)


class TrackingOut(CamelModel):
    """What a customer may see about an order."""

    id: str
    order_number: str
    status: str
    total_amount: float
    items: list[LineItemIO]
    created_at: datetime
    tracking_number: str | None = None
    tracking_url: str | None = None
    shipped_at: datetime | None = None

    @classmethod
    def from_domain(cls, dom: O.Order) -> TrackingOut:
        return cls(
            id=dom.id,
            order_number=dom.order_number,
            status=dom.status,
            total_amount=dom.total_amount,
            items=[LineItemIO.from_domain(i) for i in dom.items],
            created_at=dom.created_at,
            tracking_number=dom.tracking_number,
            tracking_url=dom.tracking_url,
            shipped_at=dom.shipped_at,
        )


class OrderOut(TrackingOut):
    shipping_address: ShippingAddressIO
    shipping_cost: float
    coupon_code: str | None = None
    coupon_discount: float = 0.0
    btcpay_invoice_id: str | None = None
    paid_at: datetime | None = None
    shipping_notification_scheduled_at: datetime | None = None
    shipping_notification_sent_at: datetime | None = None

    @classmethod
    def from_domain(cls, dom: O.Order) -> OrderOut:
        return cls(
            **TrackingOut.from_domain(dom).model_dump(),
            shipping_address=ShippingAddressIO.from_domain(dom.shipping_address),
            shipping_cost=dom.shipping_cost,
            coupon_code=dom.coupon_code,
            coupon_discount=dom.coupon_discount,
            btcpay_invoice_id=dom.btcpay_invoice_id,
            paid_at=dom.paid_at,
            shipping_notification_scheduled_at=dom.shipping_notification_scheduled_at,
            shipping_notification_sent_at=dom.shipping_notification_sent_at,
        )


class StatusIn(CamelModel):
    status: str

    def to_domain(self) -> str:
        return self.status.strip().lower()


class ShipIn(CamelModel):
    tracking_number: str = Field(min_length=1, max_length=100)
    tracking_url: str = Field(min_length=1, max_length=500)


# ═══════════════════════════════════════════════════════════════════════════════
# Payment Gateway
# ═══════════════════════════════════════════════════════════════════════════════


class CreateInvoiceIn(CamelModel):
    amount: float = Field(gt=0, le=1_000_000)
    currency: str = Field(default="USD", min_length=3, max_length=5)
    order_id: str = Field(min_length=1)
    buyer_email: str | None = None
    preferred_crypto: G.CryptoPreference | None = None


class CreateInvoiceOut(CamelModel):
    invoice_id: str
    checkout_link: str
    amount: str
    currency: str
    status: str

    @classmethod
    def from_domain(cls, dom: G.CreatedInvoice) -> CreateInvoiceOut:
        return cls(
            invoice_id=dom.invoice_id,
            checkout_link=dom.checkout_link,
            amount=dom.amount,
            currency=dom.currency,
            status=str(dom.status),
        )


class InvoiceOut(CamelModel):
    id: str
    status: str
    amount: str
    currency: str
    created_time: int | None = None
    expiration_time: int | None = None
    checkout_link: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, dom: G.Invoice) -> InvoiceOut:
        return cls(
            id=dom.id,
            status=str(dom.status),
            amount=dom.amount,
            currency=dom.currency,
            created_time=dom.created_time,
            expiration_time=dom.expiration_time,
            checkout_link=dom.checkout_link,
            metadata=dom.metadata,
        )


class PaymentMethodOut(CamelModel):
    payment_method: str
    crypto_code: str
    destination: str
    payment_link: str
    rate: str
    amount: str
    due: str
    total_paid: str
    network_fee: str
    qr_url: str

    @classmethod
    def from_domain(cls, dom: G.PaymentMethodDetails) -> PaymentMethodOut:
        return cls(
            payment_method=dom.payment_method,
            crypto_code=dom.crypto_code,
            destination=dom.destination,
            payment_link=dom.payment_link,
            rate=dom.rate,
            amount=dom.amount,
            due=dom.due,
            total_paid=dom.total_paid,
            network_fee=dom.network_fee,
            qr_url=dom.qr_url,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Coupons
# ═══════════════════════════════════════════════════════════════════════════════


class CouponValidateIn(CamelModel):
    code: str = Field(min_length=1, max_length=50)
    order_total: float = Field(ge=0)
    customer_email: str | None = None
    cart_product_ids: list[str] | None = None


class AppliedCouponOut(CamelModel):
    id: str
    code: str
    discount_type: str
    discount_value: float
    discount: float


class CouponValidateOut(CamelModel):
    success: bool = True
    coupon: AppliedCouponOut

    @classmethod
    def from_domain(cls, dom: tuple[C.Coupon, float]) -> CouponValidateOut:
        coupon, discount = dom
        return cls(
            coupon=AppliedCouponOut(
                id=coupon.id,
                code=coupon.code,
                discount_type=coupon.discount_type,
                discount_value=coupon.discount_value,
                discount=discount,
            )
        )


class CouponApplyIn(CamelModel):
    coupon_id: str = Field(min_length=1)
    customer_email: str = Field(min_length=3)
    order_id: str = Field(min_length=1)


class CouponIn(CamelModel):
    code: str = Field(min_length=1, max_length=50)
    discount_type: str = Field(pattern="^(percentage|fixed)$")
    discount_value: float = Field(gt=0)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    minimum_order_amount: float | None = Field(default=None, ge=0)
    max_uses: int | None = Field(default=None, ge=1)
    one_per_customer: bool = False
    applies_to: str = Field(default=C.Applicability.ALL, pattern="^(all|specific)$")
    product_ids: list[str] = Field(default_factory=list)
    active: bool = True

    def to_domain(self, now: datetime) -> C.NewCoupon:
        return C.NewCoupon(
            code=self.code,
            discount_type=self.discount_type,
            discount_value=self.discount_value,
            valid_from=_naive(self.valid_from) or now,
            valid_until=_naive(self.valid_until),
            minimum_order_amount=self.minimum_order_amount,
            max_uses=self.max_uses,
            one_per_customer=self.one_per_customer,
            applies_to=self.applies_to,
            product_ids=tuple(self.product_ids),
            active=self.active,
        )


class CouponOut(CamelModel):
    id: str
    code: str
    discount_type: str
    discount_value: float
    active: bool
    valid_from: datetime
    valid_until: datetime | None = None
    minimum_order_amount: float | None = None
    max_uses: int | None = None
    current_uses: int = 0
    one_per_customer: bool = False
    applies_to: str
    product_ids: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, dom: C.Coupon) -> CouponOut:
        return cls(
            id=dom.id,
            code=dom.code,
            discount_type=dom.discount_type,
            discount_value=dom.discount_value,
            active=dom.active,
            valid_from=dom.valid_from,
            valid_until=dom.valid_until,
            minimum_order_amount=dom.minimum_order_amount,
            max_uses=dom.max_uses,
            current_uses=dom.current_uses,
            one_per_customer=dom.one_per_customer,
            applies_to=dom.applies_to,
            product_ids=sorted(dom.product_ids),
        )


class ActiveIn(CamelModel):
    active: bool


def _naive(value: datetime | None) -> datetime | None:
    """Storage holds naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


# ═══════════════════════════════════════════════════════════════════════════════
# Shipping
# ═══════════════════════════════════════════════════════════════════════════════


class ShippingCalculateIn(CamelModel):
    country: str = Field(min_length=2, max_length=2)


class ShippingCalculateOut(CamelModel):
    shipping_cost: float
    country: str


class ShippingConfigIO(CamelModel):
    mode: str = Field(pattern="^(basic|advanced)$")
    domestic_rate: float = Field(default=0.0, ge=0)
    international_rate: float = Field(default=0.0, ge=0)
    domestic_countries: list[str] = Field(default_factory=lambda: ["US"])
    country_rates: dict[str, float] = Field(default_factory=dict)
    default_rate: float = Field(default=0.0, ge=0)

    def to_domain(self) -> SH.ShippingConfig:
        return SH.ShippingConfig(
            mode=self.mode,
            domestic_rate=self.domestic_rate,
            international_rate=self.international_rate,
            domestic_countries=tuple(c.upper() for c in self.domestic_countries),
            country_rates={c.upper(): rate for c, rate in self.country_rates.items()},
            default_rate=self.default_rate,
        )

    @classmethod
    def from_domain(cls, dom: SH.ShippingConfig) -> ShippingConfigIO:
        return cls(
            mode=dom.mode,
            domestic_rate=dom.domestic_rate,
            international_rate=dom.international_rate,
            domestic_countries=list(dom.domestic_countries),
            country_rates=dict(dom.country_rates),
            default_rate=dom.default_rate,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Products
# ═══════════════════════════════════════════════════════════════════════════════


class ProductOut(CamelModel):
    id: str
    name: str
    price: float
    discount: float | None = None
    effective_price: float
    stock: int
    hidden: bool = False
    modifier_groups: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, dom: K.Product) -> ProductOut:
        return cls(
            id=dom.id,
            name=dom.name,
            price=dom.price,
            discount=dom.discount,
            effective_price=K.effective_price(dom),
            stock=dom.stock,
            hidden=dom.hidden,
            modifier_groups=dom.modifier_groups,
        )


class ProductIn(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    price: float = Field(gt=0)
    stock: int = Field(default=0, ge=0)
    discount: float | None = Field(default=None, ge=0, le=100)
    hidden: bool = False
    modifier_groups: list[dict[str, Any]] = Field(default_factory=list)

    def to_domain(self) -> K.NewProduct:
        return K.NewProduct(
            name=self.name,
            price=self.price,
            stock=self.stock,
            discount=self.discount,
            hidden=self.hidden,
            modifier_groups=self.modifier_groups,
        )


class ProductIdIn(CamelModel):
    product_id: str = Field(min_length=1)


class VisibilityOut(CamelModel):
    success: bool = True
    hidden: bool


class StockIn(CamelModel):
    stock: int = Field(ge=0)


# ═══════════════════════════════════════════════════════════════════════════════
# Email
# ═══════════════════════════════════════════════════════════════════════════════


class OrderConfirmationIn(CamelModel):
    order_id: str = Field(min_length=1)
    email: str | None = None


class ShippingNotificationIn(CamelModel):
    order_id: str = Field(min_length=1)


class HealthOut(CamelModel):
    status: str = "ok"
    version: str
