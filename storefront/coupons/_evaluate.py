"""
Coupon evaluator — pure validation and discount calculation.

Checks run in a fixed order and stop at the first failure:

    active → valid_from → valid_until → max_uses → minimum order → applicability

One-per-customer is not checked here; it needs the usage table and is
done by CouponService before evaluate() runs.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from storefront._types import format_money, utcnow
from storefront.coupons._types import Applicability, Coupon, CouponValidation, DiscountType


def evaluate(
    coupon: Coupon,
    subtotal: float,
    customer_email: str | None = None,
    cart_product_ids: Iterable[str] | None = None,
    now: datetime | None = None,
) -> CouponValidation:
    now = now or utcnow()

    if not coupon.active:
        return CouponValidation.rejected("This coupon is not active")

    if now < coupon.valid_from:
        return CouponValidation.rejected("This coupon is not yet valid")

    if coupon.valid_until is not None and now > coupon.valid_until:
        return CouponValidation.rejected("This coupon has expired")

    if coupon.max_uses and coupon.current_uses >= coupon.max_uses:
        return CouponValidation.rejected("This coupon has reached its usage limit")

    if coupon.minimum_order_amount and subtotal < coupon.minimum_order_amount:
        return CouponValidation.rejected(
            f"Minimum order amount of {format_money(coupon.minimum_order_amount)} required"
        )

    # Without cart ids the applicability check is skipped.
    if coupon.applies_to == Applicability.SPECIFIC and cart_product_ids is not None:
        if coupon.product_ids.isdisjoint(cart_product_ids):
            return CouponValidation.rejected(
                "This coupon is not applicable to items in your cart"
            )

    return CouponValidation.ok(discount_for(coupon, subtotal))


def discount_for(coupon: Coupon, subtotal: float) -> float:
    """Discount amount, capped at the subtotal."""
    match coupon.discount_type:
        case DiscountType.PERCENTAGE:
            discount = subtotal * coupon.discount_value / 100
        case _:
            discount = coupon.discount_value
    return max(0.0, min(discount, subtotal))


__all__ = ("evaluate", "discount_for")
