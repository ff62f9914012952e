"""
Coupons — evaluation, storage, usage recording.

    from storefront import coupons as C

    result = C.evaluate(coupon, subtotal=100.0)
    match result:
        case C.CouponValidation(valid=True, discount=d):
            ...
        case C.CouponValidation(error=err):
            ...

    coupon, discount = await C.CouponService(store).validate("SAVE10", 100.0)
"""

from __future__ import annotations

from storefront.coupons._types import (
    DiscountType,
    Applicability,
    Coupon,
    NewCoupon,
    CouponValidation,
)
from storefront.coupons._evaluate import evaluate, discount_for
from storefront.coupons._store import CouponStore
from storefront.coupons._service import CouponService

__all__ = (
    "DiscountType",
    "Applicability",
    "Coupon",
    "NewCoupon",
    "CouponValidation",
    "evaluate",
    "discount_for",
    "CouponStore",
    "CouponService",
)
