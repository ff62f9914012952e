"""
Coupon types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


class DiscountType:
    """Values of coupons.discount_type."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Applicability:
    """Values of coupons.applies_to."""

    ALL = "all"
    SPECIFIC = "specific"


@dataclass(frozen=True, slots=True)
class Coupon:
    id: str
    code: str
    discount_type: str
    discount_value: float
    valid_from: datetime
    active: bool = True
    minimum_order_amount: float | None = None
    max_uses: int | None = None
    current_uses: int = 0
    one_per_customer: bool = False
    valid_until: datetime | None = None
    applies_to: str = Applicability.ALL
    product_ids: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class NewCoupon:
    code: str
    discount_type: str
    discount_value: float
    valid_from: datetime
    minimum_order_amount: float | None = None
    max_uses: int | None = None
    one_per_customer: bool = False
    valid_until: datetime | None = None
    applies_to: str = Applicability.ALL
    product_ids: tuple[str, ...] = ()
    active: bool = True


@dataclass(frozen=True, slots=True)
class CouponValidation:
    """Evaluator outcome: either valid with a discount, or invalid with an error."""

    valid: bool
    discount: float = 0.0
    error: str | None = None

    @staticmethod
    def ok(discount: float) -> CouponValidation:
        return CouponValidation(valid=True, discount=discount)

    @staticmethod
    def rejected(error: str) -> CouponValidation:
        return CouponValidation(valid=False, error=error)


__all__ = (
    "DiscountType",
    "Applicability",
    "Coupon",
    "NewCoupon",
    "CouponValidation",
)
