"""
Coupon service — lookup, one-per-customer check, then evaluate().
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from storefront._types import Clock, utcnow
from storefront.coupons._evaluate import evaluate
from storefront.coupons._store import CouponStore
from storefront.coupons._types import Coupon
from storefront.errors import CouponNotFound, CouponRejected

logger = logging.getLogger(__name__)


class CouponService:
    def __init__(self, store: CouponStore, clock: Clock = utcnow) -> None:
        self._store = store
        self._clock = clock

    @property
    def store(self) -> CouponStore:
        return self._store

    async def validate(
        self,
        code: str,
        subtotal: float,
        email: str | None = None,
        cart_ids: Iterable[str] | None = None,
    ) -> tuple[Coupon, float]:
        """
        Validate `code` against an order.

        Returns (coupon, discount). Raises CouponNotFound for an unknown
        code, CouponRejected for every other rule failure.
        """
        coupon = await self._store.get_by_code(code)
        if coupon is None:
            raise CouponNotFound(code)

        if coupon.one_per_customer and email:
            if await self._store.has_usage(coupon.id, email):
                raise CouponRejected("You have already used this coupon")

        result = evaluate(coupon, subtotal, email, cart_ids, now=self._clock())
        if not result.valid:
            logger.info("Coupon %s rejected: %s", coupon.code, result.error)
            raise CouponRejected(result.error or "Invalid coupon")

        return coupon, result.discount


__all__ = ("CouponService",)
