"""Tests for coupon evaluation, storage and lookup."""

from datetime import timedelta

import pytest

from storefront import coupons as C
from storefront.errors import CouponNotFound, CouponRejected

from conftest import NOW


def coupon(**overrides) -> C.Coupon:
    fields = dict(
        id="c1",
        code="SAVE10",
        discount_type=C.DiscountType.PERCENTAGE,
        discount_value=10.0,
        valid_from=NOW - timedelta(days=1),
    )
    fields.update(overrides)
    return C.Coupon(**fields)


class TestEvaluate:
    def test_save10_on_100_gives_10_off(self):
        save10 = coupon(minimum_order_amount=50.0)

        result = C.evaluate(save10, 100.0, now=NOW)

        assert result.valid is True
        assert result.discount == pytest.approx(10.0)
        assert 100.0 - result.discount == pytest.approx(90.0)

    @pytest.mark.parametrize("overrides", [
        {},
        {"discount_type": C.DiscountType.FIXED, "discount_value": 5.0},
        {"valid_until": NOW + timedelta(days=30)},
        {"max_uses": 100, "current_uses": 0},
        {"applies_to": C.Applicability.SPECIFIC, "product_ids": frozenset({"p1"})},
    ])
    def test_inactive_is_always_rejected(self, overrides):
        result = C.evaluate(coupon(active=False, **overrides), 500.0, cart_product_ids=["p1"], now=NOW)

        assert result.valid is False
        assert result.error == "This coupon is not active"

    @pytest.mark.parametrize("subtotal,value", [(100.0, 10.0), (40.0, 150.0), (0.0, 50.0), (19.99, 100.0)])
    def test_percentage_discount_never_exceeds_subtotal(self, subtotal, value):
        result = C.evaluate(coupon(discount_value=value), subtotal, now=NOW)

        assert result.discount == pytest.approx(min(subtotal * value / 100, subtotal))
        assert result.discount <= subtotal

    @pytest.mark.parametrize("subtotal,value", [(100.0, 15.0), (10.0, 25.0), (25.0, 25.0)])
    def test_fixed_discount_is_capped_at_subtotal(self, subtotal, value):
        fixed = coupon(discount_type=C.DiscountType.FIXED, discount_value=value)

        assert C.evaluate(fixed, subtotal, now=NOW).discount == pytest.approx(min(value, subtotal))

    def test_not_yet_valid(self):
        result = C.evaluate(coupon(valid_from=NOW + timedelta(hours=1)), 100.0, now=NOW)
        assert result.error == "This coupon is not yet valid"

    def test_expired(self):
        result = C.evaluate(coupon(valid_until=NOW - timedelta(seconds=1)), 100.0, now=NOW)
        assert result.error == "This coupon has expired"

    def test_usage_limit_reached(self):
        result = C.evaluate(coupon(max_uses=3, current_uses=3), 100.0, now=NOW)
        assert result.error == "This coupon has reached its usage limit"

    def test_zero_max_uses_means_unlimited(self):
        assert C.evaluate(coupon(max_uses=0, current_uses=50), 100.0, now=NOW).valid

    def test_minimum_order_message_names_the_threshold(self):
        result = C.evaluate(coupon(minimum_order_amount=50.0), 49.99, now=NOW)
        assert result.error == "Minimum order amount of $50.00 required"

    def test_specific_products_must_be_in_cart(self):
        specific = coupon(applies_to=C.Applicability.SPECIFIC, product_ids=frozenset({"p1", "p2"}))

        assert C.evaluate(specific, 100.0, cart_product_ids=["p2", "p9"], now=NOW).valid
        rejected = C.evaluate(specific, 100.0, cart_product_ids=["p9"], now=NOW)
        assert rejected.error == "This coupon is not applicable to items in your cart"

    def test_specific_products_unchecked_without_cart(self):
        specific = coupon(applies_to=C.Applicability.SPECIFIC, product_ids=frozenset({"p1"}))
        assert C.evaluate(specific, 100.0, now=NOW).valid

    def test_checks_stop_at_first_failure(self):
        # expired and below minimum: expiry is checked first
        result = C.evaluate(
            coupon(valid_until=NOW - timedelta(days=1), minimum_order_amount=500.0),
            10.0,
            now=NOW,
        )
        assert result.error == "This coupon has expired"


class TestCouponStore:
    async def test_code_is_stored_upper_case(self, make_coupon, coupon_store):
        created = await make_coupon(code=" save10 ")

        assert created.code == "SAVE10"
        assert (await coupon_store.get_by_code("Save10")).id == created.id

    async def test_record_usage_increments_and_logs_usage(self, make_coupon, coupon_store):
        created = await make_coupon()

        assert await coupon_store.record_usage(created.id, "Ada@Example.com", "order-1")

        assert (await coupon_store.get(created.id)).current_uses == 1
        assert await coupon_store.has_usage(created.id, "ada@example.com")
        assert not await coupon_store.has_usage(created.id, "bob@example.com")

    async def test_record_usage_for_missing_coupon(self, coupon_store):
        assert await coupon_store.record_usage("missing", "ada@example.com", "order-1") is False

    async def test_set_active_and_delete(self, make_coupon, coupon_store):
        created = await make_coupon()

        assert await coupon_store.set_active(created.id, False)
        assert (await coupon_store.get(created.id)).active is False

        await coupon_store.record_usage(created.id, "ada@example.com", "order-1")
        assert await coupon_store.delete(created.id)
        assert await coupon_store.get(created.id) is None
        assert await coupon_store.delete(created.id) is False


class TestCouponService:
    async def test_unknown_code(self, coupon_store, clock):
        service = C.CouponService(coupon_store, clock)

        with pytest.raises(CouponNotFound):
            await service.validate("NOPE", 100.0)

    async def test_valid_code_returns_discount(self, make_coupon, coupon_store, clock):
        await make_coupon(minimum_order_amount=50.0)
        service = C.CouponService(coupon_store, clock)

        found, discount = await service.validate("save10", 100.0)

        assert found.code == "SAVE10"
        assert discount == pytest.approx(10.0)

    async def test_rule_failure_is_rejected_with_reason(self, make_coupon, coupon_store, clock):
        await make_coupon(minimum_order_amount=50.0)
        service = C.CouponService(coupon_store, clock)

        with pytest.raises(CouponRejected) as exc_info:
            await service.validate("SAVE10", 20.0)

        assert exc_info.value.message == "Minimum order amount of $50.00 required"

    async def test_one_per_customer(self, make_coupon, coupon_store, clock):
        created = await make_coupon(one_per_customer=True)
        service = C.CouponService(coupon_store, clock)
        await coupon_store.record_usage(created.id, "ada@example.com", "order-1")

        with pytest.raises(CouponRejected, match="already used"):
            await service.validate("SAVE10", 100.0, email="ADA@example.com")

        _, discount = await service.validate("SAVE10", 100.0, email="bob@example.com")
        assert discount == pytest.approx(10.0)
