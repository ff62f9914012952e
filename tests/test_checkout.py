"""Tests for order placement and settlement."""

import pytest

from storefront import checkout as CO
from storefront import orders as O
from storefront.errors import (
    CouponNotFound,
    CouponRejected,
    GatewayError,
    InsufficientStock,
    InvoiceCreationFailed,
    PaymentNotConfirmed,
    PriceMismatch,
    ProductNotFound,
    TotalMismatch,
    ValidationFailed,
)

BLACK = O.SelectedModifier("color", "Color", "black", "Black", 5.0)


def request_for(product, address, *, quantity=3, total=75.0, **kwargs):
    return CO.CheckoutRequest(
        items=(O.LineItem(product.id, product.name, product.price, quantity, (BLACK,)),),
        total_amount=total,
        shipping_address=address,
        **kwargs,
    )


class TestTotals:
    def test_expected_total(self):
        items = (O.LineItem("p1", "Mug", 20.0, 3, (BLACK,)),)

        assert CO.compute_subtotal(items) == 75.0
        assert CO.expected_total(items, shipping=10.0, discount=7.5) == 77.5

    @pytest.mark.parametrize("overrides,message", [
        ({"items": ()}, "At least one item required"),
        ({"total_amount": 0}, "Total must be positive"),
        ({"shipping_cost": -1}, "Shipping cost cannot be negative"),
        ({"coupon_discount": -1}, "Coupon discount cannot be negative"),
        ({"coupon_code": "X" * 51}, "Coupon code too long"),
    ])
    def test_shape(self, address, overrides, message):
        fields = dict(
            items=(O.LineItem("p1", "Mug", 20.0, 1),),
            total_amount=20.0,
            shipping_address=address,
        )
        fields.update(overrides)

        with pytest.raises(ValidationFailed) as exc_info:
            CO.validate_shape(CO.CheckoutRequest(**fields))

        assert exc_info.value.message == message

    def test_quantity_must_be_an_integer(self, address):
        request = CO.CheckoutRequest(
            items=(O.LineItem("p1", "Mug", 20.0, 1.5),),
            total_amount=30.0,
            shipping_address=address,
        )

        with pytest.raises(ValidationFailed, match="Quantity must be integer"):
            CO.validate_shape(request)


class TestValidate:
    async def test_total_matches(self, storefront, make_product, address):
        mug = await make_product(stock=5)

        assert await storefront.checkout.validate(request_for(mug, address)) == 75.0

    async def test_insufficient_stock(self, storefront, make_product, address):
        mug = await make_product(stock=2)

        with pytest.raises(InsufficientStock) as exc_info:
            await storefront.checkout.validate(request_for(mug, address, quantity=5, total=125.0))

        assert exc_info.value.requested == 5
        assert exc_info.value.available == 2
        assert exc_info.value.message == "Insufficient stock for Mug. Only 2 available."

    async def test_unknown_product(self, storefront, address):
        request = CO.CheckoutRequest(
            items=(O.LineItem("missing", "Ghost", 10.0, 1),),
            total_amount=10.0,
            shipping_address=address,
        )

        with pytest.raises(ProductNotFound):
            await storefront.checkout.validate(request)

    async def test_total_mismatch(self, storefront, make_product, address):
        mug = await make_product(stock=5)

        with pytest.raises(TotalMismatch):
            await storefront.checkout.validate(request_for(mug, address, total=60.0))

    async def test_rounding_is_tolerated(self, storefront, make_product, address):
        mug = await make_product(stock=5)

        assert await storefront.checkout.validate(request_for(mug, address, total=75.004))

    async def test_client_price_must_match_catalog(self, storefront, make_product, address):
        mug = await make_product(price=100.0, stock=5)
        request = CO.CheckoutRequest(
            items=(O.LineItem(mug.id, mug.name, 0.01, 1),),
            total_amount=0.01,
            shipping_address=address,
        )

        with pytest.raises(PriceMismatch) as exc_info:
            await storefront.checkout.validate(request)

        assert exc_info.value.expected == 100.0
        assert exc_info.value.message == "Price for Mug has changed. Please refresh your cart."

    async def test_product_discount_is_the_expected_price(self, storefront, make_product, address):
        mug = await make_product(price=20.0, discount=25, stock=5)
        request = CO.CheckoutRequest(
            items=(O.LineItem(mug.id, mug.name, 15.0, 3, (BLACK,)),),
            total_amount=60.0,
            shipping_address=address,
        )

        assert await storefront.checkout.validate(request) == 60.0

    async def test_undiscounted_price_for_a_discounted_product(self, storefront, make_product, address):
        mug = await make_product(price=20.0, discount=25, stock=5)

        with pytest.raises(PriceMismatch):
            await storefront.checkout.validate(request_for(mug, address))

    async def test_unknown_coupon_code(self, storefront, make_product, address):
        mug = await make_product(price=100.0, stock=5)
        request = CO.CheckoutRequest(
            items=(O.LineItem(mug.id, mug.name, 100.0, 1),),
            total_amount=1.0,
            shipping_address=address,
            coupon_code="DOES-NOT-EXIST",
            coupon_discount=99.0,
        )

        with pytest.raises(CouponNotFound):
            await storefront.checkout.validate(request)

    async def test_inflated_coupon_discount(self, storefront, make_product, make_coupon, address):
        mug = await make_product(stock=5)
        await make_coupon()

        with pytest.raises(TotalMismatch):
            await storefront.checkout.validate(request_for(
                mug, address, total=25.0, coupon_code="SAVE10", coupon_discount=50.0,
            ))

    async def test_discount_without_code(self, storefront, make_product, address):
        mug = await make_product(stock=5)

        with pytest.raises(TotalMismatch):
            await storefront.checkout.validate(request_for(mug, address, total=25.0, coupon_discount=50.0))

    async def test_rejected_coupon_blocks_checkout(self, storefront, make_product, make_coupon, address):
        mug = await make_product(stock=5)
        await make_coupon(minimum_order_amount=100.0)

        with pytest.raises(CouponRejected):
            await storefront.checkout.validate(request_for(
                mug, address, total=67.5, coupon_code="SAVE10", coupon_discount=7.5,
            ))

    async def test_coupon_id_must_match_code(self, storefront, make_product, make_coupon, address):
        mug = await make_product(stock=5)
        await make_coupon()
        other = await make_coupon(code="OTHER")

        with pytest.raises(CouponRejected, match="does not match"):
            await storefront.checkout.validate(request_for(
                mug, address, total=67.5, coupon_code="SAVE10", coupon_discount=7.5, coupon_id=other.id,
            ))


class TestPlaceOrder:
    async def test_happy_path(self, storefront, gateway, make_product, address):
        mug = await make_product(stock=5)

        result = await storefront.checkout.place_order(
            request_for(mug, address, preferred_crypto="monero"),
        )

        assert result.order.status == O.OrderStatus.PENDING
        assert result.invoice.invoice_id == "inv-1"
        assert result.invoice_linked
        assert gateway.created[0]["amount"] == 75.0
        assert gateway.created[0]["payment_methods"] == ("XMR",)
        assert gateway.created[0]["buyer_email"] == "ada@example.com"

        stored = await storefront.orders.get(result.order.id)
        assert stored.btcpay_invoice_id == "inv-1"
        # stock is only touched at settlement
        assert (await storefront.products.get(mug.id)).stock == 5

    async def test_nothing_written_when_validation_fails(self, storefront, gateway, make_product, address):
        mug = await make_product(stock=1)

        with pytest.raises(InsufficientStock):
            await storefront.checkout.place_order(request_for(mug, address))

        assert await storefront.orders.list() == []
        assert gateway.created == []

    async def test_invoice_failure_keeps_pending_order(self, storefront, gateway, make_product, address):
        mug = await make_product(stock=5)
        gateway.create_error = GatewayError("Failed to create invoice", status_code=503)

        with pytest.raises(InvoiceCreationFailed) as exc_info:
            await storefront.checkout.place_order(request_for(mug, address))

        assert exc_info.value.status_code == 503
        (order,) = await storefront.orders.list()
        assert order.id == exc_info.value.order_id
        assert order.status == O.OrderStatus.PENDING
        assert order.btcpay_invoice_id is None

    async def test_retry_invoice(self, storefront, gateway, make_product, address):
        mug = await make_product(stock=5)
        gateway.create_error = GatewayError("Failed to create invoice")
        with pytest.raises(InvoiceCreationFailed) as exc_info:
            await storefront.checkout.place_order(request_for(mug, address))

        gateway.create_error = None
        result = await storefront.checkout.retry_invoice(exc_info.value.order_id, "bitcoin")

        assert result.invoice_linked
        assert gateway.created[0]["payment_methods"] == ("BTC", "BTC-LightningNetwork")
        assert (await storefront.orders.get(result.order.id)).btcpay_invoice_id == result.invoice.invoice_id

    async def test_coupon_usage_is_recorded(self, storefront, make_product, make_coupon, address):
        mug = await make_product(stock=5)
        coupon = await make_coupon()

        result = await storefront.checkout.place_order(request_for(
            mug, address, total=67.5, coupon_code="SAVE10", coupon_discount=7.5, coupon_id=coupon.id,
        ))

        assert result.coupon.ok
        assert (await storefront.coupons.store.get(coupon.id)).current_uses == 1
        assert await storefront.coupons.store.has_usage(coupon.id, "ADA@example.com")

    async def test_coupon_failure_does_not_block_checkout(
        self, storefront, make_product, make_coupon, address, monkeypatch,
    ):
        mug = await make_product(stock=5)
        coupon = await make_coupon()

        async def lost(coupon_id, email, order_id):
            return False

        monkeypatch.setattr(storefront.coupons.store, "record_usage", lost)

        result = await storefront.checkout.place_order(request_for(
            mug, address, total=67.5, coupon_code="SAVE10", coupon_discount=7.5, coupon_id=coupon.id,
        ))

        assert not result.coupon.ok
        assert result.invoice_linked


class TestSettle:
    async def place(self, storefront, make_product, address, stock=5):
        mug = await make_product(stock=stock)
        result = await storefront.checkout.place_order(request_for(mug, address))
        return mug, result.order

    async def test_settle_marks_paid_and_decrements(self, storefront, mailer, make_product, address):
        mug, order = await self.place(storefront, make_product, address)

        settled = await storefront.checkout.settle(order.id)

        assert not settled.already_settled
        assert settled.status == O.OrderStatus.PAID
        assert settled.confirmation_sent
        assert settled.effects.all_ok
        assert (await storefront.products.get(mug.id)).stock == 2
        (email,) = mailer.sent
        assert email.to == "ada@example.com"
        assert order.order_number in email.subject

    async def test_settle_twice_decrements_once(self, storefront, mailer, make_product, address):
        mug, order = await self.place(storefront, make_product, address)

        await storefront.checkout.settle(order.id)
        again = await storefront.checkout.settle(order.id)

        assert again.already_settled
        assert again.status == O.OrderStatus.PAID
        assert (await storefront.products.get(mug.id)).stock == 2
        assert len(mailer.sent) == 1

    async def test_stock_clamps_at_zero(self, storefront, make_product, address):
        mug, order = await self.place(storefront, make_product, address, stock=3)
        await storefront.products.set_stock(mug.id, 1)

        await storefront.checkout.settle(order.id)

        assert (await storefront.products.get(mug.id)).stock == 0

    async def test_mail_failure_does_not_undo_payment(self, storefront, mailer, make_product, address):
        mailer.fail_for.add("ada@example.com")
        mug, order = await self.place(storefront, make_product, address)

        settled = await storefront.checkout.settle(order.id)

        assert settled.status == O.OrderStatus.PAID
        assert not settled.confirmation_sent
        assert (await storefront.products.get(mug.id)).stock == 2

    async def test_missing_product_is_logged_not_raised(self, storefront, orders, address):
        order = await orders.create(O.NewOrder(
            items=(O.LineItem("gone", "Ghost", 10.0, 1),),
            total_amount=10.0,
            shipping_address=address,
        ))

        settled = await storefront.checkout.settle(order.id)

        assert settled.status == O.OrderStatus.PAID
        assert settled.effects.failed == 1


class TestConfirmPayment:
    async def place(self, storefront, make_product, address):
        mug = await make_product(stock=5)
        result = await storefront.checkout.place_order(request_for(mug, address))
        return mug, result

    async def test_unpaid_invoice_is_refused(self, storefront, gateway, make_product, address):
        mug, result = await self.place(storefront, make_product, address)

        with pytest.raises(PaymentNotConfirmed) as exc_info:
            await storefront.checkout.confirm_payment(result.order.id)

        assert exc_info.value.invoice_status == "New"
        assert (await storefront.orders.get(result.order.id)).status == O.OrderStatus.PENDING
        assert (await storefront.products.get(mug.id)).stock == 5

    async def test_order_without_invoice_is_refused(self, storefront, gateway, make_product, address):
        mug = await make_product(stock=5)
        gateway.create_error = GatewayError("Failed to create invoice")
        with pytest.raises(InvoiceCreationFailed) as exc_info:
            await storefront.checkout.place_order(request_for(mug, address))

        with pytest.raises(PaymentNotConfirmed):
            await storefront.checkout.confirm_payment(exc_info.value.order_id)

        assert gateway.get_calls == 0

    @pytest.mark.parametrize("status", ["Settled", "Processing"])
    async def test_settled_invoice_settles(self, storefront, gateway, make_product, address, status):
        mug, result = await self.place(storefront, make_product, address)
        gateway.statuses[result.invoice.invoice_id] = [status]

        settled = await storefront.checkout.confirm_payment(result.order.id)

        assert settled.status == O.OrderStatus.PAID
        assert (await storefront.products.get(mug.id)).stock == 2

    async def test_paid_order_skips_the_gateway(self, storefront, gateway, make_product, address):
        _, result = await self.place(storefront, make_product, address)
        await storefront.checkout.settle(result.order.id)

        again = await storefront.checkout.confirm_payment(result.order.id)

        assert again.already_settled
        assert gateway.get_calls == 0
