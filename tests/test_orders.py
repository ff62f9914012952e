"""Tests for order records and status transitions."""

import re
from dataclasses import replace
from datetime import UTC, timedelta

import pytest

from storefront import orders as O
from storefront.errors import InvalidTransition, OrderNotFound

from conftest import NOW


@pytest.fixture
def new_order(address):
    return O.NewOrder(
        items=(O.LineItem("p1", "Mug", 20.0, 3, (O.SelectedModifier("color", "Color", "black", "Black", 5.0),)),),
        total_amount=75.0,
        shipping_address=address,
    )


class TestLineItem:
    def test_line_total(self):
        item = O.LineItem("p1", "Mug", 20.0, 3, (O.SelectedModifier("c", "Color", "b", "Black", 5.0),))

        assert item.effective_price == 25.0
        assert item.line_total == 75.0

    def test_stored_shape(self):
        item = O.LineItem("p1", "Mug", 20.0, 1)

        data = item.to_dict()

        assert data["id"] == "p1"
        assert data["selected_modifiers"] == []
        assert O.LineItem.from_dict(data) == item


class TestOrderNumber:
    def test_format(self):
        number = O.generate_order_number(NOW)

        assert re.fullmatch(r"ORD-\d{13}-[0-9A-Z]{7}", number)
        millis = int(NOW.replace(tzinfo=UTC).timestamp() * 1000)
        assert number.startswith(f"ORD-{millis}-")
        assert number != O.generate_order_number(NOW)


class TestTransitions:
    @pytest.mark.parametrize("current,target", [
        ("pending", "paid"),
        ("pending", "cancelled"),
        ("paid", "shipped"),
        ("paid", "cancelled"),
        ("shipped", "delivered"),
    ])
    def test_allowed(self, current, target):
        assert O.can_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        ("paid", "pending"),
        ("pending", "shipped"),
        ("delivered", "cancelled"),
        ("cancelled", "paid"),
        ("refunded", "paid"),
    ])
    def test_rejected(self, current, target):
        assert not O.can_transition(current, target)


class TestOrderStore:
    async def test_create_is_pending(self, orders, new_order, clock):
        order = await orders.create(new_order)

        assert order.status == O.OrderStatus.PENDING
        assert order.created_at == clock.now
        assert order.email == "ada@example.com"
        assert await orders.get(order.id) == order

    async def test_require_missing(self, orders):
        with pytest.raises(OrderNotFound):
            await orders.require("missing")

    async def test_update_rejects_unknown_fields(self, orders, new_order):
        order = await orders.create(new_order)

        with pytest.raises(ValueError):
            await orders.update(order.id, total_amount=1.0)

    async def test_attach_invoice(self, orders, new_order):
        order = await orders.create(new_order)

        assert await orders.attach_invoice(order.id, "inv-1")
        assert (await orders.get(order.id)).btcpay_invoice_id == "inv-1"
        assert await orders.attach_invoice("missing", "inv-1") is False

    async def test_mark_paid_only_once(self, orders, new_order, clock):
        order = await orders.create(new_order)

        assert await orders.mark_paid(order.id) is True
        assert await orders.mark_paid(order.id) is False

        paid = await orders.get(order.id)
        assert paid.status == O.OrderStatus.PAID
        assert paid.paid_at == clock.now

    async def test_transition_guarded(self, orders, new_order):
        order = await orders.create(new_order)

        with pytest.raises(InvalidTransition):
            await orders.transition(order.id, O.OrderStatus.SHIPPED)

        cancelled = await orders.transition(order.id, O.OrderStatus.CANCELLED)
        assert cancelled.status == O.OrderStatus.CANCELLED

    async def test_list_by_status(self, orders, new_order):
        first = await orders.create(new_order)
        await orders.create(new_order)
        await orders.mark_paid(first.id)

        assert [o.id for o in await orders.list(O.OrderStatus.PAID)] == [first.id]
        assert len(await orders.list()) == 2

    async def test_mark_shipped_requires_paid(self, orders, new_order, clock):
        order = await orders.create(new_order)

        with pytest.raises(InvalidTransition):
            await orders.mark_shipped(order.id, "1Z999", "https://track.example/1Z999", clock.now, clock.now)

        await orders.mark_paid(order.id)
        shipped = await orders.mark_shipped(
            order.id, "1Z999", "https://track.example/1Z999", clock.now, clock.now + timedelta(hours=24),
        )

        assert shipped.status == O.OrderStatus.SHIPPED
        assert shipped.tracking_number == "1Z999"
        assert shipped.tracking_url == "https://track.example/1Z999"
        assert shipped.shipping_notification_scheduled_at == clock.now + timedelta(hours=24)


class TestDueShippingNotifications:
    async def shipped(self, orders, new_order, notify_at):
        order = await orders.create(new_order)
        await orders.mark_paid(order.id)
        return await orders.mark_shipped(order.id, "1Z999", "https://track.example/1Z999", NOW, notify_at)

    async def test_selects_only_due_unsent(self, orders, new_order):
        due = await self.shipped(orders, new_order, NOW - timedelta(hours=1))
        await self.shipped(orders, new_order, NOW + timedelta(hours=1))

        assert [o.id for o in await orders.due_shipping_notifications(NOW)] == [due.id]

    async def test_stamp_once(self, orders, new_order):
        due = await self.shipped(orders, new_order, NOW - timedelta(hours=1))

        assert await orders.mark_notification_sent(due.id, NOW) is True
        assert await orders.mark_notification_sent(due.id, NOW) is False
        assert await orders.due_shipping_notifications(NOW) == []

    async def test_needs_email(self, orders, new_order, address):
        no_email = replace(new_order, shipping_address=replace(address, email=None))
        await self.shipped(orders, no_email, NOW - timedelta(hours=1))

        assert await orders.due_shipping_notifications(NOW) == []
