"""Tests for email templates, the Mailgun mailer and the notification dispatcher."""

from datetime import timedelta
from urllib.parse import parse_qs

import httpx
import pytest

from storefront import notify as N
from storefront import orders as O
from storefront.errors import UpstreamError

from conftest import NOW

BRANDING = N.Branding(store_name="Test Shop", site_url="https://shop.example.com", support_email="help@example.com")


class TestTemplates:
    def test_order_confirmation(self):
        email = N.order_confirmation_email("ORD-1-ABC", "order-1", 75.0, BRANDING)

        assert email.subject == "Order Confirmation - ORD-1-ABC"
        assert "Total Amount: $75.00" in email.text
        assert "https://shop.example.com/track-order" in email.text
        assert "mailto:help@example.com" in email.html

    def test_shipping_notice_escapes_values(self):
        email = N.shipping_notice_email(
            "ORD-1-ABC", "<script>alert(1)</script>", "1Z<999>", "https://track.example/?a=1&b=2", BRANDING,
        )

        assert "<script>" not in email.html
        assert "&lt;script&gt;" in email.html
        assert "1Z&lt;999&gt;" in email.html
        assert "a=1&amp;b=2" in email.html
        assert email.text.startswith("Hi <script>alert(1)</script>,")

    def test_missing_name_falls_back(self):
        email = N.shipping_notice_email("ORD-1", None, "1Z", "https://t.example", BRANDING)

        assert email.text.startswith("Hi there,")


class TestMailgunMailer:
    async def test_posts_form(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["authorization"]
            seen["form"] = parse_qs(request.content.decode())
            return httpx.Response(200, json={"id": "<msg@mg.example.com>"})

        mailer = N.MailgunMailer(
            "mailgun-key", "mg.example.com", "Test Shop <noreply@mg.example.com>",
            transport=httpx.MockTransport(handler),
        )
        try:
            await mailer.send("ada@example.com", "Hello", "text body", "<p>html</p>")
        finally:
            await mailer.aclose()

        assert seen["path"] == "/v3/mg.example.com/messages"
        assert seen["auth"].startswith("Basic ")
        assert seen["form"]["to"] == ["ada@example.com"]
        assert seen["form"]["from"] == ["Test Shop <noreply@mg.example.com>"]

    async def test_error_raises(self):
        mailer = N.MailgunMailer(
            "mailgun-key", "mg.example.com", "x@mg.example.com",
            transport=httpx.MockTransport(lambda request: httpx.Response(401, text="Forbidden")),
        )
        try:
            with pytest.raises(UpstreamError, match="Failed to send email"):
                await mailer.send("ada@example.com", "Hello", "t", "h")
        finally:
            await mailer.aclose()


class TestDispatcher:
    @pytest.fixture
    def dispatcher(self, orders, mailer, clock):
        return N.NotificationDispatcher(orders, mailer, BRANDING, clock)

    async def shipped(self, orders, address, notify_at, email="ada@example.com"):
        order = await orders.create(O.NewOrder(
            items=(O.LineItem("p1", "Mug", 20.0, 1),),
            total_amount=20.0,
            shipping_address=O.ShippingAddress(**{**address.to_dict(), "email": email}),
        ))
        await orders.mark_paid(order.id)
        return await orders.mark_shipped(order.id, "1Z999", "https://track.example/1Z999", NOW, notify_at)

    async def test_confirmation_without_email_is_skipped(self, dispatcher, orders, mailer, address):
        order = await orders.create(O.NewOrder(
            items=(O.LineItem("p1", "Mug", 20.0, 1),),
            total_amount=20.0,
            shipping_address=O.ShippingAddress(**{**address.to_dict(), "email": None}),
        ))

        assert await dispatcher.send_order_confirmation(order) is False
        assert mailer.sent == []

    async def test_confirmation_to_explicit_address(self, dispatcher, orders, mailer, address):
        order = await self.shipped(orders, address, NOW)

        assert await dispatcher.send_order_confirmation(order, to="other@example.com")
        assert mailer.sent[0].to == "other@example.com"

    async def test_sweep_sends_due_and_stamps(self, dispatcher, orders, mailer, address):
        due = await self.shipped(orders, address, NOW - timedelta(hours=1))
        await self.shipped(orders, address, NOW + timedelta(hours=1))

        report = await dispatcher.run_shipping_sweep()

        assert (report.found, report.sent, report.failed) == (1, 1, 0)
        assert [e.subject for e in mailer.sent] == [f"Your Order Has Shipped - {due.order_number}"]
        assert (await orders.get(due.id)).shipping_notification_sent_at == NOW

        again = await dispatcher.run_shipping_sweep()
        assert again.found == 0
        assert len(mailer.sent) == 1

    async def test_failed_send_stays_eligible(self, dispatcher, orders, mailer, address):
        mailer.fail_for.add("bad@example.com")
        failing = await self.shipped(orders, address, NOW - timedelta(hours=1), email="bad@example.com")
        await self.shipped(orders, address, NOW - timedelta(hours=1))

        report = await dispatcher.run_shipping_sweep()

        assert (report.found, report.sent, report.failed) == (2, 1, 1)
        assert (await orders.get(failing.id)).shipping_notification_sent_at is None
        assert [o.id for o in await orders.due_shipping_notifications(NOW)] == [failing.id]

    async def test_unstamped_is_counted(self, dispatcher, orders, address, monkeypatch):
        await self.shipped(orders, address, NOW - timedelta(hours=1))

        async def broken(order_id, at):
            raise RuntimeError("database is locked")

        monkeypatch.setattr(orders, "mark_notification_sent", broken)

        report = await dispatcher.run_shipping_sweep()

        assert report.sent == 1
        assert report.unstamped == 1
