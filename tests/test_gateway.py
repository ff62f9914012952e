"""Tests for the BTCPay client and invoice status parsing."""

import json

import httpx
import pytest

from storefront import gateway as G
from storefront.errors import GatewayError


def client_for(handler) -> G.BTCPayClient:
    return G.BTCPayClient(
        "https://btcpay.example.com/",
        "store-1",
        "secret-key",
        transport=httpx.MockTransport(handler),
    )


class TestInvoiceStatus:
    @pytest.mark.parametrize("raw,kind", [
        ("New", G.InvoiceStatusKind.NEW),
        ("Processing", G.InvoiceStatusKind.PROCESSING),
        ("Settled", G.InvoiceStatusKind.SETTLED),
        ("Expired", G.InvoiceStatusKind.EXPIRED),
        ("Invalid", G.InvoiceStatusKind.UNKNOWN),
        (None, G.InvoiceStatusKind.UNKNOWN),
    ])
    def test_parse(self, raw, kind):
        assert G.InvoiceStatus.parse(raw).kind is kind

    def test_unknown_keeps_raw_label(self):
        status = G.InvoiceStatus.parse("Invalid")
        assert str(status) == "Invalid"
        assert not status.is_terminal

    def test_processing_counts_as_settled(self):
        assert G.InvoiceStatus.parse("Processing").is_settled
        assert G.InvoiceStatus.parse("Settled").is_settled
        assert not G.InvoiceStatus.parse("New").is_settled
        assert G.InvoiceStatus.parse("Expired").is_expired


class TestPaymentMethods:
    def test_preferences(self):
        assert G.payment_methods_for(G.CryptoPreference.BITCOIN) == ("BTC", "BTC-LightningNetwork")
        assert G.payment_methods_for("monero") == ("XMR",)
        assert G.payment_methods_for(None) == ("BTC", "BTC-LightningNetwork", "XMR")

    def test_qr_url_prefers_payment_link(self):
        details = G.PaymentMethodDetails("BTC-CHAIN", "BTC", "bc1qaddr", "bitcoin:bc1qaddr?amount=1")
        assert details.qr_url == G.QR_SERVICE_URL + "bitcoin%3Abc1qaddr%3Famount%3D1"

        bare = G.PaymentMethodDetails("XMR-CHAIN", "XMR", "4Addr", "")
        assert bare.qr_url.endswith("data=4Addr")


class TestBTCPayClient:
    async def test_create_invoice(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "id": "inv-42",
                "checkoutLink": "https://btcpay.example.com/i/inv-42",
                "status": "New",
                "amount": "75.00",
                "currency": "USD",
            })

        async with client_for(handler) as btcpay:
            created = await btcpay.create_invoice(75, "USD", "order-1", "ada@example.com", ("XMR",))

        assert seen["url"] == "https://btcpay.example.com/api/v1/stores/store-1/invoices"
        assert seen["auth"] == "token secret-key"
        assert seen["body"]["amount"] == "75.00"
        assert seen["body"]["metadata"] == {"orderId": "order-1", "buyerEmail": "ada@example.com"}
        assert seen["body"]["checkout"]["paymentMethods"] == ["XMR"]
        assert seen["body"]["checkout"]["expirationMinutes"] == 60
        assert created.invoice_id == "inv-42"
        assert created.status.kind is G.InvoiceStatusKind.NEW

    async def test_get_invoice(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/stores/store-1/invoices/inv-42"
            return httpx.Response(200, json={
                "id": "inv-42",
                "status": "Settled",
                "amount": "75.00",
                "currency": "USD",
                "createdTime": 1_700_000_000,
                "expirationTime": 1_700_003_600,
                "metadata": {"orderId": "order-1"},
            })

        async with client_for(handler) as btcpay:
            invoice = await btcpay.get_invoice("inv-42")

        assert invoice.status.is_settled
        assert invoice.expiration_time == 1_700_003_600
        assert invoice.metadata == {"orderId": "order-1"}

    async def test_get_payment_methods(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path.endswith("/invoices/inv-42/payment-methods")
            return httpx.Response(200, json=[{
                "paymentMethod": "BTC-CHAIN",
                "cryptoCode": "BTC",
                "destination": "bc1qaddr",
                "paymentLink": "bitcoin:bc1qaddr",
                "rate": "60000",
                "amount": "0.00125",
                "due": "0.00125",
                "totalPaid": "0",
                "networkFee": "0.00001",
            }])

        async with client_for(handler) as btcpay:
            (method,) = await btcpay.get_payment_methods("inv-42")

        assert method.crypto_code == "BTC"
        assert method.due == "0.00125"

    async def test_error_keeps_status_and_hides_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, text="store api key lacks permission btcpay.store.cancreateinvoice")

        async with client_for(handler) as btcpay:
            with pytest.raises(GatewayError) as exc_info:
                await btcpay.create_invoice(10, "USD", "order-1", None, ("BTC",))

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Failed to create invoice"
        assert "permission" not in exc_info.value.message

    async def test_payment_method_unavailable_is_translated(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"message": "Payment method unavailable (XMR)"})

        async with client_for(handler) as btcpay:
            with pytest.raises(GatewayError) as exc_info:
                await btcpay.create_invoice(10, "USD", "order-1", None, ("XMR",))

        assert exc_info.value.message == G.METHOD_UNAVAILABLE_MESSAGE
        assert exc_info.value.status_code == 400

    async def test_transport_failure_is_502(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with client_for(handler) as btcpay:
            with pytest.raises(GatewayError) as exc_info:
                await btcpay.get_invoice("inv-42")

        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "Failed to fetch invoice"
