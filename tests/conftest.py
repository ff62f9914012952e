"""Pytest fixtures for storefront tests."""

from dataclasses import dataclass
from datetime import datetime, timedelta

import httpx
import pytest

from storefront import catalog as K
from storefront import coupons as C
from storefront import gateway as G
from storefront import orders as O
from storefront._container import Storefront
from storefront.config import Settings
from storefront.db import create_database
from storefront.errors import GatewayError, UpstreamError

NOW = datetime(2026, 3, 1, 12, 0, 0)


class FakeClock:
    """Settable naive-UTC clock."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now += timedelta(**delta)


class FakeGateway:
    """In-memory invoice gateway.

    `statuses[invoice_id]` is a queue of status strings; each get_invoice()
    pops one until the last, which then repeats.
    """

    def __init__(self):
        self.created: list[dict] = []
        self.statuses: dict[str, list[str]] = {}
        self.expiration_time: int | None = None
        self.create_error: GatewayError | None = None
        self.get_error: GatewayError | None = None
        self.get_calls = 0

    async def create_invoice(self, amount, currency, order_id, buyer_email, payment_methods):
        if self.create_error is not None:
            raise self.create_error
        invoice_id = f"inv-{len(self.created) + 1}"
        self.created.append({
            "invoice_id": invoice_id,
            "amount": amount,
            "currency": currency,
            "order_id": order_id,
            "buyer_email": buyer_email,
            "payment_methods": tuple(payment_methods),
        })
        return G.CreatedInvoice(
            invoice_id=invoice_id,
            checkout_link=f"https://pay.example.com/i/{invoice_id}",
            status=G.InvoiceStatus.parse("New"),
            amount=f"{amount:.2f}",
            currency=currency,
        )

    async def get_invoice(self, invoice_id):
        self.get_calls += 1
        if self.get_error is not None:
            raise self.get_error
        queue = self.statuses.setdefault(invoice_id, ["New"])
        status = queue.pop(0) if len(queue) > 1 else queue[0]
        return G.Invoice(
            id=invoice_id,
            status=G.InvoiceStatus.parse(status),
            amount="75.00",
            currency="USD",
            expiration_time=self.expiration_time,
        )

    async def get_payment_methods(self, invoice_id):
        return [
            G.PaymentMethodDetails(
                payment_method="BTC-CHAIN",
                crypto_code="BTC",
                destination="bc1qexampleaddress",
                payment_link="bitcoin:bc1qexampleaddress?amount=0.001",
                amount="0.001",
                due="0.001",
            )
        ]


@dataclass
class SentEmail:
    to: str
    subject: str
    text: str
    html: str


class RecordingMailer:
    def __init__(self):
        self.sent: list[SentEmail] = []
        self.fail_for: set[str] = set()

    async def send(self, to, subject, text, html):
        if to in self.fail_for:
            raise UpstreamError("Failed to send email")
        self.sent.append(SentEmail(to, subject, text, html))


# --- Datastore ---


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
async def session_factory():
    factory, engine = await create_database("sqlite+aiosqlite:///:memory:")
    yield factory
    await engine.dispose()


@pytest.fixture
def products(session_factory, clock):
    return K.ProductStore(session_factory, clock)


@pytest.fixture
def orders(session_factory, clock):
    return O.OrderStore(session_factory, clock)


@pytest.fixture
def coupon_store(session_factory, clock):
    return C.CouponStore(session_factory, clock)


# --- Collaborators ---


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        btcpay_host="https://btcpay.example.com",
        btcpay_store_id="store-1",
        btcpay_api_key="btcpay-key",
        mailgun_api_key="mailgun-key",
        mailgun_domain="mg.example.com",
        store_name="Test Shop",
        support_email="help@example.com",
        site_url="https://shop.example.com",
        admin_token="admin-secret",
    )


@pytest.fixture
def storefront(settings, session_factory, gateway, mailer, clock):
    return Storefront.build(settings, session_factory, gateway=gateway, mailer=mailer, clock=clock)


# --- Domain helpers ---


@pytest.fixture
def address():
    return O.ShippingAddress(
        name="Ada Lovelace",
        address_line1="12 Analytical St",
        city="London",
        state="Greater London",
        zip="N1 9GU",
        country="GB",
        email="ada@example.com",
    )


@pytest.fixture
def make_product(products):
    async def make(name="Mug", price=20.0, stock=10, **kwargs):
        return await products.add(K.NewProduct(name=name, price=price, stock=stock, **kwargs))

    return make


@pytest.fixture
def make_coupon(coupon_store):
    async def make(code="SAVE10", discount_type=C.DiscountType.PERCENTAGE, discount_value=10.0, **kwargs):
        kwargs.setdefault("valid_from", NOW - timedelta(days=1))
        return await coupon_store.add(C.NewCoupon(
            code=code,
            discount_type=discount_type,
            discount_value=discount_value,
            **kwargs,
        ))

    return make


@pytest.fixture
async def api_client(storefront):
    from storefront.wire import create_app

    app = create_app(storefront)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
