"""
Application container — one place that wires stores, clients and services.

    storefront = await Storefront.open(Settings.from_env())
    try:
        app = create_app(storefront)
        ...
    finally:
        await storefront.aclose()

Tests use Storefront.build() with a FakeGateway and a recording mailer.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from storefront import catalog as K
from storefront import checkout as CO
from storefront import coupons as C
from storefront import gateway as G
from storefront import notify as N
from storefront import orders as O
from storefront import shipping as SH
from storefront._types import Clock, utcnow
from storefront.config import Settings
from storefront.db import create_database
from storefront.ratelimit import RateLimiter

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Storefront:
    settings: Settings
    products: K.ProductStore
    orders: O.OrderStore
    coupons: C.CouponService
    shipping: SH.ShippingService
    gateway: G.InvoiceGateway
    mailer: N.Mailer
    notifications: N.NotificationDispatcher
    checkout: CO.CheckoutService
    limiter: RateLimiter
    clock: Clock = utcnow
    engine: AsyncEngine | None = None
    _closers: list[Callable[[], Awaitable[None]]] = field(default_factory=list, repr=False)

    @classmethod
    def build(
        cls,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        gateway: G.InvoiceGateway,
        mailer: N.Mailer,
        clock: Clock = utcnow,
        limiter: RateLimiter | None = None,
    ) -> Storefront:
        products = K.ProductStore(session_factory, clock)
        orders = O.OrderStore(session_factory, clock)
        coupon_store = C.CouponStore(session_factory, clock)
        branding = N.Branding(
            store_name=settings.store_name,
            site_url=settings.site_url,
            support_email=settings.support_email,
        )
        notifications = N.NotificationDispatcher(orders, mailer, branding, clock)
        coupons = C.CouponService(coupon_store, clock)

        return cls(
            settings=settings,
            products=products,
            orders=orders,
            coupons=coupons,
            shipping=SH.ShippingService(SH.ShippingConfigStore(session_factory, clock)),
            gateway=gateway,
            mailer=mailer,
            notifications=notifications,
            checkout=CO.CheckoutService(products, orders, coupons, gateway, notifications, clock),
            limiter=limiter or RateLimiter(),
            clock=clock,
        )

    @classmethod
    async def open(cls, settings: Settings) -> Storefront:
        """Create the engine and both HTTP clients from settings."""
        session_factory, engine = await create_database(settings.database_url)
        gateway = G.BTCPayClient(
            settings.btcpay_host,
            settings.btcpay_store_id,
            settings.btcpay_api_key,
            allow_insecure=settings.btcpay_allow_insecure,
            expiration_minutes=settings.invoice_expiration_minutes,
        )
        mailer = N.MailgunMailer(
            settings.mailgun_api_key,
            settings.mailgun_domain,
            settings.mail_from,
            base_url=settings.mailgun_base_url,
        )

        storefront = cls.build(settings, session_factory, gateway=gateway, mailer=mailer)
        storefront.engine = engine
        storefront._closers.extend([gateway.aclose, mailer.aclose, engine.dispose])
        logger.info("Storefront opened against %s", engine.url.render_as_string(hide_password=True))
        return storefront

    async def aclose(self) -> None:
        await self.limiter.stop()
        closers, self._closers = self._closers, []
        for close in closers:
            await close()


__all__ = ("Storefront",)
