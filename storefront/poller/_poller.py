"""
Payment status poller — the client side of checkout step 6.

Two loops on one event loop:

    poll   every 5s   fetch invoice, update status/time_left, fire completion once
    tick   every 1s   count time_left down to zero

Completion does not stop polling; only close() does, and it stops both.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Awaitable, Callable

from storefront._types import InvoiceId
from storefront.errors import UpstreamError
from storefront.gateway import InvoiceGateway, InvoiceStatus, PaymentMethodDetails
from storefront.steps import best_effort

logger = logging.getLogger(__name__)

type Callback = Callable[[], Awaitable[object]]

DEFAULT_TIME_LEFT = 900


def format_time(seconds: int) -> str:
    return f"{seconds // 60}:{seconds % 60:02d}"


class PaymentPoller:
    def __init__(
        self,
        gateway: InvoiceGateway,
        invoice_id: InvoiceId,
        on_complete: Callback,
        *,
        poll_interval: float = 5.0,
        tick_interval: float = 1.0,
        on_expired: Callback | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._gateway = gateway
        self._invoice_id = invoice_id
        self._on_complete = on_complete
        self._on_expired = on_expired
        self._poll_interval = poll_interval
        self._tick_interval = tick_interval
        self._clock = clock
        self._tasks: list[asyncio.Task[None]] = []

        self.status: InvoiceStatus | None = None
        self.time_left: int = DEFAULT_TIME_LEFT
        self.completed = False
        self.expired = False
        self.payment_methods: list[PaymentMethodDetails] = []
        self.error: str | None = None

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    # ═══════════════════════════════════════════════════════════════════════════
    # Single operations
    # ═══════════════════════════════════════════════════════════════════════════

    async def load_payment_methods(self) -> list[PaymentMethodDetails]:
        """Fetch address/amount details. A failure is a dead end: `error` is set."""
        try:
            self.payment_methods = await self._gateway.get_payment_methods(self._invoice_id)
        except UpstreamError as e:
            self.error = e.message
            logger.error("Payment methods for %s unavailable: %s", self._invoice_id, e.message)
        return self.payment_methods

    async def poll_once(self) -> InvoiceStatus | None:
        try:
            invoice = await self._gateway.get_invoice(self._invoice_id)
        except UpstreamError as e:
            logger.warning("Invoice %s status fetch failed: %s", self._invoice_id, e.message)
            return None

        self.status = invoice.status
        if invoice.expiration_time is not None:
            self.time_left = max(0, math.floor(invoice.expiration_time - self._clock()))

        if invoice.status.is_settled and not self.completed:
            # set before awaiting, so a concurrent poll cannot fire again
            self.completed = True
            await best_effort("payment completion", self._on_complete, invoice_id=self._invoice_id)

        elif invoice.status.is_expired and not self.expired:
            self.expired = True
            if self._on_expired is not None:
                await best_effort("invoice expired", self._on_expired, invoice_id=self._invoice_id)

        return invoice.status

    def tick(self) -> int:
        self.time_left = max(0, self.time_left - 1)
        return self.time_left

    # ═══════════════════════════════════════════════════════════════════════════
    # Lifecycle
    # ═══════════════════════════════════════════════════════════════════════════

    def start(self) -> None:
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._poll_loop(), name=f"poll-{self._invoice_id}"),
            asyncio.create_task(self._tick_loop(), name=f"tick-{self._invoice_id}"),
        ]

    async def close(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self) -> PaymentPoller:
        self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def _poll_loop(self) -> None:
        await self.load_payment_methods()
        while True:
            await self.poll_once()
            await asyncio.sleep(self._poll_interval)

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            self.tick()


__all__ = ("PaymentPoller", "format_time", "DEFAULT_TIME_LEFT")
